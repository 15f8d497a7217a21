from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pdfvault.core.errors import ResourceIngestError
from pdfvault.core.files import looks_like_pdf
from pdfvault.core.hashing import compute_file_digest
from pdfvault.core.time import now_utc_iso
from pdfvault.domain.models.resource import Resource
from pdfvault.infrastructure.archive.store import ArchiveStore
from pdfvault.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


@dataclass(slots=True)
class IngestResult:
    resource: Resource
    status: str


class IngestionService:
    def __init__(self, resource_repo: ResourceRepo, archive_store: ArchiveStore) -> None:
        self.resource_repo = resource_repo
        self.archive_store = archive_store

    def ingest_file(self, file_path: Path, title: str | None = None) -> IngestResult:
        path = file_path.expanduser().resolve()
        if not path.exists() or not path.is_file():
            raise ResourceIngestError(f"File not found: {path}")
        if not looks_like_pdf(path):
            raise ResourceIngestError(f"Not a PDF document: {path}")

        digest_sha256 = compute_file_digest(path)
        existing = self.resource_repo.get_by_digest(digest_sha256)
        if existing:
            archived = self.archive_store.resolve(existing.archived_relpath)
            if archived is None or not self.archive_store.verify_archived_integrity(archived, digest_sha256):
                logger.warning("Archived copy of resource %s missing or damaged; restoring", existing.id)
                self.archive_store.remove(existing.archived_relpath)
                self.archive_store.store_file_immutable(path, digest_sha256, ".pdf")
            return IngestResult(resource=existing, status="duplicate")

        archived_path = self.archive_store.store_file_immutable(path, digest_sha256, ".pdf")

        resource = Resource(
            id=0,
            digest_sha256=digest_sha256,
            media_type=PDF_MEDIA_TYPE,
            original_filename=path.name,
            archived_relpath=str(archived_path.relative_to(self.archive_store.base_dir)),
            size_bytes=path.stat().st_size,
            ingested_at=now_utc_iso(),
            title=(title or "").strip() or path.stem,
        )
        self.resource_repo.insert(resource)
        logger.info("Ingested %s as resource %s", path.name, resource.id)

        return IngestResult(resource=resource, status="ingested")
