from __future__ import annotations

import logging

from pdfvault.core.errors import ResourceNotFoundError
from pdfvault.domain.models.resource import STATUS_ACTIVE, STATUS_INACTIVE, Resource
from pdfvault.infrastructure.archive.store import ArchiveStore
from pdfvault.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)


class ResourceService:
    """Admin lifecycle for stored documents: status toggles and deletion."""

    def __init__(self, resource_repo: ResourceRepo, archive_store: ArchiveStore) -> None:
        self.resource_repo = resource_repo
        self.archive_store = archive_store

    def activate(self, resource_id: int) -> Resource:
        return self._set_status(resource_id, STATUS_ACTIVE)

    def deactivate(self, resource_id: int) -> Resource:
        return self._set_status(resource_id, STATUS_INACTIVE)

    def delete(self, resource_id: int) -> bool:
        """Remove the record, then the archived file if nothing else references it.

        The record removal is authoritative; the file removal is best-effort and
        reported through the return value.
        """
        resource = self._require(resource_id)
        self.resource_repo.delete(resource_id)
        if self.resource_repo.count_by_relpath(resource.archived_relpath) > 0:
            return True
        removed = self.archive_store.remove(resource.archived_relpath)
        if not removed:
            logger.warning("Resource %s deleted but its archived file was left behind", resource_id)
        return removed

    def _set_status(self, resource_id: int, status: str) -> Resource:
        self._require(resource_id)
        self.resource_repo.set_status(resource_id, status)
        updated = self._require(resource_id)
        logger.info("Resource %s is now %s", resource_id, status)
        return updated

    def _require(self, resource_id: int) -> Resource:
        resource = self.resource_repo.get_by_id(resource_id)
        if resource is None:
            raise ResourceNotFoundError(f"Resource not found: {resource_id}")
        return resource
