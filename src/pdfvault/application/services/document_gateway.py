from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Protocol

from pdfvault.application.services.range_streamer import RangeStreamer
from pdfvault.application.services.token_service import TokenValidator
from pdfvault.core.errors import (
    BadRequestError,
    MethodNotAllowedError,
    NotFoundError,
    RangeNotSatisfiableError,
    UnauthorizedError,
)
from pdfvault.domain.models.byte_range import UnsatisfiableRange
from pdfvault.domain.models.resource import Resource
from pdfvault.infrastructure.archive.store import ArchiveStore

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Content-Security-Policy": "frame-ancestors 'self'",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "private, no-store",
}

DEFAULT_MEDIA_TYPE = "application/pdf"


class Repository(Protocol):
    def find_active_by_id(self, resource_id: int) -> Resource | None: ...


@dataclass(slots=True)
class ServeResponse:
    status_code: int
    media_type: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Iterator[bytes] | None = None


def parse_resource_id(raw: str | int | None) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if value > 0 else None


class DocumentGateway:
    """Authorizes and serves one protected document request in a single pass."""

    def __init__(
        self,
        *,
        repository: Repository,
        archive_store: ArchiveStore,
        token_validator: TokenValidator,
        streamer: RangeStreamer,
    ) -> None:
        self.repository = repository
        self.archive_store = archive_store
        self.token_validator = token_validator
        self.streamer = streamer

    def serve(
        self,
        *,
        method: str,
        resource_id: str | int | None,
        token: str | None,
        range_header: str | None = None,
    ) -> ServeResponse:
        if method.upper() != "GET":
            raise MethodNotAllowedError(f"Method not allowed: {method}", headers={"Allow": "GET"})
        if resource_id is None or (isinstance(resource_id, str) and not resource_id.strip()):
            raise BadRequestError("Missing required parameter: resourceId")
        parsed_id = parse_resource_id(resource_id)
        if parsed_id is None:
            raise BadRequestError("resourceId must be a positive integer")
        if not token:
            raise BadRequestError("Missing required parameter: token")

        check = self.token_validator.validate(parsed_id, token)
        if not check.ok:
            logger.info("Token rejected for resource %s: %s", parsed_id, check.reason)
            raise UnauthorizedError("Invalid or expired token")

        resource = self.repository.find_active_by_id(parsed_id)
        if resource is None:
            raise NotFoundError(f"Resource not found: {parsed_id}")

        path = self._locate(resource)
        total_size = path.stat().st_size
        byte_range = self.streamer.compute_range(range_header, total_size)
        range_headers = self.streamer.response_headers(byte_range)
        if isinstance(byte_range, UnsatisfiableRange):
            raise RangeNotSatisfiableError(
                f"Requested range not satisfiable for {total_size} bytes",
                headers={**SECURITY_HEADERS, **range_headers},
            )

        safe_filename = resource.original_filename.replace('"', "")
        headers = {
            **SECURITY_HEADERS,
            **range_headers,
            "Content-Disposition": f'inline; filename="{safe_filename}"',
        }
        return ServeResponse(
            status_code=self.streamer.status_code(byte_range),
            media_type=resource.media_type or DEFAULT_MEDIA_TYPE,
            headers=headers,
            body=self.streamer.stream(path, byte_range),
        )

    def _locate(self, resource: Resource) -> Path:
        path = self.archive_store.resolve(resource.archived_relpath)
        if path is None:
            logger.warning("Resource %s points outside the archive: %s", resource.id, resource.archived_relpath)
            raise NotFoundError(f"Archived file missing for resource: {resource.id}")
        if not path.is_file() or not os.access(path, os.R_OK):
            raise NotFoundError(f"Archived file missing for resource: {resource.id}")
        return path
