from __future__ import annotations

from dataclasses import dataclass

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"
RESOURCE_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)


@dataclass(slots=True)
class Resource:
    id: int
    digest_sha256: str
    media_type: str
    original_filename: str
    archived_relpath: str
    size_bytes: int
    ingested_at: str
    status: str = STATUS_ACTIVE
    title: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE
