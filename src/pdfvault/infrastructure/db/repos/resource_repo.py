from __future__ import annotations

from pathlib import Path

from pdfvault.domain.models.resource import RESOURCE_STATUSES, STATUS_ACTIVE, Resource
from pdfvault.infrastructure.db.sqlite import get_connection


class ResourceRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, resource: Resource) -> Resource:
        """Persist a new resource; the database assigns its id."""
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO resources (
                    digest_sha256,
                    media_type,
                    original_filename,
                    title,
                    archived_relpath,
                    size_bytes,
                    status,
                    ingested_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    resource.digest_sha256,
                    resource.media_type,
                    resource.original_filename,
                    resource.title,
                    resource.archived_relpath,
                    resource.size_bytes,
                    resource.status,
                    resource.ingested_at,
                ),
            )
            conn.commit()
            resource.id = int(cursor.lastrowid)
        return resource

    def get_by_id(self, resource_id: int) -> Resource | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE id = ?",
                (resource_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def find_active_by_id(self, resource_id: int) -> Resource | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE id = ? AND status = ?",
                (resource_id, STATUS_ACTIVE),
            ).fetchone()
        return self._to_model(row) if row else None

    def get_by_digest(self, digest_sha256: str) -> Resource | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE digest_sha256 = ?",
                (digest_sha256,),
            ).fetchone()
        return self._to_model(row) if row else None

    def count_by_relpath(self, archived_relpath: str) -> int:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM resources WHERE archived_relpath = ?",
                (archived_relpath,),
            ).fetchone()
        return int(row[0])

    def list(self, limit: int = 100, include_inactive: bool = True) -> list[Resource]:
        where = "" if include_inactive else "WHERE status = 'active'"
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM resources
                {where}
                ORDER BY ingested_at DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    def set_status(self, resource_id: int, status: str) -> bool:
        if status not in RESOURCE_STATUSES:
            raise ValueError(f"Unknown resource status: {status}")
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE resources SET status = ? WHERE id = ?",
                (status, resource_id),
            )
            conn.commit()
        return cursor.rowcount > 0

    def delete(self, resource_id: int) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM resources WHERE id = ?", (resource_id,))
            conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _to_model(row) -> Resource:
        return Resource(
            id=int(row["id"]),
            digest_sha256=row["digest_sha256"],
            media_type=row["media_type"],
            original_filename=row["original_filename"],
            archived_relpath=row["archived_relpath"],
            size_bytes=int(row["size_bytes"]),
            ingested_at=row["ingested_at"],
            status=row["status"],
            title=row["title"],
        )
