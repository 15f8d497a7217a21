from __future__ import annotations

import logging
from pathlib import Path

from pdfvault.core.files import ensure_directory, is_within, make_read_only, safe_copy_atomic
from pdfvault.core.hashing import ARCHIVE_DIGEST_ALG, compute_file_digest, is_sha256_hex

logger = logging.getLogger(__name__)


class ArchiveStore:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    def ensure_archive_layout(self) -> None:
        ensure_directory(self.base_dir)
        ensure_directory(self.base_dir / "sha256")

    def archive_relpath_for_digest(self, digest_sha256: str, suffix: str = "") -> Path:
        if not is_sha256_hex(digest_sha256):
            raise ValueError(f"Not a sha256 hex digest: {digest_sha256!r}")
        shard_a = digest_sha256[:2]
        shard_b = digest_sha256[2:4]
        name = f"{digest_sha256}{suffix}"
        return Path("sha256") / shard_a / shard_b / name

    def archive_abspath_for_digest(self, digest_sha256: str, suffix: str = "") -> Path:
        return self.base_dir / self.archive_relpath_for_digest(digest_sha256, suffix)

    def store_file_immutable(self, src: Path, digest_sha256: str, suffix: str = "") -> Path:
        self.ensure_archive_layout()
        dst = self.archive_abspath_for_digest(digest_sha256, suffix)
        ensure_directory(dst.parent)

        if not dst.exists():
            safe_copy_atomic(src, dst)
            make_read_only(dst)

        return dst

    def resolve(self, archived_relpath: str) -> Path | None:
        """Absolute path for a stored relpath, or None if it escapes the archive root."""
        archive_root = self.base_dir.resolve()
        resolved = (archive_root / archived_relpath).resolve()
        if not is_within(archive_root, resolved) or resolved == archive_root:
            return None
        return resolved

    def remove(self, archived_relpath: str) -> bool:
        """Best-effort removal of an archived file; failures are logged, not raised."""
        path = self.resolve(archived_relpath)
        if path is None:
            logger.warning("Refusing to remove path outside archive: %s", archived_relpath)
            return False
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove archived file %s: %s", path, exc)
            return False
        return True

    @staticmethod
    def verify_archived_integrity(path: Path, expected_digest: str) -> bool:
        if not path.exists():
            return False
        return compute_file_digest(path, ARCHIVE_DIGEST_ALG) == expected_digest
