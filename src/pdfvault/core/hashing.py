from __future__ import annotations

import hashlib
import re
from pathlib import Path

ARCHIVE_DIGEST_ALG = "sha256"
_SHA256_HEX_RE = re.compile(r"^[0-9a-f]{64}$")


def compute_bytes_digest(data: bytes, alg: str = ARCHIVE_DIGEST_ALG) -> str:
    return hashlib.new(alg, data).hexdigest()


def compute_file_digest(path: Path, alg: str = ARCHIVE_DIGEST_ALG, chunk_size: int = 1024 * 1024) -> str:
    digest = hashlib.new(alg)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_sha256_hex(value: str) -> bool:
    """True for a lowercase hex sha256 digest, the only form used as an archive key."""
    return bool(_SHA256_HEX_RE.match(value))
