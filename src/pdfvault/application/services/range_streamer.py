from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

from pdfvault.core.config import DEFAULT_STREAM_CHUNK_BYTES
from pdfvault.domain.models.byte_range import ByteRange, FullRange, PartialRange, UnsatisfiableRange

_RANGE_RE = re.compile(r"^\s*bytes\s*=\s*([0-9]+)\s*-\s*([0-9]*)\s*$", re.IGNORECASE)


def compute_range(range_header: str | None, total_size: int) -> ByteRange:
    """Resolve a ``Range`` header against a file of ``total_size`` bytes.

    Only the single ``bytes=<start>-[<end>]`` form is honoured; any other
    header value is ignored and the whole file is served.
    """
    if total_size < 0:
        raise ValueError("total_size must be non-negative")
    if range_header is None or not range_header.strip():
        return FullRange(total_size)

    match = _RANGE_RE.match(range_header)
    if match is None:
        return FullRange(total_size)

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else total_size - 1
    if start >= total_size or start > end:
        return UnsatisfiableRange(total_size)
    return PartialRange(start=start, end=min(end, total_size - 1), total_size=total_size)


class RangeStreamer:
    def __init__(self, chunk_size: int = DEFAULT_STREAM_CHUNK_BYTES) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    compute_range = staticmethod(compute_range)

    @staticmethod
    def response_headers(byte_range: ByteRange) -> dict[str, str]:
        if isinstance(byte_range, UnsatisfiableRange):
            return {"Content-Range": byte_range.content_range, "Accept-Ranges": "bytes"}
        headers = {"Accept-Ranges": "bytes", "Content-Length": str(byte_range.length)}
        if isinstance(byte_range, PartialRange):
            headers["Content-Range"] = byte_range.content_range
        return headers

    @staticmethod
    def status_code(byte_range: ByteRange) -> int:
        if isinstance(byte_range, PartialRange):
            return 206
        if isinstance(byte_range, UnsatisfiableRange):
            return 416
        return 200

    def stream(self, path: Path, byte_range: FullRange | PartialRange) -> Iterator[bytes]:
        """Yield exactly ``byte_range.length`` bytes of ``path``.

        The file is opened lazily and closed when the generator finishes, is
        closed early by the consumer, or raises.
        """
        start = byte_range.start if isinstance(byte_range, PartialRange) else 0
        remaining = byte_range.length
        with path.open("rb") as handle:
            if start:
                handle.seek(start)
            while remaining > 0:
                chunk = handle.read(min(self.chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk

    def read(self, path: Path, byte_range: FullRange | PartialRange) -> bytes:
        return b"".join(self.stream(path, byte_range))
