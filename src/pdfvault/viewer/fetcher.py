from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, urlparse

import httpx

from pdfvault.core.errors import LoadErrorReason, NetworkError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

_NOT_FOUND_STATUSES = {404, 410}


def is_valid_source(source: str) -> bool:
    """Accept http(s) URLs with a host, file:// URLs and plain filesystem paths."""
    if not source or not source.strip():
        return False
    parsed = urlparse(source.strip())
    if parsed.scheme in {"http", "https"}:
        return bool(parsed.netloc)
    if parsed.scheme == "file":
        return bool(parsed.path)
    # Windows drive letters parse as one-letter schemes.
    return parsed.scheme == "" or len(parsed.scheme) == 1


class DocumentFetcher:
    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, source: str, on_progress: ProgressCallback | None = None) -> bytes:
        parsed = urlparse(source.strip())
        if parsed.scheme in {"http", "https"}:
            return await self._fetch_http(source.strip(), on_progress)
        path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(source.strip())
        return await self._read_local(path.expanduser(), on_progress)

    async def _fetch_http(self, url: str, on_progress: ProgressCallback | None) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code in _NOT_FOUND_STATUSES:
                        raise NetworkError(f"Document not found: HTTP {response.status_code}", LoadErrorReason.NOT_FOUND)
                    if response.status_code >= 400:
                        raise NetworkError(f"Failed to fetch document: HTTP {response.status_code}")
                    total = _content_length(response)
                    received = 0
                    chunks: list[bytes] = []
                    async for chunk in response.aiter_bytes():
                        chunks.append(chunk)
                        received += len(chunk)
                        if on_progress is not None and total:
                            on_progress(min(100, round(received * 100 / total)))
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Timed out fetching {url}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Failed to fetch {url}: {exc}") from exc
        logger.debug("Fetched %s bytes from %s", received, url)
        return b"".join(chunks)

    @staticmethod
    async def _read_local(path: Path, on_progress: ProgressCallback | None) -> bytes:
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise NetworkError(f"Document not found: {path}", LoadErrorReason.NOT_FOUND) from exc
        except OSError as exc:
            raise NetworkError(f"Failed to read {path}: {exc}") from exc
        if on_progress is not None:
            on_progress(100)
        return data


def _content_length(response: httpx.Response) -> int | None:
    raw = response.headers.get("content-length")
    if raw is None or not (raw.isascii() and raw.isdigit()):
        return None
    return int(raw) or None
