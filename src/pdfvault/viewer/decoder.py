from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from pdfvault.core.errors import DecodeError, LoadErrorReason, RenderCancelled
from pdfvault.viewer.runtime import ensure_initialized, require_pymupdf

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderedPage:
    page_number: int
    scale: float
    width: int
    height: int
    png: bytes


class RenderTask(Protocol):
    def cancel(self) -> None: ...

    def done(self) -> bool: ...

    async def result(self) -> RenderedPage: ...


class PageHandle(Protocol):
    number: int

    def render(self, scale: float) -> RenderTask: ...


class DocumentHandle(Protocol):
    page_count: int

    async def get_page(self, number: int) -> PageHandle: ...

    def close(self) -> None: ...


class DocumentDecoder(Protocol):
    async def open(self, data: bytes) -> DocumentHandle: ...


class ThreadRenderTask:
    """Runs a blocking paint in a worker thread; cancellation is cooperative.

    ``cancel()`` flags the work and detaches the awaiting side immediately; a
    paint already running in the thread finishes on its own and is discarded.
    """

    def __init__(self, work: Callable[[threading.Event], RenderedPage]) -> None:
        self._cancel_event = threading.Event()
        self._task = asyncio.get_running_loop().create_task(asyncio.to_thread(work, self._cancel_event))

    def cancel(self) -> None:
        self._cancel_event.set()
        self._task.cancel()

    def done(self) -> bool:
        return self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def result(self) -> RenderedPage:
        try:
            frame = await self._task
        except asyncio.CancelledError:
            if self._cancel_event.is_set():
                raise RenderCancelled("render cancelled") from None
            raise
        if self._cancel_event.is_set():
            raise RenderCancelled("render cancelled")
        return frame


class PyMuPdfPage:
    def __init__(self, document: "PyMuPdfDocument", page: Any, number: int) -> None:
        self._document = document
        self._page = page
        self.number = number

    def render(self, scale: float) -> ThreadRenderTask:
        return ThreadRenderTask(lambda cancel_event: self._paint(scale, cancel_event))

    def _paint(self, scale: float, cancel_event: threading.Event) -> RenderedPage:
        if cancel_event.is_set():
            raise RenderCancelled("render cancelled before start")
        fitz = self._document.fitz
        with self._document.lock:
            try:
                pixmap = self._page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            except RuntimeError as exc:
                raise DecodeError(f"Failed to paint page {self.number}: {exc}", LoadErrorReason.RENDER) from exc
        return RenderedPage(
            page_number=self.number,
            scale=scale,
            width=pixmap.width,
            height=pixmap.height,
            png=pixmap.tobytes("png"),
        )


class PyMuPdfDocument:
    def __init__(self, fitz: Any, document: Any) -> None:
        self.fitz = fitz
        self._document = document
        # MuPDF documents are not thread-safe; decode and paint share one lock.
        self.lock = threading.Lock()
        self.page_count = int(document.page_count)

    async def get_page(self, number: int) -> PyMuPdfPage:
        if not 1 <= number <= self.page_count:
            raise DecodeError(f"Page {number} is out of range 1..{self.page_count}")
        return await asyncio.to_thread(self._load_page, number)

    def _load_page(self, number: int) -> PyMuPdfPage:
        with self.lock:
            try:
                page = self._document.load_page(number - 1)
            except (RuntimeError, ValueError) as exc:
                raise DecodeError(f"Failed to decode page {number}: {exc}") from exc
        return PyMuPdfPage(self, page, number)

    def close(self) -> None:
        with self.lock:
            if not self._document.is_closed:
                self._document.close()


class PyMuPdfDecoder:
    async def open(self, data: bytes) -> PyMuPdfDocument:
        ensure_initialized()
        fitz = require_pymupdf()
        if not data:
            raise DecodeError("Document is empty")
        return await asyncio.to_thread(self._open, fitz, data)

    @staticmethod
    def _open(fitz: Any, data: bytes) -> PyMuPdfDocument:
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise DecodeError(f"Invalid PDF structure: {exc}") from exc
        if document.needs_pass:
            document.close()
            raise DecodeError("Document is password protected")
        if document.page_count < 1:
            document.close()
            raise DecodeError("Document has no pages")
        logger.debug("Opened PDF with %s pages", document.page_count)
        return PyMuPdfDocument(fitz, document)
