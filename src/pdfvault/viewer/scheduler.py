from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from pdfvault.core.config import ViewerConfig
from pdfvault.core.errors import DecodeError, LoadError, LoadErrorReason, NetworkError, RenderCancelled
from pdfvault.viewer.decoder import DocumentHandle, PageHandle, RenderTask
from pdfvault.viewer.page_cache import PageCache
from pdfvault.viewer.surface import PaintSurface

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"


@dataclass(frozen=True, slots=True)
class PageRequest:
    page_number: int
    scale: float


@dataclass(slots=True)
class RenderCallbacks:
    """Narrow interface the scheduler reports through; it never sees the controller."""

    on_rendered: Callable[[int, float, bool], None]
    on_error: Callable[[LoadError], None]
    on_idle: Callable[[], None] | None = None


def classify_failure(exc: BaseException) -> LoadErrorReason:
    if isinstance(exc, (DecodeError, NetworkError)):
        return exc.reason
    return LoadErrorReason.RENDER


class RenderScheduler:
    """Single-flight page renderer for one viewer.

    At most one render runs at a time. Requests that arrive meanwhile collapse
    into a single pending slot where the latest request wins; when the current
    render finishes, the pending request (if any) runs next.
    """

    def __init__(
        self,
        document: DocumentHandle,
        surface: PaintSurface,
        cache: PageCache,
        callbacks: RenderCallbacks,
        *,
        config: ViewerConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._document = document
        self._surface = surface
        self._cache = cache
        self._callbacks = callbacks
        self._config = config or ViewerConfig()
        self._sleep = sleep

        self._state = SchedulerState.IDLE
        self._current: PageRequest | None = None
        self._pending: PageRequest | None = None
        self._drain_task: asyncio.Task[None] | None = None
        self._render_task: RenderTask | None = None
        self._preloads: dict[int, asyncio.Task[PageHandle | None]] = {}
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_rendering(self) -> bool:
        return self._state is SchedulerState.RENDERING

    @property
    def current_page(self) -> int | None:
        return self._current.page_number if self._current else None

    @property
    def pending_page(self) -> int | None:
        return self._pending.page_number if self._pending else None

    @property
    def preloading_pages(self) -> list[int]:
        return sorted(self._preloads)

    def request_page(self, page_number: int, scale: float) -> None:
        request = PageRequest(page_number, scale)
        if self._state is SchedulerState.RENDERING:
            if self._pending is not None:
                logger.debug("Dropping queued page %s in favour of %s", self._pending.page_number, page_number)
            self._pending = request
            return

        self._state = SchedulerState.RENDERING
        self._current = request
        self._idle.clear()
        self._drain_task = asyncio.get_running_loop().create_task(self._drain(request))

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def wait_preloads(self) -> None:
        if self._preloads:
            await asyncio.gather(*self._preloads.values(), return_exceptions=True)

    def cancel(self) -> None:
        """Cancel in-flight and queued work without waiting for it to stop."""
        self._pending = None
        if self._render_task is not None and not self._render_task.done():
            self._render_task.cancel()
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
        for task in list(self._preloads.values()):
            task.cancel()
        self._preloads.clear()

    async def _drain(self, request: PageRequest | None) -> None:
        try:
            while request is not None:
                self._current = request
                await self._render_with_retry(request)
                request, self._pending = self._pending, None
        finally:
            self._state = SchedulerState.IDLE
            self._current = None
            self._idle.set()
            if self._callbacks.on_idle is not None:
                self._callbacks.on_idle()

    async def _render_with_retry(self, request: PageRequest) -> None:
        attempt = 0
        while True:
            try:
                await self._render(request)
            except RenderCancelled:
                logger.debug("Render of page %s cancelled", request.page_number)
                return
            except Exception as exc:
                if self._pending is not None:
                    logger.debug("Page %s failed but is superseded: %s", request.page_number, exc)
                    return
                attempt += 1
                if attempt > self._config.max_retries:
                    reason = classify_failure(exc)
                    logger.error("Giving up on page %s after %s attempts: %s", request.page_number, attempt, exc)
                    self._callbacks.on_error(LoadError(reason, str(exc)))
                    return
                delay = self._config.retry_backoff_seconds * attempt
                logger.warning(
                    "Render of page %s failed (attempt %s/%s), retrying in %.1fs: %s",
                    request.page_number,
                    attempt,
                    self._config.max_retries,
                    delay,
                    exc,
                )
                await self._sleep(delay)
            else:
                self._schedule_preload(request.page_number)
                return

    async def _render(self, request: PageRequest) -> None:
        page = await self._page(request.page_number)
        factor = self._config.low_fidelity_factor
        if self._config.progressive_rendering and factor < 1:
            await self._paint(page, request.scale * factor)
            if self._pending is not None:
                self._callbacks.on_rendered(request.page_number, request.scale, False)
                return
        await self._paint(page, request.scale)
        self._callbacks.on_rendered(request.page_number, request.scale, True)

    async def _paint(self, page: PageHandle, scale: float) -> None:
        previous = self._render_task
        if previous is not None and not previous.done():
            previous.cancel()
        task = page.render(scale * self._surface.pixel_ratio)
        self._render_task = task
        frame = await task.result()
        self._surface.paint(frame)

    async def _page(self, page_number: int) -> PageHandle:
        page = self._cache.get(page_number)
        if page is not None:
            return page
        preload = self._preloads.get(page_number)
        if preload is not None:
            page = await asyncio.shield(preload)
            if page is not None:
                return page
        page = await self._document.get_page(page_number)
        self._cache.put(page_number, page)
        return page

    def _schedule_preload(self, page_number: int) -> None:
        last = min(page_number + self._config.preload_depth, self._document.page_count)
        loop = asyncio.get_running_loop()
        for number in range(page_number + 1, last + 1):
            if number in self._cache or number in self._preloads:
                continue
            self._preloads[number] = loop.create_task(self._preload(number))

    async def _preload(self, page_number: int) -> PageHandle | None:
        try:
            page = await self._document.get_page(page_number)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Preload of page %s failed: %s", page_number, exc)
            return None
        else:
            self._cache.put(page_number, page)
            return page
        finally:
            self._preloads.pop(page_number, None)
