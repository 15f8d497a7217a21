from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from pdfvault.core.config import ViewerConfig
from pdfvault.core.errors import DecodeError, LoadError, LoadErrorReason, NetworkError
from pdfvault.domain.models.viewer import ControlsState, ViewerPhase, ViewerState
from pdfvault.viewer.controls import Binding, ControlPanel, KeyEvent, TouchEvent
from pdfvault.viewer.decoder import DocumentDecoder, DocumentHandle, PyMuPdfDecoder
from pdfvault.viewer.fetcher import DocumentFetcher, is_valid_source
from pdfvault.viewer.page_cache import PageCache
from pdfvault.viewer.scheduler import RenderCallbacks, RenderScheduler, Sleep
from pdfvault.viewer.surface import PaintSurface

logger = logging.getLogger(__name__)


class ViewerListener(Protocol):
    def on_load(self, total_pages: int) -> None: ...

    def on_progress(self, percent: int) -> None: ...

    def on_page_change(self, page: int, total_pages: int, announcement: str) -> None: ...

    def on_error(self, error: LoadError) -> None: ...

    def on_fullscreen_change(self, is_fullscreen: bool) -> None: ...


class NullListener:
    """Listener that ignores every event; subclass and override what you need."""

    def on_load(self, total_pages: int) -> None:
        pass

    def on_progress(self, percent: int) -> None:
        pass

    def on_page_change(self, page: int, total_pages: int, announcement: str) -> None:
        pass

    def on_error(self, error: LoadError) -> None:
        pass

    def on_fullscreen_change(self, is_fullscreen: bool) -> None:
        pass


class ViewerController:
    """Top-level viewer: wires navigation, zoom and fullscreen intents to rendering.

    Controls are bound once here and released by :meth:`dispose`, which must be
    called when the host stops showing this document.
    """

    def __init__(
        self,
        source: str,
        surface: PaintSurface,
        controls: ControlPanel | None = None,
        *,
        config: ViewerConfig | None = None,
        listener: ViewerListener | None = None,
        fetcher: DocumentFetcher | None = None,
        decoder: DocumentDecoder | None = None,
        initial_page: int = 1,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.source = source
        self.config = config or ViewerConfig()
        self.state = ViewerState(current_page=initial_page, zoom_scale=self.config.initial_scale)
        self._surface = surface
        self._listener: ViewerListener = listener or NullListener()
        self._fetcher = fetcher or DocumentFetcher()
        self._decoder = decoder or PyMuPdfDecoder()
        self._sleep = sleep

        self._data: bytes | None = None
        self._document: DocumentHandle | None = None
        self._cache = PageCache(self.config.max_cache_size)
        self._scheduler: RenderScheduler | None = None
        self._settle_handle: asyncio.TimerHandle | None = None
        self._touch_origin: tuple[float, float] | None = None
        self._disposed = False
        self._bindings: list[Binding] = self._bind_controls(controls) if controls is not None else []

    # -- lifecycle -----------------------------------------------------------------

    async def load(self) -> bool:
        """Fetch and decode the document, then render the current page."""
        if self._disposed:
            return False
        if self._document is not None or self.state.phase is ViewerPhase.LOADING:
            logger.debug("Ignoring load of %s: already %s", self.source, self.state.phase.value)
            return self._document is not None
        if not is_valid_source(self.source):
            self._fail(LoadError(LoadErrorReason.INVALID_SOURCE, f"Invalid document source: {self.source!r}"))
            return False

        self.state.phase = ViewerPhase.LOADING
        self.state.last_error = None
        attempt = 0
        while True:
            try:
                document = await self.retry_decode()
                break
            except (NetworkError, DecodeError) as exc:
                if self._disposed:
                    return False
                terminal = isinstance(exc, DecodeError) and exc.reason is LoadErrorReason.MALFORMED
                attempt += 1
                if terminal or attempt > self.config.max_retries:
                    self._fail(LoadError(exc.reason, str(exc)))
                    return False
                delay = self.config.retry_backoff_seconds * attempt
                logger.warning(
                    "Loading %s failed (attempt %s/%s), retrying in %.1fs: %s",
                    self.source,
                    attempt,
                    self.config.max_retries,
                    delay,
                    exc,
                )
                await self._sleep(delay)

        if self._disposed:
            document.close()
            return False
        self._attach(document)
        return True

    async def retry_decode(self) -> DocumentHandle:
        """Decode the already-fetched bytes, fetching them first only when missing.

        A network failure drops the buffered bytes so the next attempt refetches.
        """
        if self._data is None:
            try:
                self._data = await self._fetcher.fetch(self.source, on_progress=self._listener.on_progress)
            except NetworkError:
                self._data = None
                raise
        return await self._decoder.open(self._data)

    async def retry(self) -> bool:
        """User-initiated retry from the error state."""
        if self._disposed or self.state.phase is not ViewerPhase.ERROR:
            return False
        if self._document is not None and self._scheduler is not None:
            self.state.phase = ViewerPhase.READY
            self.state.last_error = None
            self._render_current()
            return True
        return await self.load()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for binding in self._bindings:
            binding.release()
        self._bindings.clear()
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None
        if self._scheduler is not None:
            self._scheduler.cancel()
        self._cache.clear()
        if self._document is not None:
            self._document.close()
            self._document = None
        self._data = None
        self._surface.clear()
        self._surface.release()
        self.state.phase = ViewerPhase.DISPOSED
        self.state.is_rendering = False
        self.state.pending_page = None

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def scheduler(self) -> RenderScheduler | None:
        return self._scheduler

    async def wait_idle(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.wait_idle()
        self._sync_render_state()

    # -- navigation ----------------------------------------------------------------

    def go_to(self, page: int) -> bool:
        if not self._can_navigate():
            return False
        if page < 1 or page > self.state.total_pages or page == self.state.current_page:
            return False
        self.state.current_page = page
        self._render_current()
        return True

    def next(self) -> bool:
        return self.go_to(self.state.current_page + 1)

    def prev(self) -> bool:
        return self.go_to(self.state.current_page - 1)

    def first(self) -> bool:
        return self.go_to(1)

    def last(self) -> bool:
        return self.go_to(self.state.total_pages)

    # -- zoom / fullscreen ---------------------------------------------------------

    def zoom_in(self) -> bool:
        return self._set_scale(self.state.zoom_scale + self.config.zoom_step)

    def zoom_out(self) -> bool:
        return self._set_scale(self.state.zoom_scale - self.config.zoom_step)

    def toggle_fullscreen(self) -> bool:
        if self._disposed:
            return False
        self.state.is_fullscreen = not self.state.is_fullscreen
        self._listener.on_fullscreen_change(self.state.is_fullscreen)
        if self._scheduler is not None:
            # Layout reflows asynchronously; re-render once the viewport settles.
            if self._settle_handle is not None:
                self._settle_handle.cancel()
            self._settle_handle = asyncio.get_running_loop().call_later(
                self.config.fullscreen_settle_seconds,
                self._after_settle,
            )
        return self.state.is_fullscreen

    def controls_state(self) -> ControlsState:
        ready = self._can_navigate()
        return ControlsState(
            can_prev=ready and self.state.current_page > 1,
            can_next=ready and self.state.current_page < self.state.total_pages,
            can_zoom_in=self.state.zoom_scale < self.config.max_scale,
            can_zoom_out=self.state.zoom_scale > self.config.min_scale,
            zoom_percent=round(self.state.zoom_scale * 100),
            is_fullscreen=self.state.is_fullscreen,
        )

    def page_announcement(self) -> str:
        return f"Page {self.state.current_page} of {self.state.total_pages}"

    # -- internals -----------------------------------------------------------------

    def _attach(self, document: DocumentHandle) -> None:
        self._document = document
        self._scheduler = RenderScheduler(
            document,
            self._surface,
            self._cache,
            RenderCallbacks(
                on_rendered=self._on_rendered,
                on_error=self._on_render_error,
                on_idle=self._sync_render_state,
            ),
            config=self.config,
            sleep=self._sleep,
        )
        self.state.total_pages = document.page_count
        self.state.current_page = min(max(self.state.current_page, 1), document.page_count)
        self.state.phase = ViewerPhase.READY
        logger.info("Loaded %s (%s pages)", self.source, document.page_count)
        self._listener.on_load(document.page_count)
        self._render_current()

    def _can_navigate(self) -> bool:
        return not self._disposed and self._scheduler is not None and self.state.total_pages > 0

    def _render_current(self) -> None:
        assert self._scheduler is not None
        self._scheduler.request_page(self.state.current_page, self.state.zoom_scale)
        self._sync_render_state()

    def _set_scale(self, target: float) -> bool:
        if self._disposed:
            return False
        clamped = round(min(self.config.max_scale, max(self.config.min_scale, target)), 4)
        if clamped == self.state.zoom_scale:
            return False
        self.state.zoom_scale = clamped
        if self._can_navigate():
            self._render_current()
        return True

    def _after_settle(self) -> None:
        self._settle_handle = None
        if self._can_navigate():
            self._render_current()

    def _sync_render_state(self) -> None:
        if self._scheduler is None or self._disposed:
            return
        self.state.is_rendering = self._scheduler.is_rendering
        self.state.pending_page = self._scheduler.pending_page

    def _on_rendered(self, page: int, scale: float, high_fidelity: bool) -> None:
        self._sync_render_state()
        if self.state.phase is ViewerPhase.ERROR:
            self.state.phase = ViewerPhase.READY
            self.state.last_error = None
        if page == self.state.current_page and scale == self.state.zoom_scale:
            self._listener.on_page_change(page, self.state.total_pages, self.page_announcement())

    def _on_render_error(self, error: LoadError) -> None:
        self._fail(error)

    def _fail(self, error: LoadError) -> None:
        logger.error("Viewer error (%s): %s", error.reason.value, error)
        self.state.phase = ViewerPhase.ERROR
        self.state.last_error = error
        self._listener.on_error(error)

    def _bind_controls(self, controls: ControlPanel) -> list[Binding]:
        return [
            controls.prev.subscribe(lambda _event: self.prev()),
            controls.next.subscribe(lambda _event: self.next()),
            controls.zoom_in.subscribe(lambda _event: self.zoom_in()),
            controls.zoom_out.subscribe(lambda _event: self.zoom_out()),
            controls.fullscreen.subscribe(lambda _event: self.toggle_fullscreen()),
            controls.keyboard.subscribe(self._on_key),
            controls.touch.subscribe(self._on_touch),
        ]

    def _on_key(self, event: KeyEvent) -> None:
        if not event.focused and not self.state.is_fullscreen:
            return
        key = event.key
        if key in ("ArrowLeft", "PageUp"):
            self.prev()
        elif key in ("ArrowRight", "PageDown"):
            self.next()
        elif key == "Escape":
            if self.state.is_fullscreen:
                self.toggle_fullscreen()
        elif key in ("+", "="):
            self.zoom_in()
        elif key == "-":
            self.zoom_out()
        elif key == "Home":
            self.first()
        elif key == "End":
            self.last()
        else:
            return
        event.prevent_default()

    def _on_touch(self, event: TouchEvent) -> None:
        if event.kind == "start":
            self._touch_origin = (event.x, event.y)
            return
        if event.kind != "end" or self._touch_origin is None:
            return
        start_x, start_y = self._touch_origin
        self._touch_origin = None
        diff_x = start_x - event.x
        diff_y = start_y - event.y
        if abs(diff_x) > abs(diff_y) and abs(diff_x) > self.config.swipe_min_distance:
            if diff_x > 0:
                self.next()
            else:
                self.prev()
