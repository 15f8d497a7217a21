import asyncio

from viewer_fakes import FakeDocument, RecordingSleep

from pdfvault.core.config import ViewerConfig
from pdfvault.core.errors import LoadError, LoadErrorReason
from pdfvault.viewer.page_cache import PageCache
from pdfvault.viewer.scheduler import RenderCallbacks, RenderScheduler, SchedulerState
from pdfvault.viewer.surface import MemorySurface


class Recorder:
    def __init__(self) -> None:
        self.rendered: list[tuple[int, float, bool]] = []
        self.errors: list[LoadError] = []

    def callbacks(self) -> RenderCallbacks:
        return RenderCallbacks(
            on_rendered=lambda page, scale, high: self.rendered.append((page, scale, high)),
            on_error=self.errors.append,
        )


def _scheduler(document: FakeDocument, recorder: Recorder, surface: MemorySurface | None = None, **overrides):
    sleep = overrides.pop("sleep", RecordingSleep())
    config = ViewerConfig(**{"retry_backoff_seconds": 0, **overrides})
    cache = PageCache(config.max_cache_size)
    scheduler = RenderScheduler(
        document,
        surface or MemorySurface(),
        cache,
        recorder.callbacks(),
        config=config,
        sleep=sleep,
    )
    return scheduler, cache


def test_requests_during_render_coalesce_to_latest() -> None:
    recorder = Recorder()
    surface = MemorySurface()

    async def scenario() -> FakeDocument:
        gate = asyncio.Event()
        document = FakeDocument(page_count=10, gate=gate)
        scheduler, _ = _scheduler(document, recorder, surface)

        scheduler.request_page(1, 1.0)
        await asyncio.sleep(0)
        for page in (2, 5, 7):
            scheduler.request_page(page, 1.0)
        assert scheduler.is_rendering
        assert scheduler.pending_page == 7

        gate.set()
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.pending_page is None
        return document

    document = asyncio.run(scenario())

    assert [page for page, _, _ in recorder.rendered] == [1, 7]
    # Page 1 was superseded after its low-fidelity pass; page 7 got both passes.
    assert recorder.rendered == [(1, 1.0, False), (7, 1.0, True)]
    assert [(f.page_number, f.scale) for f in surface.frames] == [(1, 0.5), (7, 0.5), (7, 1.0)]
    assert 2 not in [number for number, _ in document.render_calls]
    assert recorder.errors == []


def test_non_progressive_renders_single_pass_at_pixel_ratio() -> None:
    recorder = Recorder()
    surface = MemorySurface(pixel_ratio=2.0)

    async def scenario() -> FakeDocument:
        document = FakeDocument(page_count=3)
        scheduler, _ = _scheduler(document, recorder, surface, progressive_rendering=False)
        scheduler.request_page(2, 1.5)
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        return document

    document = asyncio.run(scenario())

    assert document.render_calls == [(2, 3.0)]
    assert recorder.rendered == [(2, 1.5, True)]


def test_successful_render_preloads_following_pages() -> None:
    recorder = Recorder()

    async def scenario():
        document = FakeDocument(page_count=4)
        scheduler, cache = _scheduler(document, recorder)
        scheduler.request_page(3, 1.0)
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        return document, cache, scheduler

    document, cache, scheduler = asyncio.run(scenario())

    # Only page 4 exists after 3; preloading stops at the last page.
    assert sorted(document.get_page_calls) == [3, 4]
    assert 4 in cache
    assert scheduler.preloading_pages == []


def test_cached_pages_are_not_decoded_again() -> None:
    recorder = Recorder()

    async def scenario() -> FakeDocument:
        document = FakeDocument(page_count=5)
        scheduler, _ = _scheduler(document, recorder)
        scheduler.request_page(1, 1.0)
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        scheduler.request_page(2, 1.0)
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        return document

    document = asyncio.run(scenario())

    assert document.get_page_calls.count(2) == 1
    assert document.get_page_calls.count(1) == 1


def test_preload_failure_is_swallowed() -> None:
    recorder = Recorder()

    async def scenario():
        document = FakeDocument(page_count=5)
        document.broken_pages = {2}
        scheduler, cache = _scheduler(document, recorder)
        scheduler.request_page(1, 1.0)
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        return cache

    cache = asyncio.run(scenario())

    assert recorder.errors == []
    assert recorder.rendered == [(1, 1.0, True)]
    assert 2 not in cache
    assert 3 in cache


def test_render_retries_with_linear_backoff_then_succeeds() -> None:
    recorder = Recorder()
    sleep = RecordingSleep()

    async def scenario() -> None:
        document = FakeDocument(page_count=2)
        document.render_failures = {1: 2}
        scheduler, _ = _scheduler(document, recorder, sleep=sleep, retry_backoff_seconds=1.0)
        scheduler.request_page(1, 1.0)
        await scheduler.wait_idle()

    asyncio.run(scenario())

    assert sleep.delays == [1.0, 2.0]
    assert recorder.errors == []
    assert recorder.rendered == [(1, 1.0, True)]


def test_render_gives_up_after_max_retries() -> None:
    recorder = Recorder()
    sleep = RecordingSleep()

    async def scenario() -> FakeDocument:
        document = FakeDocument(page_count=2)
        document.render_failures = {1: 99}
        scheduler, _ = _scheduler(document, recorder, sleep=sleep, retry_backoff_seconds=1.0)
        scheduler.request_page(1, 1.0)
        await scheduler.wait_idle()
        return document

    document = asyncio.run(scenario())

    assert sleep.delays == [1.0, 2.0, 3.0]
    assert len(document.render_calls) == 4
    assert recorder.rendered == []
    assert len(recorder.errors) == 1
    assert recorder.errors[0].reason is LoadErrorReason.RENDER


def test_failure_superseded_by_pending_request_is_not_retried() -> None:
    recorder = Recorder()

    async def scenario() -> FakeDocument:
        gate = asyncio.Event()
        document = FakeDocument(page_count=5, gate=gate)
        document.render_failures = {1: 1}
        scheduler, _ = _scheduler(document, recorder)
        scheduler.request_page(1, 1.0)
        await asyncio.sleep(0)
        scheduler.request_page(3, 1.0)
        gate.set()
        await scheduler.wait_idle()
        await scheduler.wait_preloads()
        return document

    document = asyncio.run(scenario())

    assert [number for number, _ in document.render_calls].count(1) == 1
    assert recorder.errors == []
    assert recorder.rendered == [(3, 1.0, True)]


def test_cancel_stops_inflight_and_pending_work() -> None:
    recorder = Recorder()

    async def scenario():
        gate = asyncio.Event()
        document = FakeDocument(page_count=5, gate=gate)
        scheduler, _ = _scheduler(document, recorder)
        scheduler.request_page(1, 1.0)
        await asyncio.sleep(0)
        scheduler.request_page(4, 1.0)

        scheduler.cancel()
        await scheduler.wait_idle()
        gate.set()
        await asyncio.sleep(0)
        return document, scheduler

    document, scheduler = asyncio.run(scenario())

    assert recorder.rendered == []
    assert recorder.errors == []
    assert scheduler.state is SchedulerState.IDLE
    assert scheduler.pending_page is None
    assert document.tasks[0].cancelled
    assert 4 not in document.get_page_calls
