import pytest

from pdfvault.viewer.page_cache import PageCache


def test_cache_evicts_oldest_insertion_first() -> None:
    cache = PageCache(max_size=10)
    for page in range(1, 12):
        cache.put(page, f"handle-{page}")

    assert len(cache) == 10
    assert 1 not in cache
    assert cache.pages() == list(range(2, 12))


def test_reading_does_not_refresh_position() -> None:
    cache = PageCache(max_size=3)
    for page in (1, 2, 3):
        cache.put(page, page)
    assert cache.get(1) == 1

    cache.put(4, 4)

    assert cache.get(1) is None
    assert cache.pages() == [2, 3, 4]


def test_overwrite_keeps_position_but_updates_handle() -> None:
    cache = PageCache(max_size=3)
    for page in (1, 2, 3):
        cache.put(page, f"old-{page}")

    cache.put(1, "new-1")
    assert cache.get(1) == "new-1"
    cache.put(4, "h4")

    assert 1 not in cache
    assert cache.pages() == [2, 3, 4]


def test_clear_and_size_validation() -> None:
    cache = PageCache(max_size=2)
    cache.put(1, "a")
    cache.clear()

    assert len(cache) == 0
    assert cache.get(1) is None
    with pytest.raises(ValueError):
        PageCache(max_size=0)
