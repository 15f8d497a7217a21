from __future__ import annotations

import itertools
from collections import OrderedDict
from typing import Any

from pdfvault.domain.models.viewer import CacheEntry

DEFAULT_MAX_CACHE_SIZE = 10


class PageCache:
    """Bounded page-handle store with strict insertion-order eviction.

    Overwriting an existing page keeps its original position; only a page that
    was evicted and put again moves to the back.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_CACHE_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: OrderedDict[int, CacheEntry] = OrderedDict()
        self._counter = itertools.count()

    def get(self, page_number: int) -> Any | None:
        entry = self._entries.get(page_number)
        return entry.page_handle if entry is not None else None

    def put(self, page_number: int, page_handle: Any) -> None:
        entry = self._entries.get(page_number)
        if entry is not None:
            entry.page_handle = page_handle
            return
        self._entries[page_number] = CacheEntry(page_number, page_handle, next(self._counter))
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def pages(self) -> list[int]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, page_number: object) -> bool:
        return page_number in self._entries

    def __len__(self) -> int:
        return len(self._entries)
