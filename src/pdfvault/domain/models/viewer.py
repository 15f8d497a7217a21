from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pdfvault.core.errors import LoadError


class ViewerPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    DISPOSED = "disposed"


@dataclass(slots=True)
class ViewerState:
    current_page: int = 1
    total_pages: int = 0
    zoom_scale: float = 1.2
    is_fullscreen: bool = False
    is_rendering: bool = False
    pending_page: int | None = None
    phase: ViewerPhase = ViewerPhase.IDLE
    last_error: LoadError | None = None


@dataclass(frozen=True, slots=True)
class ControlsState:
    can_prev: bool
    can_next: bool
    can_zoom_in: bool
    can_zoom_out: bool
    zoom_percent: int
    is_fullscreen: bool


@dataclass(slots=True)
class CacheEntry:
    page_number: int
    page_handle: Any
    insertion_order: int
