from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pdfvault.viewer.decoder import RenderedPage


class PaintSurface(Protocol):
    """Host-supplied drawing target; the viewer's counterpart of a canvas."""

    pixel_ratio: float

    def paint(self, frame: RenderedPage) -> None: ...

    def clear(self) -> None: ...

    def release(self) -> None: ...


class MemorySurface:
    """Keeps painted frames in memory; used headless and in tests."""

    def __init__(self, pixel_ratio: float = 1.0, keep_history: bool = True) -> None:
        self.pixel_ratio = pixel_ratio
        self.keep_history = keep_history
        self.frames: list[RenderedPage] = []
        self.released = False

    @property
    def last_frame(self) -> RenderedPage | None:
        return self.frames[-1] if self.frames else None

    def paint(self, frame: RenderedPage) -> None:
        if self.released:
            raise RuntimeError("Surface has been released")
        if not self.keep_history:
            self.frames.clear()
        self.frames.append(frame)

    def clear(self) -> None:
        self.frames.clear()

    def release(self) -> None:
        self.frames.clear()
        self.released = True

    def save_png(self, path: Path) -> Path:
        frame = self.last_frame
        if frame is None:
            raise RuntimeError("Nothing has been painted yet")
        path.write_bytes(frame.png)
        return path
