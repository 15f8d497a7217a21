from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

Handler = Callable[[Any], None]


@dataclass(slots=True)
class KeyEvent:
    key: str
    focused: bool = True
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass(frozen=True, slots=True)
class TouchEvent:
    kind: str  # "start" | "end"
    x: float
    y: float


class Binding:
    def __init__(self, source: "InputSource", handler: Handler) -> None:
        self._source = source
        self._handler = handler
        self.active = True

    def release(self) -> None:
        if self.active:
            self._source._remove(self._handler)
            self.active = False


class InputSource:
    """A single host control (button, keyboard, touch area) that emits events."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Handler] = []

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler) -> Binding:
        self._handlers.append(handler)
        return Binding(self, handler)

    def emit(self, event: Any = None) -> None:
        for handler in list(self._handlers):
            handler(event)

    def _remove(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)


@dataclass(slots=True)
class ControlPanel:
    prev: InputSource = field(default_factory=lambda: InputSource("prev"))
    next: InputSource = field(default_factory=lambda: InputSource("next"))
    zoom_in: InputSource = field(default_factory=lambda: InputSource("zoom_in"))
    zoom_out: InputSource = field(default_factory=lambda: InputSource("zoom_out"))
    fullscreen: InputSource = field(default_factory=lambda: InputSource("fullscreen"))
    keyboard: InputSource = field(default_factory=lambda: InputSource("keyboard"))
    touch: InputSource = field(default_factory=lambda: InputSource("touch"))

    def sources(self) -> tuple[InputSource, ...]:
        return (self.prev, self.next, self.zoom_in, self.zoom_out, self.fullscreen, self.keyboard, self.touch)

    def handler_count(self) -> int:
        return sum(source.handler_count for source in self.sources())
