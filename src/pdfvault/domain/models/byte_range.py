from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FullRange:
    total_size: int

    @property
    def length(self) -> int:
        return self.total_size


@dataclass(frozen=True, slots=True)
class PartialRange:
    """Inclusive byte span; 0 <= start <= end < total_size."""

    start: int
    end: int
    total_size: int

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end < self.total_size:
            raise ValueError(f"invalid byte range {self.start}-{self.end}/{self.total_size}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total_size}"


@dataclass(frozen=True, slots=True)
class UnsatisfiableRange:
    total_size: int

    @property
    def content_range(self) -> str:
        return f"bytes */{self.total_size}"


ByteRange = FullRange | PartialRange | UnsatisfiableRange
