"""
Grid projection.

Maps a time range onto percentages of a fixed visible window so a renderer
can draw proportionally sized blocks without knowing pixel geometry:

    position(t)    = clamp(0, 100, (t - window_start) / (window_end - window_start) * 100)
    width(s, e)    = clamp(0, 100, (e - s) / (window_end - window_start) * 100)
"""

from __future__ import annotations

from dataclasses import dataclass

from lectureplan.errors import InvalidTimeRangeError
from lectureplan.times import check_range, from_minutes, to_minutes

DAY_START_MIN = 8 * 60  # 08:00
DAY_END_MIN = 17 * 60  # 17:00


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


@dataclass(frozen=True)
class GridWindow:
    start: int = DAY_START_MIN
    end: int = DAY_END_MIN

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidTimeRangeError(f"Grid window end ({self.end}) must be after its start ({self.start})")

    @classmethod
    def from_strings(cls, start: str, end: str) -> "GridWindow":
        return cls(to_minutes(start), to_minutes(end))

    @property
    def total(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Projection:
    position: float
    width: float


def position(window: GridWindow, time: int) -> float:
    return _clamp((time - window.start) / window.total * 100)


def width(window: GridWindow, start: int, end: int) -> float:
    check_range(start, end)
    return _clamp((end - start) / window.total * 100)


def project(window_start: int, window_end: int, start: int, end: int) -> Projection:
    """
    Project one lecture range onto the window [window_start, window_end].

    Both values are percentages in [0, 100]; a lecture running past either
    edge comes back as a truncated block instead of overflowing.
    """
    check_range(start, end)
    window = GridWindow(window_start, window_end)
    return Projection(position=position(window, start), width=width(window, start, end))


def hour_marks(window: GridWindow) -> list[tuple[str, float]]:
    """
    One (label, position) pair per full hour inside the window, edges included.
    """
    first = -(-window.start // 60) * 60
    return [(from_minutes(m), position(window, m)) for m in range(first, window.end + 1, 60) if m < 24 * 60]
