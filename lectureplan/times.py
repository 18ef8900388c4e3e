"""
Wall-clock arithmetic.

All comparisons in the scheduler work on integer minutes since midnight.
Intervals are half-open: a lecture ending at 10:00 and one starting at 10:00
do not overlap.
"""

from __future__ import annotations

from lectureplan.errors import InvalidTimeError, InvalidTimeRangeError

MINUTES_PER_DAY = 24 * 60


def to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.

    A trailing ':SS' part (as sent by the API for reschedule times) must be
    a valid seconds value and is then dropped.
    Raises InvalidTimeError for invalid formats or values.
    """
    if not isinstance(hhmm, str):
        raise InvalidTimeError(f"Invalid time format: {hhmm!r}")

    parts = hhmm.strip().split(":")
    if len(parts) == 3:
        seconds = parts.pop()
        if not (seconds.isdigit() and len(seconds) == 2 and int(seconds) <= 59):
            raise InvalidTimeError(f"Invalid time format: {hhmm!r}")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise InvalidTimeError(f"Invalid time format: {hhmm!r}")

    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise InvalidTimeError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


def from_minutes(minutes: int) -> str:
    """
    Convert minutes since midnight back to a zero padded 'HH:MM'.
    """
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeError(f"Minutes out of range: {minutes!r}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # start < other_end AND other_start < end
    return a_start < b_end and b_start < a_end


def check_range(start: int, end: int) -> None:
    """
    Reject empty or inverted ranges before any comparison is attempted.
    """
    if start >= end:
        raise InvalidTimeRangeError(
            f"End time {from_minutes(end)} must be after start time {from_minutes(start)}"
        )


def format_range(start: int, end: int) -> str:
    return f"{from_minutes(start)}-{from_minutes(end)}"
