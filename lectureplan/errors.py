"""
Exception types.

Input-contract violations (bad time strings, inverted ranges, malformed
records) are ValueError subclasses so callers can treat them like any other
bad argument. SchedulingConflict is the only "runtime" failure: it carries
the structured reason produced by the candidate validator.
"""

from __future__ import annotations

from typing import Any


class LecturePlanError(Exception):
    """Base class for all errors raised by lectureplan."""


class InvalidTimeError(LecturePlanError, ValueError):
    """A wall-clock string is not a valid 'HH:MM' time."""


class InvalidTimeRangeError(LecturePlanError, ValueError):
    """An end time is not strictly after its start time."""


class InvalidLectureError(LecturePlanError, ValueError):
    """A recurring lecture violates one of its invariants."""


class InvalidExceptionError(LecturePlanError, ValueError):
    """A reschedule exception does not refer to a real occurrence."""


class RecordError(LecturePlanError, ValueError):
    """An API record could not be converted into a model object."""

    def __init__(self, message: str, record: Any = None) -> None:
        super().__init__(message)
        self.record = record


class SchedulingConflict(LecturePlanError):
    """
    Raised when a candidate lecture or reschedule cannot be admitted.

    The attached reason names the resource (room, instructor, assistant)
    and the existing lecture that already occupies it.
    """

    def __init__(self, reason: Any) -> None:
        super().__init__(str(getattr(reason, "message", reason)))
        self.reason = reason


class PortalError(LecturePlanError):
    """The remote portal API could not be reached or answered with an error."""
