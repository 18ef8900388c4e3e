"""
lectureplan – weekly lecture timetable core.

The four pieces most callers need:

    resolve_occurrences(lectures, exceptions, date)   -> list[Occurrence]
    detect_conflicts(lectures, course_codes)          -> dict[lecture_id, list[str]]
    validate_candidate(lectures, candidate, ...)      -> ConflictReason | None
    project(window_start, window_end, start, end)     -> Projection(position, width)
"""

from lectureplan.conflicts import ConflictReason, detect_conflicts, validate_candidate
from lectureplan.grid import Projection, project
from lectureplan.model import LectureKind, Occurrence, RecurringLecture, RescheduleException, Snapshot, StudyShift
from lectureplan.occurrences import resolve_occurrences

__all__ = [
    "ConflictReason",
    "LectureKind",
    "Occurrence",
    "Projection",
    "RecurringLecture",
    "RescheduleException",
    "Snapshot",
    "StudyShift",
    "detect_conflicts",
    "project",
    "resolve_occurrences",
    "validate_candidate",
]
