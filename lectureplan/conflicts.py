"""
Conflict detection.

Two lectures conflict when they share a weekday, their time ranges overlap,
and they share a room or a person. Overlap rule (half-open intervals):
    start < other_end AND other_start < end

Only the recurring layer is checked by detect_conflicts(); reschedule
exceptions are not consulted there. detect_override_conflicts() is the
opt-in check for the override occurrences of a single date.
"""

from __future__ import annotations

import enum
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from lectureplan.errors import InvalidExceptionError, SchedulingConflict
from lectureplan.model import Occurrence, RecurringLecture, RescheduleException, weekday_of
from lectureplan.occurrences import resolve_occurrences
from lectureplan.times import format_range, overlaps


class Resource(str, enum.Enum):
    ROOM = "room"
    INSTRUCTOR = "instructor"


class ReasonKind(str, enum.Enum):
    ROOM = "room"
    INSTRUCTOR = "instructor"
    ASSISTANT = "assistant"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ConflictRecord:
    """One side of a detected overlap, as seen from `lecture_id`."""

    lecture_id: str
    resource: Resource
    other_lecture_id: str
    message: str


@dataclass(frozen=True)
class ConflictReason:
    """
    Why a candidate lecture (or reschedule) cannot be admitted.

    `lecture_id` is the existing lecture that blocks the candidate,
    `person_id` is set for instructor/assistant conflicts.
    """

    kind: ReasonKind
    lecture_id: str
    message: str
    room_id: Optional[str] = None
    person_id: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None

    def __str__(self) -> str:
        return self.message


def shares_person(a: RecurringLecture, b: RecurringLecture) -> bool:
    """
    True if the two lectures have a person in common.

    Checks primary vs primary and primary vs assistants in both directions,
    since one person can be primary on one lecture and assistant on another.
    """
    if a.instructor_id == b.instructor_id:
        return True
    return a.instructor_id in b.assistant_ids or b.instructor_id in a.assistant_ids


def _code(course_codes: Mapping[str, str], course_id: str) -> str:
    return course_codes.get(course_id) or course_id


def _by_weekday(lectures: Sequence[RecurringLecture]) -> dict[int, list[RecurringLecture]]:
    buckets: dict[int, list[RecurringLecture]] = defaultdict(list)
    for lec in lectures:
        buckets[lec.weekday].append(lec)
    return buckets


def detect_conflict_records(
    lectures: Iterable[RecurringLecture],
    course_codes: Optional[Mapping[str, str]] = None,
) -> list[ConflictRecord]:
    """
    Find every overlap among the recurring lectures, two records per
    conflicting pair and resource (one for each side).
    """
    codes = course_codes or {}
    lectures = tuple(lectures)
    records: list[ConflictRecord] = []

    # Bucketing by weekday only skips pairs that could never conflict
    for _, day_lectures in sorted(_by_weekday(lectures).items()):
        for i in range(len(day_lectures)):
            a = day_lectures[i]
            for j in range(i + 1, len(day_lectures)):
                b = day_lectures[j]
                if a.lecture_id == b.lecture_id:
                    continue
                if not overlaps(a.start, a.end, b.start, b.end):
                    continue

                a_code = _code(codes, a.course_id)
                b_code = _code(codes, b.course_id)

                if a.room_id == b.room_id:
                    records.append(
                        ConflictRecord(a.lecture_id, Resource.ROOM, b.lecture_id, f"Room conflict with {b_code}")
                    )
                    records.append(
                        ConflictRecord(b.lecture_id, Resource.ROOM, a.lecture_id, f"Room conflict with {a_code}")
                    )
                if shares_person(a, b):
                    records.append(
                        ConflictRecord(
                            a.lecture_id, Resource.INSTRUCTOR, b.lecture_id, f"Instructor conflict with {b_code}"
                        )
                    )
                    records.append(
                        ConflictRecord(
                            b.lecture_id, Resource.INSTRUCTOR, a.lecture_id, f"Instructor conflict with {a_code}"
                        )
                    )

    return records


def detect_conflicts(
    lectures: Iterable[RecurringLecture],
    course_codes: Optional[Mapping[str, str]] = None,
) -> dict[str, list[str]]:
    """
    Map lecture id -> list of conflict messages.

    A lecture absent from the mapping has no conflicts.
    """
    out: dict[str, list[str]] = {}
    for rec in detect_conflict_records(lectures, course_codes):
        out.setdefault(rec.lecture_id, []).append(rec.message)
    return out


# ---------------------------------------------------------------------------
# Candidate validation
# ---------------------------------------------------------------------------


def _name(names: Optional[Mapping[str, str]], key: Optional[str]) -> str:
    if key is None:
        return ""
    if names and names.get(key):
        return names[key]
    return key


def validate_candidate(
    lectures: Iterable[RecurringLecture],
    candidate: RecurringLecture,
    course_names: Optional[Mapping[str, str]] = None,
    room_names: Optional[Mapping[str, str]] = None,
    person_names: Optional[Mapping[str, str]] = None,
) -> Optional[ConflictReason]:
    """
    Check a new (or edited) lecture against the existing set.

    Returns None when the candidate can be admitted, otherwise the first
    conflict found. Per existing lecture the order is: room, primary
    instructor, then each assistant of the candidate. An existing lecture
    with the candidate's id is skipped so an edit does not clash with itself.
    """
    for lec in tuple(lectures):
        if lec.weekday != candidate.weekday or lec.lecture_id == candidate.lecture_id:
            continue
        if not overlaps(candidate.start, candidate.end, lec.start, lec.end):
            continue

        window = format_range(lec.start, lec.end)
        course = _name(course_names, lec.course_id)

        if lec.room_id == candidate.room_id:
            return ConflictReason(
                kind=ReasonKind.ROOM,
                lecture_id=lec.lecture_id,
                room_id=lec.room_id,
                start=lec.start,
                end=lec.end,
                message=f"Room {_name(room_names, lec.room_id)} is already booked by {course} from {window}",
            )

        if candidate.instructor_id in lec.people:
            return ConflictReason(
                kind=ReasonKind.INSTRUCTOR,
                lecture_id=lec.lecture_id,
                person_id=candidate.instructor_id,
                start=lec.start,
                end=lec.end,
                message=(
                    f"Instructor {_name(person_names, candidate.instructor_id)} "
                    f"is already committed to {course} from {window}"
                ),
            )

        for aid in candidate.assistant_ids:
            if aid in lec.people:
                return ConflictReason(
                    kind=ReasonKind.ASSISTANT,
                    lecture_id=lec.lecture_id,
                    person_id=aid,
                    start=lec.start,
                    end=lec.end,
                    message=f"Assistant {_name(person_names, aid)} is already committed to {course} from {window}",
                )

    return None


def ensure_admissible(
    lectures: Iterable[RecurringLecture],
    candidate: RecurringLecture,
    course_names: Optional[Mapping[str, str]] = None,
    room_names: Optional[Mapping[str, str]] = None,
    person_names: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Like validate_candidate(), but raises SchedulingConflict on rejection.
    """
    reason = validate_candidate(lectures, candidate, course_names, room_names, person_names)
    if reason is not None:
        raise SchedulingConflict(reason)


# ---------------------------------------------------------------------------
# Reschedules
# ---------------------------------------------------------------------------


def validate_reschedule(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    exception: RescheduleException,
) -> Optional[ConflictReason]:
    """
    Check a new reschedule exception before it is stored.

    Raises InvalidExceptionError when the exception does not refer to a real
    occurrence (unknown lecture, or an original date on the wrong weekday).
    Returns a DUPLICATE reason when that occurrence is already rescheduled,
    otherwise None.
    """
    owner = None
    for lec in tuple(lectures):
        if lec.lecture_id == exception.lecture_id:
            owner = lec
            break
    if owner is None:
        raise InvalidExceptionError(f"Exception {exception.exception_id}: unknown lecture {exception.lecture_id!r}")

    if weekday_of(exception.original_date) != owner.weekday:
        raise InvalidExceptionError(
            f"Exception {exception.exception_id}: {exception.original_date.isoformat()} "
            f"is not a weekday on which lecture {owner.lecture_id} takes place"
        )

    for other in tuple(exceptions):
        if other.exception_id == exception.exception_id:
            continue
        if other.lecture_id == exception.lecture_id and other.original_date == exception.original_date:
            return ConflictReason(
                kind=ReasonKind.DUPLICATE,
                lecture_id=owner.lecture_id,
                message=(
                    f"The {exception.original_date.isoformat()} occurrence of lecture "
                    f"{owner.lecture_id} is already rescheduled to {other.new_date.isoformat()}"
                ),
            )
    return None


def ensure_reschedule_admissible(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    exception: RescheduleException,
) -> None:
    reason = validate_reschedule(lectures, exceptions, exception)
    if reason is not None:
        raise SchedulingConflict(reason)


def _occurrence_clash(a: Occurrence, b: Occurrence) -> list[tuple[Resource, str]]:
    if not overlaps(a.start, a.end, b.start, b.end):
        return []
    out: list[tuple[Resource, str]] = []
    if a.room_id == b.room_id:
        out.append((Resource.ROOM, "Room"))
    if shares_person(a.lecture, b.lecture):
        out.append((Resource.INSTRUCTOR, "Instructor"))
    return out


def detect_override_conflicts(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    day: date,
    course_codes: Optional[Mapping[str, str]] = None,
) -> dict[str, list[str]]:
    """
    Check the override occurrences of `day` against everything else that
    happens that day.

    Keys are occurrence ids ("resch-<exception id>" for overrides, the
    lecture id for regular occurrences). Conflicts between two regular
    occurrences are left to detect_conflicts(). A lecture moved onto another
    date of its own weekday can clash with its own regular occurrence.
    """
    codes = course_codes or {}
    occurrences = resolve_occurrences(lectures, exceptions, day)

    out: dict[str, list[str]] = {}
    for i in range(len(occurrences)):
        a = occurrences[i]
        for j in range(i + 1, len(occurrences)):
            b = occurrences[j]
            if not (a.is_override or b.is_override):
                continue
            for _, label in _occurrence_clash(a, b):
                out.setdefault(a.occurrence_id, []).append(
                    f"{label} conflict with {_code(codes, b.course_id)} on {day.isoformat()}"
                )
                out.setdefault(b.occurrence_id, []).append(
                    f"{label} conflict with {_code(codes, a.course_id)} on {day.isoformat()}"
                )
    return out
