"""
Occurrence resolution.

Turns the recurring weekly layer plus the reschedule exceptions into the
concrete list of lectures that happen on one calendar date:

    base      = lectures on the date's weekday
    suppressed = base lectures with an exception whose original_date is the date
    injected  = one override occurrence per exception whose new_date is the date
    result    = (base - suppressed) + injected
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from lectureplan.model import (
    TEACHING_DAYS,
    Occurrence,
    RecurringLecture,
    RescheduleException,
    StudyShift,
    weekday_of,
)

OVERRIDE_PREFIX = "resch-"


def _sort_key(occ: Occurrence) -> tuple[int, int, str]:
    return (occ.start, occ.end, occ.occurrence_id)


def _base_occurrence(lecture: RecurringLecture, day: date) -> Occurrence:
    return Occurrence(
        occurrence_id=lecture.lecture_id,
        lecture=lecture,
        date=day,
        start=lecture.start,
        end=lecture.end,
        room_id=lecture.room_id,
    )


def _override_occurrence(lecture: RecurringLecture, exc: RescheduleException) -> Occurrence:
    return Occurrence(
        occurrence_id=f"{OVERRIDE_PREFIX}{exc.exception_id}",
        lecture=lecture,
        date=exc.new_date,
        start=exc.new_start,
        end=exc.new_end,
        room_id=exc.new_room_id,
        is_override=True,
        reason=exc.reason,
        exception_id=exc.exception_id,
    )


def resolve_occurrences(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    day: date,
) -> list[Occurrence]:
    """
    Return every lecture occurrence that actually happens on `day`.

    Exceptions whose owning lecture is not part of `lectures` are ignored
    (the lecture was deleted or filtered out). The result is sorted by time.
    """
    # Work on private copies so a concurrent refresh cannot change the input mid-pass
    lectures = tuple(lectures)
    exceptions = tuple(exceptions)

    by_id = {lec.lecture_id: lec for lec in lectures}
    weekday = weekday_of(day)

    suppressed = {exc.lecture_id for exc in exceptions if exc.original_date == day}

    out: list[Occurrence] = []
    seen: set[str] = set()
    for lec in lectures:
        if lec.weekday != weekday or lec.lecture_id in suppressed:
            continue
        if lec.lecture_id in seen:
            continue
        seen.add(lec.lecture_id)
        out.append(_base_occurrence(lec, day))

    for exc in exceptions:
        if exc.new_date != day:
            continue
        lec = by_id.get(exc.lecture_id)
        if lec is None:
            continue
        occ = _override_occurrence(lec, exc)
        if occ.occurrence_id in seen:
            continue
        seen.add(occ.occurrence_id)
        out.append(occ)

    out.sort(key=_sort_key)
    return out


def start_of_week(day: date) -> date:
    """
    Return the Sunday on or before `day` (weeks start on Sunday).
    """
    return day - timedelta(days=weekday_of(day))


def week_days(day: date) -> list[date]:
    """Sunday .. Thursday of the week containing `day`."""
    first = start_of_week(day)
    return [first + timedelta(days=i) for i in range(TEACHING_DAYS)]


def resolve_week(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    day: date,
) -> dict[date, list[Occurrence]]:
    """
    Resolve every teaching day of the week containing `day`.
    """
    lectures = tuple(lectures)
    exceptions = tuple(exceptions)
    return {d: resolve_occurrences(lectures, exceptions, d) for d in week_days(day)}


def resolve_range(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    first: date,
    last: date,
) -> list[Occurrence]:
    """
    Resolve all dates from `first` to `last` (inclusive) into one flat list.
    """
    if last < first:
        return []
    lectures = tuple(lectures)
    exceptions = tuple(exceptions)

    out: list[Occurrence] = []
    d = first
    while d <= last:
        out.extend(resolve_occurrences(lectures, exceptions, d))
        d += timedelta(days=1)
    return out


def resolve_today(
    lectures: Iterable[RecurringLecture],
    exceptions: Iterable[RescheduleException],
    now: Optional[datetime] = None,
) -> list[Occurrence]:
    """
    Resolve the current date. `now` is read exactly once.
    """
    moment = now if now is not None else datetime.now()
    return resolve_occurrences(lectures, exceptions, moment.date())


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LectureFilter:
    """
    Narrow the recurring layer before resolving it.

    Every field left as None matches everything. `instructor_id` matches the
    primary instructor as well as the assistants.
    """

    department_id: Optional[str] = None
    shift: Optional[StudyShift] = None
    room_id: Optional[str] = None
    academic_year: Optional[int] = None
    instructor_id: Optional[str] = None

    def matches(self, lecture: RecurringLecture) -> bool:
        if self.department_id is not None and str(lecture.department_id) != str(self.department_id):
            return False
        if self.shift is not None and lecture.shift is not StudyShift(self.shift):
            return False
        if self.room_id is not None and lecture.room_id != self.room_id:
            return False
        if self.academic_year is not None and lecture.academic_year != self.academic_year:
            return False
        if self.instructor_id is not None and self.instructor_id not in lecture.people:
            return False
        return True


def filter_lectures(lectures: Iterable[RecurringLecture], flt: Optional[LectureFilter]) -> list[RecurringLecture]:
    if flt is None:
        return list(lectures)
    return [lec for lec in lectures if flt.matches(lec)]


def filter_occurrences(occurrences: Iterable[Occurrence], room_id: Optional[str]) -> list[Occurrence]:
    """
    Keep occurrences held in `room_id`.

    Needed for room views: an override may move a lecture into (or out of)
    the room, which filtering the recurring layer alone would miss.
    """
    if room_id is None:
        return list(occurrences)
    return [occ for occ in occurrences if occ.room_id == room_id]
