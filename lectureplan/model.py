"""
Central data model definitions used across the project.

This module defines the canonical structure of the scheduling records so that:
- the resolver, the conflict detector and the CLI share the same field names
- every record is validated once, when it is built, and never mutated afterwards
- a refresh of the data produces a new Snapshot instead of editing the old one

Weekdays follow the college calendar: Sunday=0 .. Thursday=4 are teaching days.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from lectureplan.errors import InvalidExceptionError, InvalidLectureError, InvalidTimeRangeError
from lectureplan.times import MINUTES_PER_DAY, check_range

TEACHING_DAYS = 5
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class LectureKind(str, enum.Enum):
    THEORETICAL = "theoretical"
    PRACTICAL = "practical"


class StudyShift(str, enum.Enum):
    MORNING = "morning"
    EVENING = "evening"


def weekday_of(day: date) -> int:
    """
    Return the college weekday of a calendar date (Sunday=0 .. Saturday=6).

    Friday and Saturday map to 5 and 6; no recurring lecture lives there.
    """
    # date.weekday(): Monday=0 .. Sunday=6
    return (day.weekday() + 1) % 7


def _check_minutes(value: int, what: str, error: type) -> None:
    if not isinstance(value, int) or not 0 <= value < MINUTES_PER_DAY:
        raise error(f"{what} must be minutes since midnight, got {value!r}")


@dataclass(frozen=True)
class RecurringLecture:
    """
    One weekly lecture definition: "every such weekday, indefinitely".
    """

    lecture_id: str
    course_id: str
    instructor_id: str
    room_id: str
    weekday: int
    start: int
    end: int
    academic_year: int = 1
    kind: LectureKind = LectureKind.THEORETICAL
    shift: StudyShift = StudyShift.MORNING
    assistant_ids: Tuple[str, ...] = ()
    section_id: Optional[str] = None
    group_id: Optional[str] = None
    department_id: Optional[str] = None
    color: Optional[str] = None

    def __post_init__(self) -> None:
        # normalize list input to an ordered, duplicate free tuple
        object.__setattr__(self, "assistant_ids", tuple(dict.fromkeys(self.assistant_ids)))
        object.__setattr__(self, "kind", LectureKind(self.kind))
        object.__setattr__(self, "shift", StudyShift(self.shift))

        if not self.lecture_id:
            raise InvalidLectureError("Lecture id must not be empty")
        if not isinstance(self.weekday, int) or not 0 <= self.weekday < TEACHING_DAYS:
            raise InvalidLectureError(f"Lecture {self.lecture_id}: weekday must be 0-4, got {self.weekday!r}")
        _check_minutes(self.start, f"Lecture {self.lecture_id}: start", InvalidLectureError)
        _check_minutes(self.end, f"Lecture {self.lecture_id}: end", InvalidLectureError)
        try:
            check_range(self.start, self.end)
        except InvalidTimeRangeError as exc:
            raise InvalidLectureError(f"Lecture {self.lecture_id}: {exc}") from exc
        if not isinstance(self.academic_year, int) or self.academic_year < 1:
            raise InvalidLectureError(
                f"Lecture {self.lecture_id}: academic year must be a positive integer, got {self.academic_year!r}"
            )

        if self.kind is LectureKind.PRACTICAL:
            if not self.assistant_ids:
                raise InvalidLectureError(f"Lecture {self.lecture_id}: practical lectures need at least one assistant")
            if self.section_id is not None:
                raise InvalidLectureError(f"Lecture {self.lecture_id}: practical lectures take a group, not a section")
        else:
            if self.assistant_ids:
                raise InvalidLectureError(f"Lecture {self.lecture_id}: only practical lectures have assistants")
            if self.group_id is not None:
                raise InvalidLectureError(f"Lecture {self.lecture_id}: theoretical lectures take a section, not a group")

    @property
    def people(self) -> Tuple[str, ...]:
        """Primary instructor followed by the assistants."""
        return (self.instructor_id,) + self.assistant_ids

    def replace(self, **changes) -> "RecurringLecture":
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class RescheduleException:
    """
    A one-shot override: suppress the occurrence on original_date and
    hold it on new_date at new_start-new_end in new_room_id instead.
    """

    exception_id: str
    lecture_id: str
    original_date: date
    new_date: date
    new_start: int
    new_end: int
    new_room_id: str
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.exception_id:
            raise InvalidExceptionError("Exception id must not be empty")
        _check_minutes(self.new_start, f"Exception {self.exception_id}: new start", InvalidExceptionError)
        _check_minutes(self.new_end, f"Exception {self.exception_id}: new end", InvalidExceptionError)
        try:
            check_range(self.new_start, self.new_end)
        except InvalidTimeRangeError as exc:
            raise InvalidExceptionError(f"Exception {self.exception_id}: {exc}") from exc


@dataclass(frozen=True)
class Occurrence:
    """
    One calendar-dated instance of a lecture.

    Override occurrences come from a RescheduleException; their time and room
    are the exception's, everything else is inherited from the lecture.
    """

    occurrence_id: str
    lecture: RecurringLecture
    date: date
    start: int
    end: int
    room_id: str
    is_override: bool = False
    reason: Optional[str] = None
    exception_id: Optional[str] = None

    @property
    def lecture_id(self) -> str:
        return self.lecture.lecture_id

    @property
    def course_id(self) -> str:
        return self.lecture.course_id

    @property
    def instructor_id(self) -> str:
        return self.lecture.instructor_id

    @property
    def assistant_ids(self) -> Tuple[str, ...]:
        return self.lecture.assistant_ids

    @property
    def people(self) -> Tuple[str, ...]:
        return self.lecture.people


@dataclass(frozen=True)
class Course:
    course_id: str
    code: str
    name: str = ""
    department_id: Optional[str] = None
    instructor_id: Optional[str] = None


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    building: str = ""
    code: str = ""


@dataclass(frozen=True)
class Person:
    person_id: str
    full_name: str


def _index(items: Iterable, key: str) -> Mapping:
    return MappingProxyType({getattr(x, key): x for x in items})


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable view of everything the scheduler reads.

    Build a new Snapshot (or call replace()) to refresh; never mutate one
    that a resolution or detection pass may be reading.
    """

    lectures: Tuple[RecurringLecture, ...] = ()
    exceptions: Tuple[RescheduleException, ...] = ()
    courses: Mapping[str, Course] = field(default_factory=lambda: MappingProxyType({}))
    rooms: Mapping[str, Room] = field(default_factory=lambda: MappingProxyType({}))
    people: Mapping[str, Person] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(
        cls,
        lectures: Iterable[RecurringLecture] = (),
        exceptions: Iterable[RescheduleException] = (),
        courses: Iterable[Course] = (),
        rooms: Iterable[Room] = (),
        people: Iterable[Person] = (),
    ) -> "Snapshot":
        return cls(
            lectures=tuple(lectures),
            exceptions=tuple(exceptions),
            courses=_index(courses, "course_id"),
            rooms=_index(rooms, "room_id"),
            people=_index(people, "person_id"),
        )

    def replace(self, **changes) -> "Snapshot":
        for name in ("lectures", "exceptions"):
            if name in changes:
                changes[name] = tuple(changes[name])
        for name, key in (("courses", "course_id"), ("rooms", "room_id"), ("people", "person_id")):
            if name in changes and not isinstance(changes[name], Mapping):
                changes[name] = _index(changes[name], key)
        return dataclasses.replace(self, **changes)

    def lecture(self, lecture_id: str) -> Optional[RecurringLecture]:
        for lec in self.lectures:
            if lec.lecture_id == lecture_id:
                return lec
        return None

    @property
    def course_codes(self) -> dict[str, str]:
        return {cid: c.code for cid, c in self.courses.items()}

    def course_code(self, course_id: str) -> str:
        course = self.courses.get(course_id)
        return course.code if course and course.code else course_id

    def course_name(self, course_id: str) -> str:
        course = self.courses.get(course_id)
        return course.name if course and course.name else self.course_code(course_id)

    def room_name(self, room_id: str) -> str:
        room = self.rooms.get(room_id)
        return room.name if room and room.name else room_id

    def person_name(self, person_id: str) -> str:
        person = self.people.get(person_id)
        return person.full_name if person and person.full_name else person_id
