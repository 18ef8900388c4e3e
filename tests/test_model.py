"""
Unit tests for the data model invariants.

RecurringLecture contract:
- start < end, weekday in 0..4 (Sunday=0)
- practical lectures carry >= 1 assistant and a group, never a section
- theoretical lectures carry no assistants and never a group
- records are immutable; Snapshot.replace() returns a new snapshot
"""

import dataclasses
import unittest
from datetime import date

from lectureplan.errors import InvalidExceptionError, InvalidLectureError
from lectureplan.model import (
    Course,
    LectureKind,
    Person,
    RecurringLecture,
    RescheduleException,
    Room,
    Snapshot,
    StudyShift,
    weekday_of,
)


def _lecture(**overrides) -> RecurringLecture:
    fields = dict(
        lecture_id="L1",
        course_id="C1",
        instructor_id="I1",
        room_id="R1",
        weekday=0,
        start=480,
        end=570,
    )
    fields.update(overrides)
    return RecurringLecture(**fields)


class TestWeekday(unittest.TestCase):
    def test_sunday_is_zero(self) -> None:
        self.assertEqual(weekday_of(date(2024, 5, 5)), 0)  # Sunday
        self.assertEqual(weekday_of(date(2024, 5, 6)), 1)  # Monday
        self.assertEqual(weekday_of(date(2024, 5, 9)), 4)  # Thursday
        self.assertEqual(weekday_of(date(2024, 5, 10)), 5)  # Friday
        self.assertEqual(weekday_of(date(2024, 5, 11)), 6)  # Saturday


class TestRecurringLecture(unittest.TestCase):
    def test_defaults(self) -> None:
        lec = _lecture()
        self.assertIs(lec.kind, LectureKind.THEORETICAL)
        self.assertIs(lec.shift, StudyShift.MORNING)
        self.assertEqual(lec.assistant_ids, ())
        self.assertEqual(lec.people, ("I1",))

    def test_string_enums_are_normalized(self) -> None:
        lec = _lecture(kind="practical", shift="evening", assistant_ids=["A1"], group_id="G1")
        self.assertIs(lec.kind, LectureKind.PRACTICAL)
        self.assertIs(lec.shift, StudyShift.EVENING)
        self.assertEqual(lec.assistant_ids, ("A1",))

    def test_assistants_keep_order_and_drop_duplicates(self) -> None:
        lec = _lecture(kind=LectureKind.PRACTICAL, assistant_ids=["A2", "A1", "A2"])
        self.assertEqual(lec.assistant_ids, ("A2", "A1"))
        self.assertEqual(lec.people, ("I1", "A2", "A1"))

    def test_end_must_be_after_start(self) -> None:
        with self.assertRaises(InvalidLectureError):
            _lecture(start=600, end=600)
        with self.assertRaises(InvalidLectureError):
            _lecture(start=600, end=540)

    def test_weekday_range(self) -> None:
        for bad in [-1, 5, 6]:
            with self.subTest(weekday=bad):
                with self.assertRaises(InvalidLectureError):
                    _lecture(weekday=bad)

    def test_minutes_range(self) -> None:
        with self.assertRaises(InvalidLectureError):
            _lecture(start=-10)
        with self.assertRaises(InvalidLectureError):
            _lecture(end=24 * 60)

    def test_positive_year(self) -> None:
        with self.assertRaises(InvalidLectureError):
            _lecture(academic_year=0)

    def test_practical_requires_assistant(self) -> None:
        with self.assertRaises(InvalidLectureError):
            _lecture(kind=LectureKind.PRACTICAL)

    def test_practical_has_no_section(self) -> None:
        with self.assertRaises(InvalidLectureError):
            _lecture(kind=LectureKind.PRACTICAL, assistant_ids=["A1"], section_id="S1")

    def test_theoretical_has_no_assistants_or_group(self) -> None:
        with self.assertRaises(InvalidLectureError):
            _lecture(assistant_ids=["A1"])
        with self.assertRaises(InvalidLectureError):
            _lecture(group_id="G1")

    def test_unknown_kind_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            _lecture(kind="seminar")

    def test_is_frozen(self) -> None:
        lec = _lecture()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            lec.room_id = "R2"  # type: ignore[misc]

    def test_replace_revalidates(self) -> None:
        lec = _lecture()
        moved = lec.replace(room_id="R2")
        self.assertEqual(moved.room_id, "R2")
        self.assertEqual(lec.room_id, "R1")
        with self.assertRaises(InvalidLectureError):
            lec.replace(end=400)


class TestRescheduleException(unittest.TestCase):
    def test_valid(self) -> None:
        exc = RescheduleException("X1", "L1", date(2024, 5, 5), date(2024, 5, 6), 600, 690, "R2", "Holiday")
        self.assertEqual(exc.reason, "Holiday")

    def test_new_range_must_be_ordered(self) -> None:
        with self.assertRaises(InvalidExceptionError):
            RescheduleException("X1", "L1", date(2024, 5, 5), date(2024, 5, 6), 690, 600, "R2")


class TestSnapshot(unittest.TestCase):
    def test_lookups(self) -> None:
        snap = Snapshot.build(
            lectures=[_lecture()],
            courses=[Course("C1", "CS101", "Programming")],
            rooms=[Room("R1", "Hall A", "Main")],
            people=[Person("I1", "Dr. Sara")],
        )
        self.assertEqual(snap.lecture("L1"), _lecture())
        self.assertIsNone(snap.lecture("missing"))
        self.assertEqual(snap.course_code("C1"), "CS101")
        self.assertEqual(snap.course_name("C1"), "Programming")
        self.assertEqual(snap.room_name("R1"), "Hall A")
        self.assertEqual(snap.person_name("I1"), "Dr. Sara")
        self.assertEqual(snap.course_codes, {"C1": "CS101"})

    def test_lookup_falls_back_to_id(self) -> None:
        snap = Snapshot()
        self.assertEqual(snap.course_code("C9"), "C9")
        self.assertEqual(snap.room_name("R9"), "R9")
        self.assertEqual(snap.person_name("I9"), "I9")

    def test_collections_are_read_only(self) -> None:
        snap = Snapshot.build(lectures=[_lecture()], rooms=[Room("R1", "Hall A")])
        self.assertIsInstance(snap.lectures, tuple)
        with self.assertRaises(TypeError):
            snap.rooms["R2"] = Room("R2", "Hall B")  # type: ignore[index]

    def test_replace_returns_new_snapshot(self) -> None:
        snap = Snapshot.build(lectures=[_lecture()])
        refreshed = snap.replace(lectures=[_lecture(), _lecture(lecture_id="L2")], rooms=[Room("R1", "Hall A")])
        self.assertEqual(len(snap.lectures), 1)
        self.assertEqual(len(refreshed.lectures), 2)
        self.assertEqual(refreshed.room_name("R1"), "Hall A")


if __name__ == "__main__":
    unittest.main()
