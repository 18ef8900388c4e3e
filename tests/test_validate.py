"""
Unit tests for admission checks.

validate_candidate():
- returns None when a new lecture fits, else the FIRST conflict found
- checks room, then primary instructor, then each assistant of the candidate
  against the primary AND the assistants of every overlapping lecture

validate_reschedule():
- an exception must refer to a real occurrence of a known lecture
- a second reschedule of the same (lecture, original date) is rejected
"""

import unittest
from datetime import date

from lectureplan.conflicts import (
    ReasonKind,
    ensure_admissible,
    ensure_reschedule_admissible,
    validate_candidate,
    validate_reschedule,
)
from lectureplan.errors import InvalidExceptionError, SchedulingConflict
from lectureplan.model import LectureKind, RecurringLecture, RescheduleException

COURSES = {"C1": "Programming I", "C2": "Calculus", "C3": "Physics Lab"}
ROOMS = {"R1": "Hall A", "R2": "Lab 2"}
PEOPLE = {"I1": "Dr. Sara", "I2": "Dr. Omar", "I3": "Dr. Lina", "A1": "Ali Hassan", "A2": "Noor Kareem"}


def _lecture(lecture_id: str, course: str, instructor: str, room: str, weekday: int, start: int, end: int, assistants=()) -> RecurringLecture:
    kind = LectureKind.PRACTICAL if assistants else LectureKind.THEORETICAL
    return RecurringLecture(
        lecture_id=lecture_id,
        course_id=course,
        instructor_id=instructor,
        room_id=room,
        weekday=weekday,
        start=start,
        end=end,
        kind=kind,
        assistant_ids=tuple(assistants),
    )


def _check(existing, candidate):
    return validate_candidate(existing, candidate, COURSES, ROOMS, PEOPLE)


class TestValidateCandidate(unittest.TestCase):
    def setUp(self) -> None:
        self.existing = [
            _lecture("L1", "C1", "I1", "R1", 0, 480, 570),
            _lecture("L2", "C3", "I3", "R2", 0, 600, 720, assistants=["A1"]),
        ]

    def test_admissible(self) -> None:
        cand = _lecture("new", "C2", "I2", "R1", 0, 570, 660)
        self.assertIsNone(_check(self.existing, cand))

    def test_other_weekday_is_admissible(self) -> None:
        cand = _lecture("new", "C2", "I1", "R1", 1, 480, 570)
        self.assertIsNone(_check(self.existing, cand))

    def test_room_conflict(self) -> None:
        cand = _lecture("new", "C2", "I2", "R1", 0, 540, 600)
        reason = _check(self.existing, cand)
        self.assertIsNotNone(reason)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.ROOM)
        self.assertEqual(reason.lecture_id, "L1")
        self.assertEqual(reason.room_id, "R1")
        self.assertEqual((reason.start, reason.end), (480, 570))
        self.assertIn("Hall A", reason.message)
        self.assertIn("Programming I", reason.message)
        self.assertIn("08:00-09:30", reason.message)

    def test_room_is_checked_before_instructor(self) -> None:
        cand = _lecture("new", "C2", "I1", "R1", 0, 540, 600)
        reason = _check(self.existing, cand)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.ROOM)

    def test_instructor_conflict(self) -> None:
        cand = _lecture("new", "C2", "I1", "R2", 0, 500, 560)
        reason = _check(self.existing, cand)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.INSTRUCTOR)
        self.assertEqual(reason.person_id, "I1")
        self.assertIn("Dr. Sara", reason.message)

    def test_instructor_is_assistant_elsewhere(self) -> None:
        # A1 assists on L2; a new lecture taught by A1 must be rejected
        cand = _lecture("new", "C2", "A1", "R1", 0, 630, 690)
        reason = _check(self.existing, cand)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.INSTRUCTOR)
        self.assertEqual(reason.lecture_id, "L2")

    def test_assistant_is_primary_elsewhere(self) -> None:
        # sole assistant I1 already teaches L1 at that time
        cand = _lecture("new", "C3", "I2", "R2", 0, 500, 560, assistants=["I1"])
        reason = _check(self.existing, cand)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.ASSISTANT)
        self.assertEqual(reason.person_id, "I1")
        self.assertIn("Dr. Sara", reason.message)
        self.assertTrue(reason.message.startswith("Assistant"))

    def test_assistant_is_assistant_elsewhere(self) -> None:
        cand = _lecture("new", "C3", "I2", "R1", 0, 660, 750, assistants=["A2", "A1"])
        reason = _check(self.existing, cand)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.ASSISTANT)
        self.assertEqual(reason.person_id, "A1")
        self.assertIn("Ali Hassan", reason.message)

    def test_touching_is_admissible(self) -> None:
        cand = _lecture("new", "C2", "I1", "R1", 0, 420, 480)
        self.assertIsNone(_check(self.existing, cand))

    def test_edit_does_not_conflict_with_itself(self) -> None:
        edited = _lecture("L1", "C1", "I1", "R1", 0, 490, 580)
        self.assertIsNone(_check(self.existing, edited))

    def test_names_fall_back_to_ids(self) -> None:
        cand = _lecture("new", "C2", "I2", "R1", 0, 540, 600)
        reason = validate_candidate(self.existing, cand)
        assert reason is not None
        self.assertIn("R1", reason.message)
        self.assertIn("C1", reason.message)

    def test_ensure_admissible_raises(self) -> None:
        cand = _lecture("new", "C2", "I2", "R1", 0, 540, 600)
        with self.assertRaises(SchedulingConflict) as ctx:
            ensure_admissible(self.existing, cand, COURSES, ROOMS, PEOPLE)
        self.assertIs(ctx.exception.reason.kind, ReasonKind.ROOM)
        self.assertIn("Hall A", str(ctx.exception))

    def test_ensure_admissible_passes(self) -> None:
        ensure_admissible(self.existing, _lecture("new", "C2", "I2", "R1", 2, 540, 600))


class TestValidateReschedule(unittest.TestCase):
    def setUp(self) -> None:
        self.lecture = _lecture("L1", "C1", "I1", "R1", 0, 480, 570)
        self.first = RescheduleException("X1", "L1", date(2024, 5, 5), date(2024, 5, 6), 600, 690, "R2", "Trip")

    def test_first_reschedule_is_fine(self) -> None:
        self.assertIsNone(validate_reschedule([self.lecture], [], self.first))

    def test_second_reschedule_of_same_date_is_rejected(self) -> None:
        again = RescheduleException("X2", "L1", date(2024, 5, 5), date(2024, 5, 7), 600, 690, "R2", "Again")
        reason = validate_reschedule([self.lecture], [self.first], again)
        assert reason is not None
        self.assertIs(reason.kind, ReasonKind.DUPLICATE)
        self.assertIn("2024-05-06", reason.message)
        with self.assertRaises(SchedulingConflict):
            ensure_reschedule_admissible([self.lecture], [self.first], again)

    def test_other_date_is_fine(self) -> None:
        other = RescheduleException("X2", "L1", date(2024, 5, 12), date(2024, 5, 13), 600, 690, "R2")
        self.assertIsNone(validate_reschedule([self.lecture], [self.first], other))

    def test_same_exception_is_not_its_own_duplicate(self) -> None:
        self.assertIsNone(validate_reschedule([self.lecture], [self.first], self.first))

    def test_wrong_weekday(self) -> None:
        bad = RescheduleException("X2", "L1", date(2024, 5, 6), date(2024, 5, 7), 600, 690, "R2")
        with self.assertRaises(InvalidExceptionError):
            validate_reschedule([self.lecture], [], bad)

    def test_unknown_lecture(self) -> None:
        bad = RescheduleException("X2", "nope", date(2024, 5, 5), date(2024, 5, 7), 600, 690, "R2")
        with self.assertRaises(InvalidExceptionError):
            validate_reschedule([self.lecture], [], bad)


if __name__ == "__main__":
    unittest.main()
