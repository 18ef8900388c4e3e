"""
Parsing (API JSON -> model records).

- Converts lecture records from GET /lectures into RecurringLecture
- Converts reschedule records from GET /lectures/reschedules/active into RescheduleException
- Builds the reference lookups (courses, rooms, people) used for messages
- Assembles everything into one immutable Snapshot

Important rules:
- ids are compared as strings (the API mixes ints and UUID strings)
- a malformed record raises RecordError; nothing is silently dropped
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from lectureplan.errors import InvalidExceptionError, InvalidLectureError, InvalidTimeError, RecordError
from lectureplan.model import (
    Course,
    LectureKind,
    Person,
    RecurringLecture,
    RescheduleException,
    Room,
    Snapshot,
    StudyShift,
)
from lectureplan.times import to_minutes


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _id(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required(record: Dict[str, Any], key: str, what: str) -> Any:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RecordError(f"{what} record is missing {key!r}", record)
    return value


def parse_date(value: Any) -> date:
    """
    Parse an ISO date ('YYYY-MM-DD'); a datetime suffix is ignored.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    text = str(value or "").strip()[:10]
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise RecordError(f"Invalid date: {value!r}") from None


def _assistant_ids(raw: Any) -> List[str]:
    """
    Accept either [{id, full_name}, ...] (GET /lectures) or plain ids (assistant_ids).
    """
    if not raw:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    out: List[str] = []
    for a in raw:
        aid = _id(a.get("id")) if isinstance(a, dict) else _id(a)
        if aid:
            out.append(aid)
    return out


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def parse_lecture(record: Dict[str, Any]) -> RecurringLecture:
    """
    Parse exactly one lecture record.
    """
    if not isinstance(record, dict):
        raise RecordError(f"Lecture record must be an object, got {type(record).__name__}", record)

    lecture_id = _id(_required(record, "id", "Lecture"))
    try:
        kind = LectureKind(str(record.get("lecture_type") or "theoretical").strip().lower())
        shift = StudyShift(str(record.get("study_type") or "morning").strip().lower())
    except ValueError as exc:
        raise RecordError(f"Lecture {lecture_id}: {exc}", record) from None

    assistants = _assistant_ids(record.get("assistants") or record.get("assistant_ids"))

    try:
        return RecurringLecture(
            lecture_id=lecture_id,
            course_id=_id(_required(record, "course_id", "Lecture")),
            instructor_id=_id(_required(record, "teacher_id", "Lecture")),
            room_id=_id(_required(record, "room_id", "Lecture")),
            weekday=int(_required(record, "day_of_week", "Lecture")),
            start=to_minutes(str(_required(record, "start_time", "Lecture"))),
            end=to_minutes(str(_required(record, "end_time", "Lecture"))),
            academic_year=int(record.get("academic_year") or 1),
            kind=kind,
            shift=shift,
            assistant_ids=tuple(assistants) if kind is LectureKind.PRACTICAL else (),
            section_id=_id(record.get("section_id")) if kind is LectureKind.THEORETICAL else None,
            group_id=_id(record.get("group_id")) if kind is LectureKind.PRACTICAL else None,
            department_id=_id(record.get("department_id")),
            color=record.get("color") or None,
        )
    except RecordError:
        raise
    except (InvalidLectureError, InvalidTimeError, TypeError, ValueError) as exc:
        raise RecordError(f"Lecture {lecture_id}: {exc}", record) from exc


def parse_reschedule(record: Dict[str, Any]) -> RescheduleException:
    """
    Parse exactly one reschedule record.
    """
    if not isinstance(record, dict):
        raise RecordError(f"Reschedule record must be an object, got {type(record).__name__}", record)

    exception_id = _id(_required(record, "id", "Reschedule"))
    try:
        return RescheduleException(
            exception_id=exception_id,
            lecture_id=_id(_required(record, "lecture_id", "Reschedule")),
            original_date=parse_date(_required(record, "original_date", "Reschedule")),
            new_date=parse_date(_required(record, "new_date", "Reschedule")),
            new_start=to_minutes(str(_required(record, "new_start_time", "Reschedule"))),
            new_end=to_minutes(str(_required(record, "new_end_time", "Reschedule"))),
            new_room_id=_id(_required(record, "new_room_id", "Reschedule")),
            reason=str(record.get("reason") or "").strip(),
        )
    except RecordError:
        raise
    except (InvalidExceptionError, InvalidTimeError) as exc:
        raise RecordError(f"Reschedule {exception_id}: {exc}", record) from exc


def parse_course(record: Dict[str, Any]) -> Course:
    if not isinstance(record, dict):
        raise RecordError(f"Course record must be an object, got {type(record).__name__}", record)
    course_id = _id(_required(record, "id", "Course"))
    return Course(
        course_id=course_id,
        code=str(record.get("code") or course_id).strip(),
        name=str(record.get("name") or "").strip(),
        department_id=_id(record.get("department_id")),
        instructor_id=_id(record.get("teacher_id")),
    )


def parse_room(record: Dict[str, Any]) -> Room:
    if not isinstance(record, dict):
        raise RecordError(f"Room record must be an object, got {type(record).__name__}", record)
    room_id = _id(_required(record, "id", "Room"))
    return Room(
        room_id=room_id,
        name=str(record.get("name") or room_id).strip(),
        building=str(record.get("building") or "").strip(),
        code=str(record.get("code") or "").strip(),
    )


def parse_person(record: Dict[str, Any]) -> Person:
    if not isinstance(record, dict):
        raise RecordError(f"User record must be an object, got {type(record).__name__}", record)
    person_id = _id(_required(record, "id", "User"))
    return Person(person_id=person_id, full_name=str(record.get("full_name") or person_id).strip())


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def _records(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    raw = payload.get(key) or []
    if not isinstance(raw, list):
        raise RecordError(f"Payload field {key!r} must be a list")
    return raw


def _references_from_lectures(
    lectures_raw: Iterable[Dict[str, Any]],
) -> tuple[Dict[str, Course], Dict[str, Room], Dict[str, Person]]:
    """
    GET /lectures denormalises course code/name, room name and teacher name
    into every lecture; recover the lookups from there.
    """
    courses: Dict[str, Course] = {}
    rooms: Dict[str, Room] = {}
    people: Dict[str, Person] = {}

    for rec in lectures_raw:
        cid = _id(rec.get("course_id"))
        if cid and cid not in courses and (rec.get("course_code") or rec.get("course_name")):
            courses[cid] = Course(
                course_id=cid,
                code=str(rec.get("course_code") or cid).strip(),
                name=str(rec.get("course_name") or "").strip(),
                department_id=_id(rec.get("department_id")),
                instructor_id=_id(rec.get("teacher_id")),
            )

        rid = _id(rec.get("room_id"))
        if rid and rid not in rooms and rec.get("room_name"):
            rooms[rid] = Room(room_id=rid, name=str(rec["room_name"]).strip())

        tid = _id(rec.get("teacher_id"))
        if tid and tid not in people and rec.get("teacher_name"):
            people[tid] = Person(person_id=tid, full_name=str(rec["teacher_name"]).strip())

        for a in rec.get("assistants") or []:
            if isinstance(a, dict):
                aid = _id(a.get("id"))
                if aid and aid not in people and a.get("full_name"):
                    people[aid] = Person(person_id=aid, full_name=str(a["full_name"]).strip())

    return courses, rooms, people


def build_snapshot(payload: Dict[str, Any]) -> Snapshot:
    """
    Build a Snapshot from the raw API bundle:

        {"lectures": [...], "reschedules": [...],
         "courses": [...], "rooms": [...], "users": [...]}

    Only "lectures" and "reschedules" are required; explicit reference lists
    take precedence over what is derived from the lecture records.
    """
    if not isinstance(payload, dict):
        raise RecordError("Snapshot payload must be an object")

    lectures_raw = _records(payload, "lectures")
    lectures = [parse_lecture(r) for r in lectures_raw]
    exceptions = [parse_reschedule(r) for r in _records(payload, "reschedules")]

    courses, rooms, people = _references_from_lectures(lectures_raw)
    for rec in _records(payload, "courses"):
        c = parse_course(rec)
        courses[c.course_id] = c
    for rec in _records(payload, "rooms"):
        r = parse_room(rec)
        rooms[r.room_id] = r
    for rec in _records(payload, "users"):
        p = parse_person(rec)
        people[p.person_id] = p

    return Snapshot.build(
        lectures=lectures,
        exceptions=exceptions,
        courses=courses.values(),
        rooms=rooms.values(),
        people=people.values(),
    )
