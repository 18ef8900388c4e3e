"""
CLI (Command Line Interface).

This module provides terminal commands on top of the scheduling core, e.g.:

    lectureplan fetch
    lectureplan day [YYYY-MM-DD]
    lectureplan week [YYYY-MM-DD]
    lectureplan conflicts [--with-overrides YYYY-MM-DD]
    lectureplan check --course C --instructor I --room R --day 0 --start 08:00 --end 09:30
    lectureplan check-reschedule --lecture L --original YYYY-MM-DD --new-date YYYY-MM-DD ...
    lectureplan export <file.ics> --from YYYY-MM-DD --to YYYY-MM-DD

Note:
- All commands except fetch work on the cached snapshot.json
- Exit codes: 0 ok, 1 scheduling conflict found, 2 invalid input
"""

from __future__ import annotations

import argparse
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lectureplan.config import Settings
from lectureplan.conflicts import detect_conflicts, detect_override_conflicts, validate_candidate, validate_reschedule
from lectureplan.errors import LecturePlanError
from lectureplan.export_ics import export_occurrences_to_ics
from lectureplan.grid import GridWindow, position, width
from lectureplan.model import (
    DAY_NAMES,
    TEACHING_DAYS,
    LectureKind,
    Occurrence,
    RecurringLecture,
    RescheduleException,
    Snapshot,
    StudyShift,
    weekday_of,
)
from lectureplan.occurrences import (
    LectureFilter,
    filter_lectures,
    filter_occurrences,
    resolve_occurrences,
    resolve_range,
    resolve_week,
)
from lectureplan.parse import parse_date
from lectureplan.storage import load_snapshot
from lectureplan.times import format_range, to_minutes

console = Console()


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if getattr(args, "snapshot", None):
        settings.snapshot_path = Path(args.snapshot)
    if getattr(args, "api_url", None):
        settings.api_url = args.api_url.rstrip("/")
    if getattr(args, "token", None):
        settings.token = args.token
    return settings


def _target_date(raw: Optional[str]) -> date:
    # "now" is captured once per command
    if not raw or raw.strip().lower() == "today":
        return datetime.now().date()
    return parse_date(raw)


def _weekday(raw: str) -> int:
    """
    Accept 0-4 or a day name ("sun", "Monday", ...).
    """
    text = raw.strip().lower()
    if text.isdigit():
        return int(text)
    for i, name in enumerate(DAY_NAMES[:TEACHING_DAYS]):
        if name.lower().startswith(text) and len(text) >= 3:
            return i
    raise ValueError(f"Unknown weekday: {raw!r}")


def _lecture_filter(args: argparse.Namespace) -> LectureFilter:
    return LectureFilter(
        department_id=args.department,
        shift=StudyShift(args.shift) if args.shift else None,
        academic_year=args.year,
        instructor_id=args.instructor,
    )


def _occurrence_table(title: str, occurrences: list[Occurrence], snapshot: Snapshot, window: GridWindow) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Time", style="bold")
    table.add_column("Course", style="cyan")
    table.add_column("Room")
    table.add_column("Instructor", style="magenta")
    table.add_column("Grid", justify="right")
    table.add_column("Note", style="yellow")

    for occ in occurrences:
        note = ""
        if occ.is_override:
            note = f"rescheduled: {occ.reason}" if occ.reason else "rescheduled"
        people = snapshot.person_name(occ.instructor_id)
        if occ.assistant_ids:
            people += " +" + str(len(occ.assistant_ids))
        grid = f"{position(window, occ.start):5.1f}% / {width(window, occ.start, occ.end):5.1f}%"
        table.add_row(
            format_range(occ.start, occ.end),
            escape(snapshot.course_code(occ.course_id)),
            escape(snapshot.room_name(occ.room_id)),
            escape(people),
            grid,
            escape(note),
        )
    return table


def _resolved_for(args: argparse.Namespace, snapshot: Snapshot, day: date) -> list[Occurrence]:
    lectures = filter_lectures(snapshot.lectures, _lecture_filter(args))
    occurrences = resolve_occurrences(lectures, snapshot.exceptions, day)
    return filter_occurrences(occurrences, args.room)


def _cmd_fetch(args: argparse.Namespace) -> int:
    from lectureplan.client import fetch_snapshot

    settings = _settings(args)
    path = fetch_snapshot(settings, out=settings.snapshot_path)
    console.print(f"Snapshot written to: {path}")
    return 0


def _cmd_day(args: argparse.Namespace) -> int:
    settings = _settings(args)
    snapshot = load_snapshot(settings.snapshot_path)
    day = _target_date(args.date)

    occurrences = _resolved_for(args, snapshot, day)
    if not occurrences:
        console.print(f"No lectures on {DAY_NAMES[weekday_of(day)]} {day.isoformat()}.")
        return 0

    title = f"{DAY_NAMES[weekday_of(day)]} {day.isoformat()} ({len(occurrences)} lectures)"
    console.print(_occurrence_table(title, occurrences, snapshot, settings.window))
    return 0


def _cmd_week(args: argparse.Namespace) -> int:
    settings = _settings(args)
    snapshot = load_snapshot(settings.snapshot_path)
    day = _target_date(args.date)

    lectures = filter_lectures(snapshot.lectures, _lecture_filter(args))
    week = resolve_week(lectures, snapshot.exceptions, day)

    total = 0
    for d, occurrences in week.items():
        occurrences = filter_occurrences(occurrences, args.room)
        total += len(occurrences)
        title = f"{DAY_NAMES[weekday_of(d)]} {d.isoformat()} ({len(occurrences)} lectures)"
        if occurrences:
            console.print(_occurrence_table(title, occurrences, snapshot, settings.window))
        else:
            console.print(f"[dim]{title}[/]")
    console.print(f"Lectures this week: {total}")
    return 0


def _cmd_conflicts(args: argparse.Namespace) -> int:
    """
    Print all detected conflicts of the recurring timetable.
    """
    settings = _settings(args)
    snapshot = load_snapshot(settings.snapshot_path)
    codes = snapshot.course_codes

    confs = detect_conflicts(snapshot.lectures, codes)
    if args.with_overrides:
        day = _target_date(args.with_overrides)
        for occ_id, msgs in detect_override_conflicts(snapshot.lectures, snapshot.exceptions, day, codes).items():
            confs.setdefault(occ_id, []).extend(msgs)

    if not confs:
        console.print("No conflicts found.")
        return 0

    by_id = {lec.lecture_id: lec for lec in snapshot.lectures}

    def key(item: tuple[str, list[str]]) -> tuple[int, int, str]:
        lec = by_id.get(item[0])
        if lec is None:
            return (TEACHING_DAYS, 0, item[0])
        return (lec.weekday, lec.start, item[0])

    console.print(f"[bold red]Lectures with conflicts: {len(confs)}[/]")
    for lecture_id, messages in sorted(confs.items(), key=key):
        lec = by_id.get(lecture_id)
        if lec is not None:
            head = (
                f"{DAY_NAMES[lec.weekday]} {format_range(lec.start, lec.end)} "
                f"{snapshot.course_code(lec.course_id)} ({snapshot.room_name(lec.room_id)})"
            )
        else:
            head = lecture_id
        console.print(f"- {escape(head)}")
        for msg in messages:
            console.print(f"    {escape(msg)}")
    return 0


def _candidate(args: argparse.Namespace) -> RecurringLecture:
    kind = LectureKind(args.kind)
    assistants = tuple(args.assistant or ())
    if assistants and kind is not LectureKind.PRACTICAL:
        raise ValueError("Assistants are only allowed for practical lectures")
    return RecurringLecture(
        lecture_id=args.id,
        course_id=args.course,
        instructor_id=args.instructor,
        room_id=args.room,
        weekday=_weekday(args.day),
        start=to_minutes(args.start),
        end=to_minutes(args.end),
        academic_year=args.year,
        kind=kind,
        shift=StudyShift(args.shift),
        assistant_ids=assistants,
    )


def _cmd_check(args: argparse.Namespace) -> int:
    """
    Validate a lecture before it is added, printing the first conflict found.
    """
    settings = _settings(args)
    snapshot = load_snapshot(settings.snapshot_path)
    candidate = _candidate(args)

    reason = validate_candidate(
        snapshot.lectures,
        candidate,
        course_names={cid: c.name or c.code for cid, c in snapshot.courses.items()},
        room_names={rid: r.name for rid, r in snapshot.rooms.items()},
        person_names={pid: p.full_name for pid, p in snapshot.people.items()},
    )
    if reason is None:
        console.print("[green]OK[/]: no conflicts.")
        return 0

    console.print(f"[bold red]Conflict ({reason.kind.value})[/]: {escape(reason.message)}")
    return 1


def _cmd_check_reschedule(args: argparse.Namespace) -> int:
    settings = _settings(args)
    snapshot = load_snapshot(settings.snapshot_path)

    owner = snapshot.lecture(args.lecture)
    if owner is None:
        console.print(f"Unknown lecture: {escape(args.lecture)}")
        return 2
    if not args.reason.strip():
        console.print("A reschedule needs a reason.")
        return 2

    exception = RescheduleException(
        exception_id=args.id,
        lecture_id=owner.lecture_id,
        original_date=parse_date(args.original),
        new_date=parse_date(args.new_date),
        new_start=to_minutes(args.start) if args.start else owner.start,
        new_end=to_minutes(args.end) if args.end else owner.end,
        new_room_id=args.room or owner.room_id,
        reason=args.reason.strip(),
    )
    reason = validate_reschedule(snapshot.lectures, snapshot.exceptions, exception)
    if reason is None:
        console.print("[green]OK[/]: reschedule can be stored.")
        return 0

    console.print(f"[bold red]Conflict ({reason.kind.value})[/]: {escape(reason.message)}")
    return 1


def _cmd_export(args: argparse.Namespace) -> int:
    """
    Export resolved occurrences of a date range into an iCalendar (.ics) file.
    """
    settings = _settings(args)
    snapshot = load_snapshot(settings.snapshot_path)

    out_path = (args.out or "").strip()
    if not out_path:
        console.print("Please provide output .ics path.")
        return 2

    first = _target_date(args.date_from)
    last = parse_date(args.date_to) if args.date_to else first
    if last < first:
        console.print("--to must not be before --from.")
        return 2

    lectures = filter_lectures(snapshot.lectures, _lecture_filter(args))
    occurrences = filter_occurrences(resolve_range(lectures, snapshot.exceptions, first, last), args.room)
    if not occurrences:
        console.print("No lectures to export.")
        return 0

    n = export_occurrences_to_ics(occurrences, snapshot, out_path)
    console.print(f"Exported {n} lectures to: {out_path}")
    return 0


def _add_filters(p: argparse.ArgumentParser) -> None:
    p.add_argument("--department", type=str, default=None, help="Department id")
    p.add_argument("--shift", choices=[s.value for s in StudyShift], default=None, help="Study shift")
    p.add_argument("--room", type=str, default=None, help="Room id")
    p.add_argument("--year", type=int, default=None, help="Academic year / level")
    p.add_argument("--instructor", type=str, default=None, help="Instructor or assistant id")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="lectureplan", description="Weekly lecture timetable tools")
    parser.add_argument("--snapshot", type=str, default=None, help="Path of snapshot.json")
    sub = parser.add_subparsers(dest="command", required=True)

    p_fetch = sub.add_parser("fetch", help="Download lectures and reschedules from the portal API")
    p_fetch.add_argument("--api-url", type=str, default=None, help="Portal API base URL")
    p_fetch.add_argument("--token", type=str, default=None, help="Bearer token")

    p_day = sub.add_parser("day", help="Lectures taking place on one date")
    p_day.add_argument("date", nargs="?", default=None, help="YYYY-MM-DD (default: today)")
    _add_filters(p_day)

    p_week = sub.add_parser("week", help="Sunday-Thursday view of one week")
    p_week.add_argument("date", nargs="?", default=None, help="Any date of the week (default: today)")
    _add_filters(p_week)

    p_conf = sub.add_parser("conflicts", help="Show room and instructor conflicts")
    p_conf.add_argument("--with-overrides", metavar="DATE", default=None, help="Also check reschedules of DATE")

    p_check = sub.add_parser("check", help="Validate a new lecture against the timetable")
    p_check.add_argument("--id", type=str, default="candidate", help="Lecture id (use the existing id to re-check an edit)")
    p_check.add_argument("--course", type=str, required=True)
    p_check.add_argument("--instructor", type=str, required=True)
    p_check.add_argument("--room", type=str, required=True)
    p_check.add_argument("--day", type=str, required=True, help="0-4 or day name (Sunday=0)")
    p_check.add_argument("--start", type=str, required=True, help="HH:MM")
    p_check.add_argument("--end", type=str, required=True, help="HH:MM")
    p_check.add_argument("--kind", choices=[k.value for k in LectureKind], default=LectureKind.THEORETICAL.value)
    p_check.add_argument("--shift", choices=[s.value for s in StudyShift], default=StudyShift.MORNING.value)
    p_check.add_argument("--year", type=int, default=1)
    p_check.add_argument("--assistant", action="append", help="Assistant id (repeatable, practical only)")

    p_resch = sub.add_parser("check-reschedule", help="Validate a reschedule before it is stored")
    p_resch.add_argument("--id", type=str, default="candidate")
    p_resch.add_argument("--lecture", type=str, required=True)
    p_resch.add_argument("--original", type=str, required=True, help="Date of the occurrence to move")
    p_resch.add_argument("--new-date", type=str, required=True)
    p_resch.add_argument("--start", type=str, default=None, help="New start (default: unchanged)")
    p_resch.add_argument("--end", type=str, default=None, help="New end (default: unchanged)")
    p_resch.add_argument("--room", type=str, default=None, help="New room (default: unchanged)")
    p_resch.add_argument("--reason", type=str, required=True, help="Why the lecture is moved")

    p_export = sub.add_parser("export", help="Export resolved lectures to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")
    p_export.add_argument("--from", dest="date_from", default=None, help="First date (default: today)")
    p_export.add_argument("--to", dest="date_to", default=None, help="Last date (default: same as --from)")
    _add_filters(p_export)

    return parser


COMMANDS = {
    "fetch": _cmd_fetch,
    "day": _cmd_day,
    "week": _cmd_week,
    "conflicts": _cmd_conflicts,
    "check": _cmd_check,
    "check-reschedule": _cmd_check_reschedule,
    "export": _cmd_export,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        code = handler(args)
    except LecturePlanError as exc:
        console.print(f"[red]Error[/]: {escape(str(exc))}")
        raise SystemExit(2)
    except ValueError as exc:
        console.print(f"[red]Invalid input[/]: {escape(str(exc))}")
        raise SystemExit(2)
    raise SystemExit(code)
