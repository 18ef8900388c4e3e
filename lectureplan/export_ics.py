"""
iCalendar (.ics) export.

We convert resolved occurrences into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Every occurrence becomes one VEVENT; there is no RRULE, so rescheduled dates
come out exactly as the resolver produced them.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable

from lectureplan.model import Occurrence, Snapshot


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(day: date, minutes: int) -> str:
    """
    Convert date + minutes to ICS local datetime string 'YYYYMMDDTHHMM00'.
    """
    return f"{day.strftime('%Y%m%d')}T{minutes // 60:02d}{minutes % 60:02d}00"


def export_occurrences_to_ics(occurrences: Iterable[Occurrence], snapshot: Snapshot, out_path: str | Path) -> int:
    """
    Export occurrences to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//lectureplan//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for occ in occurrences:
        dtstart = _dt_local(occ.date, occ.start)
        dtend = _dt_local(occ.date, occ.end)

        code = snapshot.course_code(occ.course_id)
        name = snapshot.course_name(occ.course_id)
        summary = f"{code} {name}".strip() if name != code else code
        uid = f"{occ.occurrence_id}-{dtstart}@lectureplan"

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(uid)}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{dtstart}")
        lines.append(f"DTEND:{dtend}")
        lines.append(f"SUMMARY:{_ics_escape(summary)}")
        lines.append(f"LOCATION:{_ics_escape(snapshot.room_name(occ.room_id))}")

        description = [f"Instructor: {snapshot.person_name(occ.instructor_id)}"]
        if occ.assistant_ids:
            description.append("Assistants: " + ", ".join(snapshot.person_name(a) for a in occ.assistant_ids))
        if occ.is_override:
            description.append(f"Rescheduled: {occ.reason}" if occ.reason else "Rescheduled")
        lines.append("DESCRIPTION:" + _ics_escape("\n".join(description)))
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
