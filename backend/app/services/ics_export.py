"""iCalendar export of practices for calendar apps."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urlencode

from icalendar import Calendar, Event

from app.services.scheduling.types import Occurrence

PRODID = "-//PingPong Hub//Practice Schedule//EN"
UID_DOMAIN = "pingpong-hub"
GOOGLE_CALENDAR_RENDER_URL = "https://calendar.google.com/calendar/render"


def _local_datetime(occurrence: Occurrence, hhmm: str) -> datetime:
    hours, minutes = hhmm[:5].split(":")
    # Naive datetimes are written as floating local times
    return datetime(
        occurrence.event_date.year,
        occurrence.event_date.month,
        occurrence.event_date.day,
        int(hours),
        int(minutes),
    )


def summary_for(occurrence: Occurrence) -> str:
    return f"Table tennis practice - {occurrence.team_name or 'Practice'}"


def description_for(occurrence: Occurrence) -> Optional[str]:
    parts = []
    if occurrence.content:
        parts.append(occurrence.content.strip())
    if occurrence.fee:
        parts.append(f"Fee: {occurrence.fee.strip()}")
    return "\n".join(parts) or None


def build_calendar(
    occurrences: Iterable[Occurrence],
    stamp: Optional[datetime] = None,
) -> bytes:
    """Render practices as a VCALENDAR document."""
    stamp = stamp or datetime.now(timezone.utc)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")

    for occ in occurrences:
        event = Event()
        event.add("uid", f"{occ.id}@{UID_DOMAIN}")
        event.add("dtstamp", stamp)
        event.add("dtstart", _local_datetime(occ, occ.start_time))
        event.add("dtend", _local_datetime(occ, occ.end_time))
        event.add("summary", summary_for(occ))
        if occ.location:
            event.add("location", occ.location)
        description = description_for(occ)
        if description:
            event.add("description", description)
        cal.add_component(event)

    return cal.to_ical()


def google_calendar_url(occurrence: Occurrence) -> str:
    """URL of Google Calendar's pre-filled "add event" page."""
    fmt = "%Y%m%dT%H%M%S"
    start = _local_datetime(occurrence, occurrence.start_time).strftime(fmt)
    end = _local_datetime(occurrence, occurrence.end_time).strftime(fmt)
    params = {
        "action": "TEMPLATE",
        "text": summary_for(occurrence),
        "dates": f"{start}/{end}",
    }
    if occurrence.location and occurrence.location.strip():
        params["location"] = occurrence.location.strip()
    description = description_for(occurrence)
    if description:
        params["details"] = description
    return f"{GOOGLE_CALENDAR_RENDER_URL}?{urlencode(params)}"
