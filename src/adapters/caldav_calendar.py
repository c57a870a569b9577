"""CalDAV calendar adapter — implements CalendarPort for CalDAV servers.

Supports iCloud, Nextcloud, Fastmail, and any CalDAV-compliant server.
Uses the caldav library (sync) wrapped with asyncio.to_thread for async
compatibility.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

import caldav
from icalendar import Calendar as iCalendar
from icalendar import Event as iEvent

from src.core.intent import parse_instant
from src.data.models import CalendarEventRecord, CalendarEventRequest
from src.ports.errors import CalendarActionError

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)


def _get_calendar(settings: Settings) -> caldav.Calendar:
    """Connect to CalDAV server and return the configured calendar."""
    client = caldav.DAVClient(
        url=settings.CALDAV_URL,
        username=settings.CALDAV_USERNAME,
        password=settings.CALDAV_PASSWORD,
    )
    principal = client.principal()
    calendars = principal.calendars()

    if not calendars:
        raise CalendarActionError("No calendars found on the CalDAV server.")

    if settings.CALDAV_CALENDAR_NAME:
        for cal in calendars:
            if cal.name == settings.CALDAV_CALENDAR_NAME:
                return cal
        raise CalendarActionError(
            f"Calendar '{settings.CALDAV_CALENDAR_NAME}' not found. "
            f"Available: {[c.name for c in calendars]}"
        )

    return calendars[0]


def _localize(value: str, time_zone: str) -> datetime:
    """Parse an ISO instant; naive values are pinned to `time_zone`."""
    dt = parse_instant(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(time_zone))
    return dt


def _build_vevent(
    summary: str,
    description: str,
    start_dt: datetime,
    end_dt: datetime,
    uid: str | None = None,
) -> str:
    """Build an iCalendar VEVENT string."""
    cal = iCalendar()
    cal.add("prodid", "-//Voice Assistant//EN")
    cal.add("version", "2.0")

    event = iEvent()
    event.add("uid", uid or str(uuid.uuid4()))
    event.add("summary", summary)
    if description:
        event.add("description", description)
    event.add("dtstart", start_dt)
    event.add("dtend", end_dt)

    cal.add_component(event)
    return cal.to_ical().decode("utf-8")


class CalDAVCalendarAdapter:
    """CalDAV implementation of CalendarPort."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def create_event(self, request: CalendarEventRequest) -> CalendarEventRecord:
        time_zone = request.time_zone or self._settings.TIMEZONE
        uid = str(uuid.uuid4())

        try:
            vcal = _build_vevent(
                summary=request.title,
                description=request.description,
                start_dt=_localize(request.start, time_zone),
                end_dt=_localize(request.end, time_zone),
                uid=uid,
            )
            cal = await asyncio.to_thread(_get_calendar, self._settings)
            saved = await asyncio.to_thread(cal.save_event, vcal)
        except CalendarActionError:
            raise
        except Exception as exc:
            logger.error("CalDAV error (create_event): %s", exc)
            raise CalendarActionError(f"Failed to create calendar event: {exc}") from exc

        link = str(getattr(saved, "url", "") or "")
        logger.info("CalDAV event created: '%s' at %s", request.title, request.start)
        return CalendarEventRecord(id=uid, link=link)
