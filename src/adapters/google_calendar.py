"""Google Calendar adapter — implements CalendarPort for Google Calendar API.

All Google-specific logic lives here. Core modules never import this directly;
they depend on the CalendarPort protocol.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from src.data.models import CalendarEventRecord, CalendarEventRequest
from src.integrations.google_auth import get_calendar_service
from src.ports.errors import CalendarActionError

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)


def _build_event_body(request: CalendarEventRequest, default_time_zone: str) -> dict:
    """Construct a Google Calendar API event body from a CalendarEventRequest."""
    time_zone = request.time_zone or default_time_zone
    body: dict = {
        "summary": request.title,
        "start": {"dateTime": request.start, "timeZone": time_zone},
        "end": {"dateTime": request.end, "timeZone": time_zone},
    }
    if request.description:
        body["description"] = request.description
    return body


class GoogleCalendarAdapter:
    """Google Calendar implementation of CalendarPort."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._calendar_id = settings.CALENDAR_ID or "primary"

    def _insert(self, event_body: dict) -> dict:
        # Worker thread only. httplib2 clients are not thread-safe, so no sharing.
        service = get_calendar_service(self._settings)
        return (
            service.events()
            .insert(calendarId=self._calendar_id, body=event_body)
            .execute()
        )

    async def create_event(self, request: CalendarEventRequest) -> CalendarEventRecord:
        event_body = _build_event_body(request, self._settings.TIMEZONE)
        try:
            created = await asyncio.to_thread(self._insert, event_body)
        except Exception as exc:
            logger.error("Google Calendar API error: %s", exc)
            raise CalendarActionError(f"Failed to create calendar event: {exc}") from exc

        event_id = created.get("id") if isinstance(created, dict) else None
        link = created.get("htmlLink") if isinstance(created, dict) else None
        if not event_id or not link:
            logger.error("Invalid response from Google Calendar API: %s", created)
            raise CalendarActionError("Invalid response from Google Calendar API")

        logger.info("Event created: '%s' at %s — %s", request.title, request.start, link)
        return CalendarEventRecord(id=event_id, link=link)
