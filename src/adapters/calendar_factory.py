"""Calendar adapter factory — creates the right adapter based on config."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.ports.calendar_port import CalendarPort

if TYPE_CHECKING:
    from src.config import Settings


def create_calendar_adapter(settings: Settings) -> CalendarPort:
    """Return the calendar adapter matching the CALENDAR_PROVIDER setting."""
    provider = settings.CALENDAR_PROVIDER.lower()

    if provider == "google":
        from src.adapters.google_calendar import GoogleCalendarAdapter

        return GoogleCalendarAdapter(settings)

    if provider == "caldav":
        from src.adapters.caldav_calendar import CalDAVCalendarAdapter

        return CalDAVCalendarAdapter(settings)

    raise ValueError(f"Unknown CALENDAR_PROVIDER: {provider!r}")
