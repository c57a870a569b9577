"""Tests for the Google Calendar adapter.

All Google API calls are mocked.
"""

import asyncio
import threading
import time

import pytest
from unittest.mock import MagicMock, patch

from src.adapters.google_calendar import GoogleCalendarAdapter, _build_event_body
from src.data.models import CalendarEventRecord, CalendarEventRequest
from src.ports.errors import CalendarActionError

_PATCH_GCS = "src.adapters.google_calendar.get_calendar_service"

REQUEST = CalendarEventRequest(
    title="Meeting with Sam",
    start="2025-01-02T15:00:00Z",
    end="2025-01-02T16:00:00Z",
)


def _mock_service(execute_return=None, execute_side_effect=None):
    """Create a mock Google Calendar service."""
    service = MagicMock()
    insert = service.events.return_value.insert
    insert.return_value.execute.return_value = execute_return
    insert.return_value.execute.side_effect = execute_side_effect
    return service


class TestBuildEventBody:
    def test_builds_correct_body(self):
        body = _build_event_body(REQUEST, "UTC")
        assert body["summary"] == "Meeting with Sam"
        assert body["start"] == {"dateTime": "2025-01-02T15:00:00Z", "timeZone": "UTC"}
        assert body["end"] == {"dateTime": "2025-01-02T16:00:00Z", "timeZone": "UTC"}
        assert "description" not in body

    def test_request_time_zone_wins(self):
        request = CalendarEventRequest(title="x", start="2025-01-02T15:00:00",
                                       end="2025-01-02T16:00:00", time_zone="Europe/Berlin",
                                       description="Agenda")
        body = _build_event_body(request, "UTC")
        assert body["start"]["timeZone"] == "Europe/Berlin"
        assert body["description"] == "Agenda"


class TestCreateEvent:
    @pytest.mark.asyncio
    async def test_success(self, settings):
        service = _mock_service({"id": "abc", "htmlLink": "https://calendar.google.com/e/abc"})
        with patch(_PATCH_GCS, return_value=service) as gcs:
            record = await GoogleCalendarAdapter(settings).create_event(REQUEST)

        assert record == CalendarEventRecord(id="abc", link="https://calendar.google.com/e/abc")
        gcs.assert_called_once_with(settings)
        insert_kwargs = service.events.return_value.insert.call_args.kwargs
        assert insert_kwargs["calendarId"] == "primary"
        assert insert_kwargs["body"]["summary"] == "Meeting with Sam"

    @pytest.mark.asyncio
    async def test_service_built_per_call_in_worker_thread(self, settings):
        loop_thread = threading.get_ident()
        build_threads = []

        def _build(_settings):
            build_threads.append(threading.get_ident())
            return _mock_service({"id": "abc", "htmlLink": "https://x"})

        with patch(_PATCH_GCS, side_effect=_build):
            adapter = GoogleCalendarAdapter(settings)
            await asyncio.gather(adapter.create_event(REQUEST), adapter.create_event(REQUEST))

        assert len(build_threads) == 2
        assert loop_thread not in build_threads

    @pytest.mark.asyncio
    async def test_slow_auth_does_not_block_event_loop(self, settings):
        def _slow_build(_settings):
            time.sleep(0.3)
            return _mock_service({"id": "abc", "htmlLink": "https://x"})

        ticks = []

        async def _ticker():
            for _ in range(20):
                ticks.append(time.monotonic())
                await asyncio.sleep(0.01)

        with patch(_PATCH_GCS, side_effect=_slow_build):
            await asyncio.gather(_ticker(), GoogleCalendarAdapter(settings).create_event(REQUEST))

        gaps = [b - a for a, b in zip(ticks, ticks[1:])]
        assert max(gaps) < 0.2

    @pytest.mark.asyncio
    async def test_api_error(self, settings):
        service = _mock_service(execute_side_effect=Exception("API down"))
        with patch(_PATCH_GCS, return_value=service):
            with pytest.raises(CalendarActionError, match="Failed to create calendar event"):
                await GoogleCalendarAdapter(settings).create_event(REQUEST)

    @pytest.mark.asyncio
    async def test_auth_error(self, settings):
        with patch(_PATCH_GCS, side_effect=RuntimeError("No valid Google token")):
            with pytest.raises(CalendarActionError):
                await GoogleCalendarAdapter(settings).create_event(REQUEST)

    @pytest.mark.asyncio
    async def test_response_without_link(self, settings):
        service = _mock_service({"id": "abc"})
        with patch(_PATCH_GCS, return_value=service):
            with pytest.raises(CalendarActionError, match="Invalid response"):
                await GoogleCalendarAdapter(settings).create_event(REQUEST)
