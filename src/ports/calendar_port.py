"""Calendar port — abstract interface for calendar operations.

Core modules depend on this protocol, never on a specific provider.
"""

from __future__ import annotations

from typing import Protocol

from src.data.models import CalendarEventRecord, CalendarEventRequest


class CalendarPort(Protocol):
    """Abstract calendar interface used by the orchestrator."""

    async def create_event(self, request: CalendarEventRequest) -> CalendarEventRecord: ...
