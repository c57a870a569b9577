"""Shared test fixtures and configuration.

Provides settings, a temp-file note store, a fixed clock and a fully
mocked set of ports for the orchestrator.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config import Settings
from src.data.models import CalendarEventRecord, Transcript

FIXED_NOW = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path):
    """Return Settings with fake keys and a temp notes dir."""
    return Settings(
        TELEGRAM_BOT_TOKEN="fake-token-for-tests",
        LLM_API_KEY="fake-llm-key-for-tests",
        ALLOWED_USER_IDS="12345",
        NOTES_DIR=str(tmp_path / "notes"),
    )


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def note_store(tmp_path, fixed_clock):
    """Return a JsonNoteStore backed by a temp file."""
    from src.adapters.json_notes import JsonNoteStore
    return JsonNoteStore(tmp_path / "notes" / "notes.json", clock=fixed_clock)


@pytest.fixture
def ports():
    """Return mocked ports with happy-path defaults."""
    transcriber = MagicMock()
    transcriber.transcribe = AsyncMock(return_value=Transcript(text="Hello there"))
    classifier = MagicMock()
    classifier.classify = AsyncMock()
    calendar = MagicMock()
    calendar.create_event = AsyncMock(
        return_value=CalendarEventRecord(id="evt_1", link="https://cal/evt_1")
    )
    notes = MagicMock()
    notes.save = AsyncMock()
    storage = MagicMock()
    storage.delete = AsyncMock(return_value=None)
    return MagicMock(
        transcriber=transcriber,
        classifier=classifier,
        calendar=calendar,
        notes=notes,
        storage=storage,
    )


@pytest.fixture
def orchestrator(ports, fixed_clock):
    from src.core.orchestrator import Orchestrator
    return Orchestrator(
        transcriber=ports.transcriber,
        classifier=ports.classifier,
        calendar=ports.calendar,
        notes=ports.notes,
        storage=ports.storage,
        clock=fixed_clock,
    )
