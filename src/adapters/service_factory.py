"""Service wiring — the single place that picks port implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.adapters.calendar_factory import create_calendar_adapter
from src.adapters.json_notes import JsonNoteStore
from src.adapters.local_storage import LocalArtifactStorage
from src.core.classifier import LLMIntentClassifier
from src.core.llm import create_llm_client
from src.core.orchestrator import Orchestrator
from src.core.transcriber import create_transcriber
from src.ports.note_port import NotePort

if TYPE_CHECKING:
    from src.config import Settings


def create_orchestrator(settings: Settings, notes: NotePort | None = None) -> Orchestrator:
    """Build every port from `settings` and inject them into an Orchestrator.

    Pass `notes` to share one note store (and its write lock) with other readers.
    """
    return Orchestrator(
        transcriber=create_transcriber(settings),
        classifier=LLMIntentClassifier(create_llm_client(settings)),
        calendar=create_calendar_adapter(settings),
        notes=notes if notes is not None else JsonNoteStore(settings.notes_path),
        storage=LocalArtifactStorage(),
    )
