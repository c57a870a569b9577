"""JSON notes adapter — implements NotePort on a single JSON document.

Layout (UTF-8):
{
    "notes": [
        {"category": "idea", "title": "...", "date": "2025-01-01T09:00:00+00:00", "body": "..."}
    ]
}

The document is rewritten wholesale on each save through a temp file and
os.replace(), so a failed write leaves the previous document intact.
Notes are never removed or edited in place.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from src.core.intent import Intent
from src.data.models import Note
from src.ports.errors import StorageError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JsonNoteStore:
    """Append-only note store backed by one JSON file."""

    def __init__(self, path: str | Path, clock: Callable[[], datetime] = _utc_now) -> None:
        self._path = Path(path)
        self._clock = clock
        # Serialises read-modify-write so concurrent saves never drop a note
        self._lock = asyncio.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    async def save(self, intent: Intent) -> Note:
        """Append a note built from `intent`, filling defaults for missing fields."""
        note = Note(
            category=intent.category.value,
            title=intent.title or "Untitled",
            date=intent.timestamp or self._clock().isoformat(),
            body=intent.body or "",
        )
        logger.info("Saving note of type: %s", note.category)

        async with self._lock:
            notes = await asyncio.to_thread(self._read)
            notes.append(note)
            await asyncio.to_thread(self._write, notes)

        logger.info("Note saved successfully (%d total)", len(notes))
        return note

    async def list_all(self) -> list[Note]:
        return await asyncio.to_thread(self._read)

    async def list_by_category(self, category: str) -> list[Note]:
        return [note for note in await self.list_all() if note.category == category]

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read(self) -> list[Note]:
        if not self._path.exists():
            logger.debug("Notes file %s does not exist yet", self._path)
            return []

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return [Note.from_dict(item) for item in data.get("notes", [])]
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.error("Failed to read notes from %s: %s", self._path, exc)
            raise StorageError(f"Failed to read notes: {exc}") from exc

    def _write(self, notes: list[Note]) -> None:
        payload = json.dumps(
            {"notes": [note.to_dict() for note in notes]},
            ensure_ascii=False,
            indent=2,
        )
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            logger.error("Failed to write notes to %s: %s", self._path, exc)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to save note: {exc}") from exc
