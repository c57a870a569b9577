"""Note port — append-only store for categorized notes."""

from __future__ import annotations

from typing import Protocol

from src.core.intent import Intent
from src.data.models import Note


class NotePort(Protocol):
    """Abstract note store. All operations raise StorageError on failure."""

    async def save(self, intent: Intent) -> Note: ...

    async def list_all(self) -> list[Note]: ...

    async def list_by_category(self, category: str) -> list[Note]: ...
