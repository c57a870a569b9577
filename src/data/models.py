"""
Voice Assistant — Data Models.

Plain records exchanged between the orchestrator and its ports.
None of them are mutated after creation: every workflow run produces
fresh values.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Transcript:
    """Text recognised from one audio artifact."""

    text: str
    duration: float | None = None   # seconds, when the provider reports it
    language: str | None = None


@dataclass(frozen=True)
class Note:
    """A persisted note.

    Identity is positional: the stored list is the single source of truth,
    so there is no id field.
    """

    category: str          # problem | idea | decision | todo
    title: str
    date: str              # ISO-8601 instant
    body: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Note:
        return cls(
            category=data["category"],
            title=data.get("title", "Untitled"),
            date=data.get("date", ""),
            body=data.get("body", ""),
        )


@dataclass(frozen=True)
class CalendarEventRequest:
    """What the orchestrator asks a calendar provider to create."""

    title: str
    start: str                     # ISO-8601
    end: str                       # ISO-8601, strictly after start
    description: str = ""
    time_zone: str | None = None   # None → adapter default


@dataclass(frozen=True)
class CalendarEventRecord:
    """Stable reference to a created calendar entry."""

    id: str
    link: str
