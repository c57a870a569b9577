"""Transcription port — abstract interface for speech-to-text."""

from __future__ import annotations

from typing import Protocol

from src.data.models import Transcript


class TranscriptionPort(Protocol):
    """Converts an audio artifact into text. Raises TranscriptionError."""

    async def transcribe(self, audio_ref: str) -> Transcript: ...
