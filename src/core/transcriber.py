"""
Voice Assistant — Audio Transcriber.

Speech-to-text via Whisper on any OpenAI-compatible endpoint
(Groq by default, OpenAI when TRANSCRIPTION_BASE_URL is empty).
Implements TranscriptionPort.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from openai import AsyncOpenAI

from src.data.models import Transcript
from src.ports.errors import TranscriptionError

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)


class WhisperTranscriber:
    """Whisper implementation of TranscriptionPort."""

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-large-v3-turbo",
        base_url: str | None = None,
        language: str | None = None,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self._model = model
        self._language = language or None

    async def transcribe(self, audio_ref: str) -> Transcript:
        """Transcribe an audio file.

        Args:
            audio_ref: Path to the audio file (OGG, M4A, MP3, WAV...).

        Raises:
            TranscriptionError: If the file can't be read or the API call fails.
        """
        kwargs: dict = {}
        if self._language:
            kwargs["language"] = self._language

        try:
            with open(audio_ref, "rb") as audio_file:
                response = await self._client.audio.transcriptions.create(
                    model=self._model,
                    file=audio_file,
                    response_format="verbose_json",
                    **kwargs,
                )
        except Exception as exc:
            logger.error("Whisper transcription failed for %s: %s", audio_ref, exc)
            raise TranscriptionError(f"Failed to transcribe audio: {exc}") from exc

        text = (response.text or "").strip()
        logger.info("Transcribed %d chars from %s", len(text), Path(audio_ref).name)
        return Transcript(
            text=text,
            duration=getattr(response, "duration", None),
            language=getattr(response, "language", None),
        )


def create_transcriber(settings: Settings) -> WhisperTranscriber:
    return WhisperTranscriber(
        api_key=settings.TRANSCRIPTION_API_KEY or settings.LLM_API_KEY,
        model=settings.TRANSCRIPTION_MODEL,
        base_url=settings.TRANSCRIPTION_BASE_URL,
        language=settings.TRANSCRIPTION_LANGUAGE,
    )
