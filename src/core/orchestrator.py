"""
Voice Assistant — Workflow Orchestrator.

Sequences one voice request end to end:
transcribe audio -> classify intent -> dispatch to calendar / notes / chat
-> always delete the audio artifact.

The orchestrator depends only on the port protocols and owns error
translation: each stage fails with its own WorkflowError subclass so a
caller can tell which stage broke. Artifact cleanup never fails a request.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Union

from src.core.intent import ClassificationContext, Intent, IntentCategory, parse_instant
from src.data.models import CalendarEventRequest, Note, Transcript
from src.ports.errors import (
    CalendarActionError,
    ClassificationError,
    StorageError,
    TranscriptionError,
    WorkflowError,
)

if TYPE_CHECKING:
    from src.ports.calendar_port import CalendarPort
    from src.ports.classifier_port import IntentClassifierPort
    from src.ports.note_port import NotePort
    from src.ports.storage_port import StoragePort
    from src.ports.transcription_port import TranscriptionPort

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I understand."


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class ActionKind(Enum):
    EVENT = "event"
    NOTE = "note"
    CHAT = "chat"


@dataclass(frozen=True)
class WorkflowResult:
    transcript: str
    reply: str
    action: ActionKind
    category: str
    link: str | None = None    # only for EVENT
    note: Note | None = None   # only for NOTE

    def to_dict(self) -> dict:
        data = asdict(self)
        data["action"] = self.action.value
        if data["link"] is None:
            del data["link"]
        if data["note"] is None:
            del data["note"]
        return data


@dataclass(frozen=True)
class WorkflowOutcome:
    """Success-or-typed-error value for callers that render outcomes."""

    result: WorkflowResult | None = None
    error: WorkflowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def stage(self) -> str | None:
        return self.error.stage if self.error is not None else None


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CalendarPlan:
    request: CalendarEventRequest


@dataclass(frozen=True)
class NotePlan:
    intent: Intent


@dataclass(frozen=True)
class ChatPlan:
    reply: str


ActionPlan = Union[CalendarPlan, NotePlan, ChatPlan]


def plan_action(intent: Intent) -> ActionPlan:
    """Map a validated Intent onto the action to perform. Pure.

    An event missing title/start/end degrades to a chat reply instead of
    failing; partial classifier output is tolerated here on purpose.
    """
    if intent.category == IntentCategory.EVENT:
        if intent.title and intent.timestamp and intent.end_timestamp:
            return CalendarPlan(
                request=CalendarEventRequest(
                    title=intent.title,
                    start=intent.timestamp,
                    end=intent.end_timestamp,
                    description=intent.body or "",
                )
            )
        logger.warning(
            "Event intent incomplete (title=%r, timestamp=%r, endTimestamp=%r), replying instead",
            intent.title, intent.timestamp, intent.end_timestamp,
        )
        return ChatPlan(reply=intent.reply or FALLBACK_REPLY)

    if intent.is_note:
        return NotePlan(intent=intent)

    return ChatPlan(reply=intent.reply or FALLBACK_REPLY)


def format_instant(value: str) -> str:
    """Human-readable start time for replies, e.g. 'Thu Jan 02, 2025 at 15:00'."""
    return parse_instant(value).strftime("%a %b %d, %Y at %H:%M")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    """Runs the voice workflow against injected ports.

    Holds no per-request state, so concurrent `process()` calls are
    independent; only the note store is shared between them.
    """

    def __init__(
        self,
        transcriber: TranscriptionPort,
        classifier: IntentClassifierPort,
        calendar: CalendarPort,
        notes: NotePort,
        storage: StoragePort,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._transcriber = transcriber
        self._classifier = classifier
        self._calendar = calendar
        self._notes = notes
        self._storage = storage
        self._clock = clock

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def process(self, audio_ref: str) -> WorkflowResult:
        """Turn one audio artifact into a WorkflowResult.

        The artifact is deleted exactly once on every exit path.

        Raises:
            TranscriptionError, ClassificationError, CalendarActionError,
            StorageError: the stage that failed.
        """
        logger.info("Starting audio request processing for %s", audio_ref)
        try:
            transcript = await self._transcribe(audio_ref)
            intent = await self._classify(transcript)
            result = await self._execute(plan_action(intent), intent, transcript)
            logger.info("Audio request processed: action=%s", result.action.value)
            return result
        finally:
            await self._cleanup(audio_ref)

    async def handle(self, audio_ref: str) -> WorkflowOutcome:
        """Like `process()`, but returns stage failures as a WorkflowOutcome."""
        try:
            return WorkflowOutcome(result=await self.process(audio_ref))
        except WorkflowError as exc:
            logger.error("Workflow failed at %s stage: %s", exc.stage, exc)
            return WorkflowOutcome(error=exc)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _transcribe(self, audio_ref: str) -> Transcript:
        logger.info("Step 1: Transcribing audio")
        try:
            transcript = await self._transcriber.transcribe(audio_ref)
        except TranscriptionError:
            raise
        except Exception as exc:
            raise TranscriptionError(f"Failed to transcribe audio: {exc}") from exc
        logger.info("Transcription: %r", transcript.text[:80])
        return transcript

    async def _classify(self, transcript: Transcript) -> Intent:
        logger.info("Step 2: Extracting intent")
        context = ClassificationContext(current_instant=self._clock().isoformat())
        try:
            intent = await self._classifier.classify(transcript.text, context)
        except ClassificationError:
            raise
        except Exception as exc:
            raise ClassificationError(f"Failed to extract intent: {exc}") from exc
        if not isinstance(intent, Intent):
            raise ClassificationError(
                f"Classifier returned {type(intent).__name__}, expected Intent"
            )
        return intent

    async def _execute(
        self, plan: ActionPlan, intent: Intent, transcript: Transcript
    ) -> WorkflowResult:
        if isinstance(plan, CalendarPlan):
            logger.info("Step 3: Creating calendar event: %s", plan.request.title)
            try:
                record = await self._calendar.create_event(plan.request)
            except CalendarActionError:
                raise
            except Exception as exc:
                raise CalendarActionError(f"Failed to create calendar event: {exc}") from exc
            return WorkflowResult(
                transcript=transcript.text,
                reply=f'I\'ve scheduled "{plan.request.title}" for {format_instant(plan.request.start)}.',
                action=ActionKind.EVENT,
                category=IntentCategory.EVENT.value,
                link=record.link,
            )

        if isinstance(plan, NotePlan):
            category = plan.intent.category.value
            logger.info("Step 3: Saving %s note: %s", category, plan.intent.title)
            try:
                note = await self._notes.save(plan.intent)
            except StorageError:
                raise
            except Exception as exc:
                raise StorageError(f"Failed to save note: {exc}") from exc
            return WorkflowResult(
                transcript=transcript.text,
                reply=f'I\'ve saved your {category}: "{note.title}".',
                action=ActionKind.NOTE,
                category=category,
                note=note,
            )

        logger.info("Step 3: Replying (category: %s)", intent.category.value)
        return WorkflowResult(
            transcript=transcript.text,
            reply=plan.reply,
            action=ActionKind.CHAT,
            category=IntentCategory.CHAT.value,
        )

    async def _cleanup(self, audio_ref: str) -> None:
        logger.info("Cleaning up audio file %s", audio_ref)
        try:
            await self._storage.delete(audio_ref)
        except Exception as exc:
            logger.warning("Failed to clean up audio file %s: %s", audio_ref, exc)
