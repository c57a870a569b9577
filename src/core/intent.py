"""
Voice Assistant — Intent schema.

The JSON contract between the orchestrator and the LLM classifier.
The classifier is untrusted input: `parse_intent()` validates category
membership and required fields before anything is dispatched, and every
violation surfaces as a ClassificationError instead of a silent default.

JSON example:
{
    "category": "event",
    "title": "Meeting with Sam",
    "timestamp": "2025-01-02T15:00:00Z",
    "endTimestamp": "2025-01-02T16:00:00Z"
}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from src.ports.errors import ClassificationError

logger = logging.getLogger(__name__)


class IntentCategory(str, Enum):
    EVENT = "event"
    PROBLEM = "problem"
    IDEA = "idea"
    DECISION = "decision"
    TODO = "todo"
    CHAT = "chat"


NOTE_CATEGORIES = frozenset({
    IntentCategory.PROBLEM,
    IntentCategory.IDEA,
    IntentCategory.DECISION,
    IntentCategory.TODO,
})

# Spellings seen from classifier prompts across revisions
_CATEGORY_ALIASES = {
    "to_do": "todo",
    "to-do": "todo",
    "to do": "todo",
}

DEFAULT_EVENT_DURATION = timedelta(hours=1)


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant, accepting a trailing 'Z' for UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class ClassificationContext:
    """Temporal context handed to the classifier with each utterance."""

    current_instant: str  # ISO-8601


class Intent(BaseModel):
    """Structured classification of one utterance.

    `category` selects which field group is meaningful:
    - event: title + timestamp + endTimestamp
    - problem / idea / decision / todo: title + body (timestamp optional)
    - chat: reply
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: IntentCategory
    title: str | None = None
    timestamp: str | None = None
    end_timestamp: str | None = Field(default=None, alias="endTimestamp")
    body: str | None = None
    reply: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: object) -> object:
        if isinstance(v, str):
            key = v.strip().lower()
            return _CATEGORY_ALIASES.get(key, key)
        return v

    @field_validator("title", "body", "reply", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("timestamp", "end_timestamp", mode="before")
    @classmethod
    def check_instant(cls, v: object) -> object:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if not isinstance(v, str):
            raise ValueError("timestamps must be ISO-8601 strings")
        parse_instant(v)  # raises ValueError on malformed input
        return v.strip()

    @model_validator(mode="after")
    def check_category_fields(self) -> Intent:
        if self.category in NOTE_CATEGORIES and not self.title:
            raise ValueError(f"title is required for category '{self.category.value}'")

        if self.timestamp and self.end_timestamp:
            start = parse_instant(self.timestamp)
            end = parse_instant(self.end_timestamp)
            if (start.tzinfo is None) != (end.tzinfo is None):
                raise ValueError("timestamp and endTimestamp mix naive and zoned instants")
            if end <= start:
                raise ValueError("endTimestamp must be strictly after timestamp")
        return self

    @property
    def is_note(self) -> bool:
        return self.category in NOTE_CATEGORIES

    def with_default_end(self) -> Intent:
        """Return an event intent whose missing end is start + 1 hour."""
        if self.category != IntentCategory.EVENT or not self.timestamp or self.end_timestamp:
            return self
        end = parse_instant(self.timestamp) + DEFAULT_EVENT_DURATION
        return self.model_copy(update={"end_timestamp": end.isoformat()})


# ---------------------------------------------------------------------------
# Response cleaning / legacy schemas
# ---------------------------------------------------------------------------


def _clean_llm_response(raw_text: str) -> str:
    """Remove markdown code block delimiters from LLM's raw response."""
    cleaned_text = raw_text.strip()
    if cleaned_text.startswith("```json"):
        cleaned_text = cleaned_text.removeprefix("```json")
    elif cleaned_text.startswith("```"):
        cleaned_text = cleaned_text.removeprefix("```")
    if cleaned_text.endswith("```"):
        cleaned_text = cleaned_text.removesuffix("```")
    return cleaned_text.strip()


def _upgrade_legacy_schema(data: dict) -> dict:
    """Map older classifier schemas onto the category schema.

    - binary: {"is_event", "summary", "start", "end", "reply"}
    - tagged: {"teg", "title", "date", "end", "body", "reply"}
    """
    if "category" in data:
        return data

    if "is_event" in data:
        logger.debug("Upgrading binary is_event intent")
        return {
            "category": "event" if data.get("is_event") else "chat",
            "title": data.get("summary"),
            "timestamp": data.get("start"),
            "endTimestamp": data.get("end"),
            "reply": data.get("reply"),
        }

    if "teg" in data:
        logger.debug("Upgrading teg-tagged intent")
        return {
            "category": data.get("teg"),
            "title": data.get("title"),
            "timestamp": data.get("date"),
            "endTimestamp": data.get("end"),
            "body": data.get("body"),
            "reply": data.get("reply"),
        }

    return data


# ---------------------------------------------------------------------------
# Parser function
# ---------------------------------------------------------------------------


def parse_intent(raw_text: str) -> Intent:
    """Validate raw classifier output into an Intent.

    Raises:
        ClassificationError: empty output, malformed JSON, a non-object,
            an unknown category or missing/invalid fields for the category.
    """
    cleaned = _clean_llm_response(raw_text or "")
    logger.debug("Classifier raw response: %s", cleaned)

    if not cleaned:
        raise ClassificationError("Classifier returned an empty response")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse classifier response as JSON: %s — raw: '%s'", exc, cleaned)
        raise ClassificationError("Classifier returned malformed JSON") from exc

    if not isinstance(data, dict):
        raise ClassificationError(
            f"Classifier returned {type(data).__name__}, expected a JSON object"
        )

    try:
        intent = Intent.model_validate(_upgrade_legacy_schema(data))
    except ValidationError as exc:
        logger.error("Classifier output violates intent schema: %s", exc)
        raise ClassificationError(
            f"Classifier output violates the intent schema ({exc.error_count()} error(s))"
        ) from exc

    logger.info("Parsed intent: category=%s title=%s", intent.category.value, intent.title)
    return intent
