"""
Voice Assistant — LLM Intent Classifier.

Brain of the pipeline: turns a transcript into a single Intent using the
configured LLM provider. Implements IntentClassifierPort.
"""

from __future__ import annotations

import logging

from src.core.intent import ClassificationContext, Intent, IntentCategory, parse_instant, parse_intent
from src.core.llm import LLMClient
from src.ports.errors import ClassificationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# System prompt for LLM
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are a smart personal assistant that sorts spoken notes.
Current Date/Time: {now} ({weekday}).

Classify the user's message into exactly ONE category and return a single JSON object.

**event** — something to schedule that has an explicit or inferable date/time
("meeting tomorrow at 3pm", "dentist on Friday at 10").
{{"category": "event", "title": "Short Event Title", "timestamp": "ISO 8601", "endTimestamp": "ISO 8601"}}
- If no end time is mentioned, endTimestamp = timestamp + 1 hour.
- Interpret relative dates ("tomorrow", "next Monday") relative to the current date/time.
- Without a specific date or time, it is NOT an event.

**problem** — an issue the user is facing, possibly with a fix.
{{"category": "problem", "title": "Short title", "body": "Problem: <the problem>, Solution: <the solution or unknown>"}}

**idea** — a thought or idea worth keeping.
{{"category": "idea", "title": "Short title", "body": "The idea"}}

**decision** — something the user has decided.
{{"category": "decision", "title": "Short title", "body": "The decision and its reason"}}

**todo** — a task without a specific time.
{{"category": "todo", "title": "Short title", "body": "Details"}}

**chat** — greetings, questions or anything without actionable content.
{{"category": "chat", "reply": "Your short conversational reply (under 2 sentences)."}}

Return ONLY the JSON object. No markdown, no explanation, no extra text.
"""


def build_system_prompt(context: ClassificationContext) -> str:
    """Render the system prompt for the given current instant."""
    now = parse_instant(context.current_instant)
    return _SYSTEM_PROMPT.format(now=context.current_instant, weekday=now.strftime("%A"))


class LLMIntentClassifier:
    """LLM-backed implementation of IntentClassifierPort."""

    def __init__(self, llm: LLMClient, max_tokens: int = 512) -> None:
        self._llm = llm
        self._max_tokens = max_tokens

    async def classify(self, text: str, context: ClassificationContext) -> Intent:
        logger.info("Classifying utterance: %s", text[:80])

        try:
            raw_text = await self._llm.complete(
                system=build_system_prompt(context),
                user_message=text,
                max_tokens=self._max_tokens,
                json_mode=True,
            )
        except Exception as exc:
            logger.error("LLM call failed during classification: %s", exc)
            raise ClassificationError(f"Failed to classify utterance: {exc}") from exc

        intent = parse_intent(raw_text)
        if intent.category == IntentCategory.EVENT:
            intent = intent.with_default_end()
        return intent
