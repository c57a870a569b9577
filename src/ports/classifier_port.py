"""Intent classifier port — abstract interface for utterance classification."""

from __future__ import annotations

from typing import Protocol

from src.core.intent import ClassificationContext, Intent


class IntentClassifierPort(Protocol):
    """Converts text plus temporal context into an Intent.

    Raises ClassificationError, including for malformed classifier output.
    """

    async def classify(self, text: str, context: ClassificationContext) -> Intent: ...
