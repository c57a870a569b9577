"""Workflow error taxonomy.

Every port raises one of these, chained to the collaborator error that caused
it. Callers can tell "nothing was understood" (transcription/classification)
from "understood but failed to act" (calendar/storage) by type or by `stage`.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for all failures surfaced by the voice workflow."""

    stage: str = "workflow"

    @property
    def cause(self) -> BaseException | None:
        """The originating collaborator error, if any."""
        return self.__cause__


class TranscriptionError(WorkflowError):
    """Raised when audio could not be turned into text."""

    stage = "transcription"


class ClassificationError(WorkflowError):
    """Raised when the classifier fails or returns a malformed intent."""

    stage = "classification"


class CalendarActionError(WorkflowError):
    """Raised when any calendar provider operation fails."""

    stage = "calendar"


class StorageError(WorkflowError):
    """Raised when note persistence or artifact storage fails."""

    stage = "storage"
