"""Local storage adapter — implements StoragePort on the local filesystem."""

from __future__ import annotations

import logging
from pathlib import Path

from src.ports.errors import StorageError

logger = logging.getLogger(__name__)


class LocalArtifactStorage:
    """Deletes uploaded audio files once a workflow has finished with them."""

    async def delete(self, ref: str) -> None:
        try:
            Path(ref).unlink()
        except FileNotFoundError:
            logger.warning("File does not exist: %s", ref)
            return
        except OSError as exc:
            logger.error("Failed to delete file %s: %s", ref, exc)
            raise StorageError(f"Failed to delete file: {ref}") from exc
        logger.info("File deleted successfully: %s", ref)
