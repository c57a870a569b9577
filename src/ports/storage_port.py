"""Storage port — removal of transient input artifacts."""

from __future__ import annotations

from typing import Protocol


class StoragePort(Protocol):
    """Best-effort deletion of uploaded audio artifacts."""

    async def delete(self, ref: str) -> None: ...
