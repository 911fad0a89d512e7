"""Storage protocol for dream records."""

from __future__ import annotations

from typing import Any, Protocol

from journal.types import Dream


class DreamStore(Protocol):
    """Per-user persistence for dreams. Every call is scoped to ``user_id``."""

    async def create(self, user_id: str, content: str, transcript: str | None) -> Dream: ...

    async def list(self, user_id: str) -> list[Dream]:
        """Dreams owned by ``user_id``, newest first."""
        ...

    async def get(self, user_id: str, dream_id: str) -> Dream:
        """Raises DreamNotFoundError when absent or owned by someone else."""
        ...

    async def update(self, user_id: str, dream_id: str, fields: dict[str, Any]) -> Dream: ...

    async def delete(self, user_id: str, dream_id: str) -> None: ...
