"""In-process dream store for local development and tests."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from journal.errors import DreamNotFoundError, StorageError
from journal.types import Dream, Sentiment

_MUTABLE_FIELDS = {"content", "transcript", "summary", "sentiment", "interpretation"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryDreamStore:
    """Dict-backed store. Contents vanish with the process."""

    def __init__(self) -> None:
        self._dreams: dict[str, Dream] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._dreams)

    async def create(self, user_id: str, content: str, transcript: str | None) -> Dream:
        dream = Dream(
            id=str(uuid.uuid4()),
            user_id=user_id,
            content=content,
            transcript=transcript,
            created_at=_now_iso(),
        )
        async with self._lock:
            self._dreams[dream.id] = dream
        logger.debug("Stored dream {} for user {}", dream.id, user_id)
        return dream

    async def list(self, user_id: str) -> list[Dream]:
        owned = [d for d in self._dreams.values() if d.user_id == user_id]
        # insertion order breaks timestamp ties
        ranked = sorted(enumerate(owned), key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [dream for _, dream in ranked]

    async def get(self, user_id: str, dream_id: str) -> Dream:
        dream = self._dreams.get(dream_id)
        if dream is None or dream.user_id != user_id:
            raise DreamNotFoundError()
        return dream

    async def update(self, user_id: str, dream_id: str, fields: dict[str, Any]) -> Dream:
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise StorageError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        values = dict(fields)
        if isinstance(values.get("sentiment"), dict):
            values["sentiment"] = Sentiment.from_payload(values["sentiment"])

        async with self._lock:
            dream = await self.get(user_id, dream_id)
            updated = dream.with_updates(**values)
            self._dreams[dream_id] = updated
        return updated

    async def delete(self, user_id: str, dream_id: str) -> None:
        async with self._lock:
            dream = self._dreams.get(dream_id)
            if dream is not None and dream.user_id == user_id:
                del self._dreams[dream_id]
