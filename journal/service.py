"""Dream journal use cases.

Glues a ``DreamStore`` to a ``DreamAnalyzer``. Route handlers call these
methods and translate ``journal.errors`` into HTTP responses.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from journal.errors import (
    LucidlyError,
    StorageError,
    TranscriptionTimeoutError,
    ValidationError,
)
from journal.inference.analyzer import DreamAnalyzer
from journal.storage.base import DreamStore
from journal.types import AnalysisRequest, AuthUser, Dream


def preview(text: str, limit: int = 100) -> str:
    """Log-safe excerpt of a dream narrative."""
    return text[:limit] + "..." if len(text) > limit else text


class DreamService:
    """CRUD plus on-demand analysis for one user's dreams.

    Usage:
        >>> service = DreamService(store, analyzer)
        >>> dream = await service.create_dream(user, content="I was flying")
        >>> dream = await service.analyze_dream(user, dream.id, AnalysisRequest(summary=True))
    """

    def __init__(
        self,
        store: DreamStore,
        analyzer: DreamAnalyzer,
        transcription_timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._analyzer = analyzer
        self._transcription_timeout = transcription_timeout

    # ── CRUD ─────────────────────────────────────────────────

    async def create_dream(
        self,
        user: AuthUser,
        content: str | None = None,
        transcript: str | None = None,
    ) -> Dream:
        if not content and not transcript:
            raise ValidationError("Either content or transcript is required")
        dream = await self._store.create(user.id, content or "", transcript or None)
        logger.info("Created dream {} for user {}", dream.id, user.id)
        return dream

    async def list_dreams(self, user: AuthUser) -> list[Dream]:
        return await self._store.list(user.id)

    async def get_dream(self, user: AuthUser, dream_id: str) -> Dream:
        return await self._store.get(user.id, dream_id)

    async def replace_summary(self, user: AuthUser, dream_id: str, summary: str | None) -> Dream:
        if not summary:
            raise ValidationError("Summary is required")
        return await self._store.update(user.id, dream_id, {"summary": summary})

    async def delete_dream(self, user: AuthUser, dream_id: str) -> None:
        await self._store.delete(user.id, dream_id)
        logger.info("Deleted dream {} for user {}", dream_id, user.id)

    # ── Analysis ─────────────────────────────────────────────

    async def analyze_dream(
        self,
        user: AuthUser,
        dream_id: str,
        request: AnalysisRequest,
    ) -> Dream:
        """Fill in requested analysis fields that are still empty.

        A failing generator is logged and skipped; the others still run.
        Nothing is written when no field was produced.
        """
        dream = await self._store.get(user.id, dream_id)
        text = dream.text
        if not text:
            raise ValidationError("No content available for processing")

        generators = {
            "summary": self._analyzer.summarize,
            "sentiment": self._analyzer.analyze_sentiment,
            "interpretation": self._analyzer.interpret,
        }

        updates: dict[str, Any] = {}
        for name in request.requested:
            if dream.has(name):
                continue
            try:
                updates[name] = await generators[name](text)
            except LucidlyError as e:
                logger.error("{} generation failed for dream {}: {}", name.capitalize(), dream_id, e)

        if not updates:
            return dream
        return await self._store.update(user.id, dream_id, updates)

    async def summarize_and_save(self, user: AuthUser, dream_id: str | None, text: str | None) -> dict[str, Any]:
        """Generate a summary without fallback and persist it on the dream."""
        if not dream_id or not text:
            raise ValidationError("Dream ID and text are required")

        logger.info("Generating summary for dream {}: {}", dream_id, preview(text))
        summary = await self._analyzer.summarize_strict(text)
        try:
            await self._store.update(user.id, dream_id, {"summary": summary})
        except StorageError as e:
            raise StorageError("Failed to save summary to database") from e
        logger.info("Summary saved for dream {}", dream_id)
        return {"success": True, "summary": summary, "dreamId": dream_id}

    async def transcribe(self, audio: bytes, content_type: str | None = None) -> str:
        """Transcribe, giving up after the configured timeout."""
        self._analyzer.client.require_key()
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            transcript = await asyncio.wait_for(
                self._analyzer.transcribe(audio, content_type),
                timeout=self._transcription_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Transcription timed out after {}s", self._transcription_timeout)
            raise TranscriptionTimeoutError() from e

        logger.info(
            "Transcription completed in {:.0f}ms ({} bytes)",
            (loop.time() - started) * 1000,
            len(audio),
        )
        return transcript
