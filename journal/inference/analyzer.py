"""Dream analysis operations built on the model cascade.

Each operation truncates its input, walks its model list, and degrades to
canned output when every hosted model fails. Only ``summarize_strict``
surfaces total failure to the caller.
"""

from __future__ import annotations

import json
import random
import re
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from journal.errors import AllModelsFailedError
from journal.inference.huggingface import HuggingFaceClient, ModelCascade
from journal.types import (
    INTERPRETATION_INPUT_CHARS,
    INTERPRETATION_OUTPUT_CHARS,
    MIN_INTERPRETATION_CHARS,
    NEUTRAL_SENTIMENT,
    SENTIMENT_INPUT_CHARS,
    SUMMARY_INPUT_CHARS,
    SUMMARY_OUTPUT_CHARS,
    Sentiment,
)

TRANSCRIPTION_FALLBACK = (
    "I received your audio recording but couldn't transcribe it automatically. "
    "Please try again or type your dream content manually."
)
TRANSCRIPTION_UNAVAILABLE = (
    "Audio recording received, but transcription is temporarily unavailable. "
    "Please type your dream content manually."
)

INTERPRETATION_FALLBACKS = (
    "This dream reflects your subconscious processing of recent experiences and emotions.",
    "The imagery in this dream suggests themes of transformation and personal growth.",
    "This dream may represent your mind working through challenges or aspirations.",
    "The symbolism indicates a journey of self-discovery and inner reflection.",
    "This dream could signify your unconscious desires for change or resolution.",
)

_TEXT_FIELD_RE = re.compile(r'"(?:text|generated_text)"\s*:\s*"([^"]*)"')


@dataclass
class ModelLists:
    """Ordered model names per operation.

    Attributes:
        summary: Summarization models, best first.
        summary_strict: Models for the summary endpoint that refuses to fall back.
        sentiment: Text-classification models.
        interpretation: Text-generation models.
        transcription: Speech-recognition models, fastest first.
    """
    summary: list[str] = field(default_factory=lambda: [
        "facebook/bart-large-cnn",
        "sshleifer/distilbart-cnn-12-6",
        "microsoft/DialoGPT-medium",
    ])
    summary_strict: list[str] = field(default_factory=lambda: [
        "facebook/bart-large-cnn",
        "sshleifer/distilbart-cnn-12-6",
    ])
    sentiment: list[str] = field(default_factory=lambda: [
        "cardiffnlp/twitter-roberta-base-sentiment-latest",
        "nlptown/bert-base-multilingual-uncased-sentiment",
        "distilbert-base-uncased-finetuned-sst-2-english",
    ])
    interpretation: list[str] = field(default_factory=lambda: [
        "microsoft/DialoGPT-medium",
        "google/flan-t5-base",
        "gpt2",
    ])
    transcription: list[str] = field(default_factory=lambda: [
        "openai/whisper-large-v3-turbo",
        "distil-whisper/distil-large-v3.5",
        "openai/whisper-large-v3",
    ])


def truncate(text: str, limit: int, suffix: str = "") -> str:
    """Cut ``text`` so the result, suffix included, is at most ``limit`` chars."""
    if len(text) <= limit:
        return text
    return text[: limit - len(suffix)] + suffix


def fallback_summary(text: str) -> str:
    return truncate(text, SUMMARY_OUTPUT_CHARS, "...")


def interpretation_prompt(model: str, dream_text: str) -> str:
    if "flan-t5" in model:
        return f"Interpret this dream: {dream_text}"
    return f"Dream: {dream_text}\nInterpretation: This dream suggests"


def _first(body: Any) -> dict[str, Any] | None:
    if isinstance(body, list) and body and isinstance(body[0], dict):
        return body[0]
    return None


def parse_summary(model: str, body: Any) -> str | None:
    first = _first(body)
    if first is None:
        return None
    if isinstance(first.get("summary_text"), str) and first["summary_text"]:
        return first["summary_text"]
    if isinstance(first.get("generated_text"), str) and first["generated_text"]:
        return first["generated_text"][:SUMMARY_OUTPUT_CHARS]
    return None


def parse_strict_summary(model: str, body: Any) -> str | None:
    first = _first(body)
    if first is None:
        return None
    summary = first.get("summary_text")
    return summary if isinstance(summary, str) and summary else None


def parse_sentiment(model: str, body: Any) -> Sentiment | None:
    return Sentiment.from_payload(body)


def parse_transcript(model: str, body: Any) -> str | None:
    """Pull the transcript out of the several shapes ASR models return."""
    if isinstance(body, dict) and body.get("text"):
        return str(body["text"]).strip() or None
    if isinstance(body, str):
        return body.strip() or None
    first = _first(body)
    if first is not None:
        for key in ("text", "generated_text"):
            if isinstance(first.get(key), str) and first[key]:
                return first[key].strip() or None
    match = _TEXT_FIELD_RE.search(json.dumps(body))
    if match and match.group(1):
        return match.group(1).strip() or None
    return None


class DreamAnalyzer:
    """Summarize, sentiment-tag, interpret and transcribe dreams.

    Usage:
        >>> analyzer = DreamAnalyzer(HuggingFaceClient(api_key))
        >>> summary = await analyzer.summarize(dream.text)
        >>> sentiment = await analyzer.analyze_sentiment(dream.text)
    """

    def __init__(
        self,
        client: HuggingFaceClient,
        models: ModelLists | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._models = models or ModelLists()
        self._rng = rng or random.Random()
        self._cascade = ModelCascade()

    @property
    def client(self) -> HuggingFaceClient:
        return self._client

    @property
    def models(self) -> ModelLists:
        return self._models

    # ── Summary ──────────────────────────────────────────────

    def _summary_payload(self, text: str) -> dict[str, Any]:
        return {
            "inputs": text[:SUMMARY_INPUT_CHARS],
            "parameters": {"max_length": 150, "min_length": 30, "do_sample": False},
        }

    async def summarize(self, text: str) -> str:
        """Summarize, falling back to plain truncation."""
        self._client.require_key()
        payload = self._summary_payload(text)
        result = await self._cascade.run(
            "summarization",
            self._models.summary,
            lambda model: self._client.post_json(model, payload),
            parse_summary,
        )
        if result is None:
            logger.info("Using truncation fallback for summary")
            return fallback_summary(text)
        return result.value

    async def summarize_strict(self, text: str) -> str:
        """Summarize with ``summary_text`` models only; no fallback."""
        self._client.require_key()
        payload = self._summary_payload(text)
        result = await self._cascade.run(
            "summarization",
            self._models.summary_strict,
            lambda model: self._client.post_json(model, payload),
            parse_strict_summary,
        )
        if result is None:
            raise AllModelsFailedError("All summarization models failed. Try again later.")
        return result.value

    # ── Sentiment ────────────────────────────────────────────

    async def analyze_sentiment(self, text: str) -> Sentiment:
        self._client.require_key()
        payload = {"inputs": text[:SENTIMENT_INPUT_CHARS]}
        result = await self._cascade.run(
            "sentiment analysis",
            self._models.sentiment,
            lambda model: self._client.post_json(model, payload),
            parse_sentiment,
        )
        if result is None:
            logger.info("Using neutral fallback for sentiment")
            return NEUTRAL_SENTIMENT
        return result.value

    # ── Interpretation ───────────────────────────────────────

    async def interpret(self, text: str) -> str:
        """Generate an interpretation; prompt shape depends on the model family."""
        self._client.require_key()
        dream_text = text[:INTERPRETATION_INPUT_CHARS]

        async def call(model: str):
            return await self._client.post_json(
                model,
                {
                    "inputs": interpretation_prompt(model, dream_text),
                    "parameters": {"max_length": 200, "temperature": 0.7, "do_sample": True},
                },
            )

        def parse(model: str, body: Any) -> str | None:
            first = _first(body)
            if first is None or not isinstance(first.get("generated_text"), str):
                return None
            prompt = interpretation_prompt(model, dream_text)
            interpretation = first["generated_text"].replace(prompt, "").strip()
            if len(interpretation) <= MIN_INTERPRETATION_CHARS:
                return None
            if len(interpretation) > INTERPRETATION_OUTPUT_CHARS:
                return interpretation[:INTERPRETATION_OUTPUT_CHARS] + "..."
            return interpretation

        result = await self._cascade.run(
            "dream interpretation", self._models.interpretation, call, parse
        )
        if result is None:
            logger.info("Using canned fallback for interpretation")
            return self._rng.choice(INTERPRETATION_FALLBACKS)
        return result.value

    # ── Transcription ────────────────────────────────────────

    async def transcribe(self, audio: bytes, content_type: str | None = None) -> str:
        """Speech-to-text. Never raises for model failures; returns a canned message."""
        self._client.require_key()
        mime = content_type or "audio/wav"
        try:
            result = await self._cascade.run(
                "transcription",
                self._models.transcription,
                lambda model: self._client.post_bytes(model, audio, mime),
                parse_transcript,
            )
        except Exception:
            logger.exception("Transcription error")
            return TRANSCRIPTION_UNAVAILABLE

        if result is None:
            return TRANSCRIPTION_FALLBACK
        return result.value
