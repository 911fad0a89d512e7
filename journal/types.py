"""Shared types and constants for the Lucidly journal core."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUMMARY_INPUT_CHARS = 1000
SENTIMENT_INPUT_CHARS = 500
INTERPRETATION_INPUT_CHARS = 300
SUMMARY_OUTPUT_CHARS = 150
INTERPRETATION_OUTPUT_CHARS = 200
MIN_INTERPRETATION_CHARS = 10

ANALYSIS_FIELDS = ("summary", "sentiment", "interpretation")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Mood(Enum):
    LUCID = "lucid"
    NIGHTMARE = "nightmare"
    PEACEFUL = "peaceful"
    VIVID = "vivid"


# ---------------------------------------------------------------------------
# Core Data Structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Sentiment:
    """Sentiment label attached to a dream.

    Attributes:
        label: Model label, e.g. ``POSITIVE`` or ``NEGATIVE``.
        score: Model confidence in [0, 1].
    """
    label: str
    score: float

    @classmethod
    def from_payload(cls, payload: Any) -> Sentiment | None:
        """Build from a classification response.

        Accepts a ``{label, score}`` dict, a list of them, or the nested
        ``[[{...}, ...]]`` shape text-classification models return. When
        several candidates are present the highest score wins.
        """
        if isinstance(payload, Mapping):
            label = payload.get("label")
            score = payload.get("score")
            if isinstance(label, str) and label and isinstance(score, (int, float)):
                return cls(label=label, score=float(score))
            return None

        if isinstance(payload, list) and payload:
            if isinstance(payload[0], list):
                return cls.from_payload(payload[0])
            candidates = [c for c in (cls.from_payload(p) for p in payload) if c is not None]
            if candidates:
                return max(candidates, key=lambda s: s.score)
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "score": self.score}


NEUTRAL_SENTIMENT = Sentiment(label="NEUTRAL", score=0.5)


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class Dream:
    """A single journal entry as stored in the ``dreams`` table.

    Attributes:
        id: Row identifier (UUID string).
        user_id: Owner of the dream.
        content: Typed narrative, possibly empty.
        transcript: Speech-to-text narrative, if recorded.
        summary: Generated or user-edited summary.
        sentiment: Generated sentiment label.
        interpretation: Generated interpretation.
        created_at: ISO-8601 creation timestamp.
    """
    id: str
    user_id: str
    content: str = ""
    transcript: str | None = None
    summary: str | None = None
    sentiment: Sentiment | None = None
    interpretation: str | None = None
    created_at: str = ""

    @property
    def text(self) -> str:
        """Narrative used for analysis: typed content, else the transcript."""
        return self.content or self.transcript or ""

    def has(self, field_name: str) -> bool:
        return bool(getattr(self, field_name))

    def with_updates(self, **fields: Any) -> Dream:
        return replace(self, **fields)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Dream:
        sentiment = row.get("sentiment")
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            content=row.get("content") or "",
            transcript=row.get("transcript"),
            summary=row.get("summary"),
            sentiment=Sentiment.from_payload(sentiment) if sentiment else None,
            interpretation=row.get("interpretation"),
            created_at=str(row.get("created_at") or ""),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content": self.content,
            "transcript": self.transcript,
            "summary": self.summary,
            "sentiment": self.sentiment.to_dict() if self.sentiment else None,
            "interpretation": self.interpretation,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """Which generated fields a caller wants filled in."""
    summary: bool = False
    sentiment: bool = False
    interpretation: bool = False

    @property
    def requested(self) -> list[str]:
        return [name for name in ANALYSIS_FIELDS if getattr(self, name)]


@dataclass(slots=True)
class CascadeResult:
    """Outcome of a successful model cascade.

    Attributes:
        value: Parsed model output.
        model: Model name that produced it.
        attempts: Models tried, in order, including the winner.
    """
    value: Any
    model: str
    attempts: list[str] = field(default_factory=list)
