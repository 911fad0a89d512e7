"""Display helpers: titles, moods and list views for dreams."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from journal.types import Dream, Mood, Sentiment

TITLE_MAX_CHARS = 50
UNTITLED = "Untitled Dream"

_SENTENCE_END = re.compile(r"[.!?]+")


def _clip(text: str) -> str:
    return text[:47] + "..." if len(text) > TITLE_MAX_CHARS else text


def extract_title(content: str) -> str:
    """Title from the first sentence, or the clipped content when it is too short."""
    first_sentence = _SENTENCE_END.split(content)[0].strip()
    if len(first_sentence) > 10:
        return _clip(first_sentence)
    return _clip(content) or UNTITLED


def mood_from_sentiment(sentiment: Sentiment | None) -> Mood:
    if sentiment is None:
        return Mood.PEACEFUL

    label = sentiment.label.lower()
    score = sentiment.score or 0

    if label == "positive" and score > 0.7:
        return Mood.LUCID
    if label == "negative" and score > 0.6:
        return Mood.NIGHTMARE
    if label == "positive":
        return Mood.PEACEFUL
    if score > 0.8:
        return Mood.VIVID
    return Mood.PEACEFUL


def format_date(created_at: str) -> str:
    """``2024-03-05T...`` → ``March 5, 2024``; unparseable input is returned as-is."""
    try:
        moment = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except ValueError:
        return created_at
    return f"{moment:%B} {moment.day}, {moment.year}"


@dataclass(frozen=True, slots=True)
class DreamView:
    """A dream plus the derived fields list views show."""
    dream: Dream
    title: str
    mood: Mood
    date: str
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dream(cls, dream: Dream) -> DreamView:
        return cls(
            dream=dream,
            title=extract_title(dream.content),
            mood=mood_from_sentiment(dream.sentiment),
            date=format_date(dream.created_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.dream.to_row(),
            "title": self.title,
            "mood": self.mood.value,
            "date": self.date,
            "tags": list(self.tags),
        }
