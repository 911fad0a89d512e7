"""Tests for journal.presentation — titles, moods, list views."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from journal.presentation import DreamView, extract_title, format_date, mood_from_sentiment
from journal.types import Dream, Mood, Sentiment


class TestExtractTitle:
    def test_first_sentence(self) -> None:
        assert extract_title("I was lost in a library. Then it flooded.") == "I was lost in a library"

    def test_long_first_sentence_clipped(self) -> None:
        title = extract_title("a" * 80 + ". end")
        assert title == "a" * 47 + "..."

    def test_short_first_sentence_uses_content(self) -> None:
        assert extract_title("Teeth! They all fell out") == "Teeth! They all fell out"

    def test_empty(self) -> None:
        assert extract_title("") == "Untitled Dream"

    @given(st.text(max_size=200))
    def test_never_longer_than_fifty(self, content: str) -> None:
        assert len(extract_title(content)) <= 50


class TestMood:
    @pytest.mark.parametrize(
        ("sentiment", "mood"),
        [
            (None, Mood.PEACEFUL),
            (Sentiment("POSITIVE", 0.9), Mood.LUCID),
            (Sentiment("negative", 0.7), Mood.NIGHTMARE),
            (Sentiment("positive", 0.5), Mood.PEACEFUL),
            (Sentiment("NEUTRAL", 0.85), Mood.VIVID),
            (Sentiment("negative", 0.5), Mood.PEACEFUL),
        ],
    )
    def test_mapping(self, sentiment: Sentiment | None, mood: Mood) -> None:
        assert mood_from_sentiment(sentiment) == mood


class TestDreamView:
    def test_from_dream(self) -> None:
        dream = Dream(
            id="d-1",
            user_id="u",
            content="Riding a whale through clouds. It sang.",
            sentiment=Sentiment("positive", 0.95),
            created_at="2024-03-05T07:30:00Z",
        )
        view = DreamView.from_dream(dream)
        assert view.title == "Riding a whale through clouds"
        assert view.mood is Mood.LUCID
        assert view.date == "March 5, 2024"
        assert view.to_dict()["mood"] == "lucid"
        assert view.to_dict()["tags"] == []

    def test_bad_date_passthrough(self) -> None:
        assert format_date("yesterday") == "yesterday"
