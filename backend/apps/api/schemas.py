# ============================================================
#  Lucidly — Pydantic API Schemas
# ============================================================
"""Lucidly — Pydantic API Schemas.

Request bodies keep the camelCase keys existing web clients send.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from journal.presentation import DreamView
from journal.types import AnalysisRequest, Dream


# ── Requests ─────────────────────────────────────────────────


class DreamCreate(BaseModel):
    content: str | None = None
    transcript: str | None = None


class SummaryReplace(BaseModel):
    summary: str | None = None


class AnalysisFlags(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generate_summary: bool = Field(False, alias="generateSummary")
    generate_sentiment: bool = Field(False, alias="generateSentiment")
    generate_interpretation: bool = Field(False, alias="generateInterpretation")

    def to_request(self) -> AnalysisRequest:
        return AnalysisRequest(
            summary=self.generate_summary,
            sentiment=self.generate_sentiment,
            interpretation=self.generate_interpretation,
        )


class SummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dream_id: str | None = Field(None, alias="dreamId")
    text: str | None = None


# ── Responses ────────────────────────────────────────────────


class SentimentOut(BaseModel):
    label: str
    score: float = Field(..., ge=0.0, le=1.0)


class DreamOut(BaseModel):
    id: str
    user_id: str
    content: str = ""
    transcript: str | None = None
    summary: str | None = None
    sentiment: SentimentOut | None = None
    interpretation: str | None = None
    created_at: str = ""

    @classmethod
    def from_dream(cls, dream: Dream) -> DreamOut:
        return cls.model_validate(dream.to_row())


class DreamListItem(DreamOut):
    title: str
    mood: str
    date: str
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_dream(cls, dream: Dream) -> DreamListItem:
        return cls.model_validate(DreamView.from_dream(dream).to_dict())


class SummaryOut(BaseModel):
    success: bool = True
    summary: str
    dream_id: str = Field(..., serialization_alias="dreamId")


class TranscriptOut(BaseModel):
    transcript: str


class MessageOut(BaseModel):
    message: str


# ── Health ───────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str
    environment: str
    version: str
    uptime_seconds: float


class EnvDiagnostics(BaseModel):
    hf_key_exists: bool = Field(..., serialization_alias="hfKeyExists")
    hf_key_length: int = Field(..., serialization_alias="hfKeyLength")
    supabase_configured: bool = Field(..., serialization_alias="supabaseConfigured")
    storage_backend: str = Field(..., serialization_alias="storageBackend")


def dump(model: BaseModel | list[BaseModel] | None) -> Any:
    """Serialise a schema (or list of them) for the envelope ``data`` slot."""
    if model is None:
        return None
    if isinstance(model, list):
        return [m.model_dump(by_alias=True) for m in model]
    return model.model_dump(by_alias=True)
