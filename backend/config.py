"""Lucidly — Centralised Settings (Pydantic v2).

Single source of truth for all configuration.
Loads from .env, environment variables, or defaults.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from journal.inference.analyzer import ModelLists
from journal.inference.huggingface import HF_API_BASE

# Env values arrive raw; `_parse_list` handles JSON and comma-separated forms.
StrList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    app_name: str = "Lucidly"
    app_version: str = "1.0.0"
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    # ── Server ───────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    cors_origins: StrList = ["*"]

    # ── Supabase (auth + database) ───────────────────────────
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_url", "next_public_supabase_url"),
    )
    supabase_anon_key: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_anon_key", "next_public_supabase_anon_key"),
    )
    supabase_service_role_key: str = ""
    storage_backend: str = "supabase"
    auth_backend: str = "supabase"
    database_timeout_seconds: float = 15.0

    # ── Hosted inference ─────────────────────────────────────
    hf_api_key: str = ""
    hf_api_base: str = HF_API_BASE
    inference_timeout_seconds: float = 60.0
    summary_models: StrList = Field(default_factory=lambda: ModelLists().summary)
    summary_strict_models: StrList = Field(default_factory=lambda: ModelLists().summary_strict)
    sentiment_models: StrList = Field(default_factory=lambda: ModelLists().sentiment)
    interpretation_models: StrList = Field(default_factory=lambda: ModelLists().interpretation)
    transcription_models: StrList = Field(default_factory=lambda: ModelLists().transcription)

    # ── Transcription ────────────────────────────────────────
    transcription_timeout_seconds: float = 30.0
    max_audio_bytes: int = 10 * 1024 * 1024

    @field_validator(
        "cors_origins",
        "summary_models",
        "summary_strict_models",
        "sentiment_models",
        "interpretation_models",
        "transcription_models",
        mode="before",
    )
    @classmethod
    def _parse_list(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("storage_backend")
    @classmethod
    def _check_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("supabase", "memory"):
            raise ValueError(f"storage_backend must be 'supabase' or 'memory', got {v!r}")
        return v

    @field_validator("auth_backend")
    @classmethod
    def _check_auth(cls, v: str) -> str:
        v = v.lower()
        if v not in ("supabase", "unverified"):
            raise ValueError(f"auth_backend must be 'supabase' or 'unverified', got {v!r}")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def supabase_server_key(self) -> str:
        """Key sent as ``apikey`` from the server: service role, else anon."""
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def model_lists(self) -> ModelLists:
        return ModelLists(
            summary=list(self.summary_models),
            summary_strict=list(self.summary_strict_models),
            sentiment=list(self.sentiment_models),
            interpretation=list(self.interpretation_models),
            transcription=list(self.transcription_models),
        )


settings = Settings()
