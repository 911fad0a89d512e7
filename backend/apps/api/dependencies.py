# ============================================================
#  Lucidly — Dependency Injection
# ============================================================
"""
FastAPI dependency providers for settings, auth, storage and analysis.
The inference client and the in-memory store live for the whole process;
the Supabase store is built per request with the caller's token.
"""
from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache

from fastapi import Depends, Request
from loguru import logger

from backend.config import Settings, settings
from journal.auth import (
    Authenticator,
    SupabaseAuthenticator,
    UnverifiedTokenAuthenticator,
    parse_bearer,
)
from journal.inference import DreamAnalyzer, HuggingFaceClient
from journal.service import DreamService
from journal.storage import DreamStore, MemoryDreamStore, SupabaseDreamStore
from journal.types import AuthUser


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton Settings instance."""
    return settings


@lru_cache(maxsize=1)
def get_analyzer() -> DreamAnalyzer:
    """Process-wide analyzer sharing one inference HTTP pool."""
    cfg = get_settings()
    client = HuggingFaceClient(
        api_key=cfg.hf_api_key,
        base_url=cfg.hf_api_base,
        timeout=cfg.inference_timeout_seconds,
    )
    return DreamAnalyzer(client, models=cfg.model_lists)


@lru_cache(maxsize=1)
def get_memory_store() -> MemoryDreamStore:
    return MemoryDreamStore()


@lru_cache(maxsize=1)
def get_authenticator() -> Authenticator:
    cfg = get_settings()
    if cfg.auth_backend == "unverified":
        if cfg.is_production:
            raise RuntimeError("auth_backend=unverified is not allowed in production")
        logger.warning("Using unverified token auth; development only")
        return UnverifiedTokenAuthenticator()
    return SupabaseAuthenticator(cfg.supabase_url, cfg.supabase_server_key)


def get_bearer_token(request: Request) -> str:
    return parse_bearer(request.headers.get("Authorization"))


async def get_current_user(
    token: str = Depends(get_bearer_token),
    authenticator: Authenticator = Depends(get_authenticator),
) -> AuthUser:
    return await authenticator.authenticate(token)


async def get_store(
    token: str = Depends(get_bearer_token),
    cfg: Settings = Depends(get_settings),
) -> AsyncIterator[DreamStore]:
    if cfg.storage_backend == "memory":
        yield get_memory_store()
        return

    store = SupabaseDreamStore(
        cfg.supabase_url,
        cfg.supabase_server_key,
        access_token=token,
        timeout=cfg.database_timeout_seconds,
    )
    try:
        yield store
    finally:
        await store.aclose()


def get_service(
    store: DreamStore = Depends(get_store),
    analyzer: DreamAnalyzer = Depends(get_analyzer),
    cfg: Settings = Depends(get_settings),
) -> DreamService:
    return DreamService(store, analyzer, transcription_timeout=cfg.transcription_timeout_seconds)
