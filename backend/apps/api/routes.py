"""Lucidly — API Routes.

Dream CRUD, on-demand analysis, and audio transcription.
Handlers stay thin: the work happens in ``journal.service``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import ORJSONResponse
from loguru import logger

from backend.apps.api.dependencies import (
    get_analyzer,
    get_current_user,
    get_service,
    get_settings,
)
from backend.apps.api.responses import api_response
from backend.apps.api.schemas import (
    AnalysisFlags,
    DreamCreate,
    DreamListItem,
    DreamOut,
    EnvDiagnostics,
    HealthResponse,
    MessageOut,
    SummaryOut,
    SummaryReplace,
    SummaryRequest,
    TranscriptOut,
    dump,
)
from backend.config import Settings
from journal.inference import DreamAnalyzer
from journal.service import DreamService
from journal.types import AuthUser

router = APIRouter()


# ── Health ───────────────────────────────────────────────────


@router.get("/health", tags=["System"])
async def health_check(
    settings: Settings = Depends(get_settings),
) -> ORJSONResponse:
    """Liveness / readiness probe."""
    from backend.apps.api.main import get_uptime

    health = HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.app_env,
        version=settings.app_version,
        uptime_seconds=round(get_uptime(), 2),
    )
    return api_response(status.HTTP_200_OK, dump(health))


@router.get("/diagnostics/env", tags=["System"])
async def env_diagnostics(
    settings: Settings = Depends(get_settings),
) -> ORJSONResponse:
    """Report which credentials are configured, without revealing them."""
    if not settings.debug:
        return api_response(status.HTTP_404_NOT_FOUND, error="Not Found")
    diag = EnvDiagnostics(
        hf_key_exists=bool(settings.hf_api_key),
        hf_key_length=len(settings.hf_api_key),
        supabase_configured=bool(settings.supabase_url and settings.supabase_server_key),
        storage_backend=settings.storage_backend,
    )
    return api_response(status.HTTP_200_OK, dump(diag))


# ── Dreams ───────────────────────────────────────────────────


@router.get("/dreams", tags=["Dreams"])
async def list_dreams(
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    """All of the caller's dreams, newest first, with display fields."""
    dreams = await service.list_dreams(user)
    return api_response(status.HTTP_200_OK, dump([DreamListItem.from_dream(d) for d in dreams]))


@router.post("/dreams", tags=["Dreams"])
async def create_dream(
    body: DreamCreate | None = None,
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    body = body or DreamCreate()
    dream = await service.create_dream(user, content=body.content, transcript=body.transcript)
    return api_response(status.HTTP_201_CREATED, dump(DreamOut.from_dream(dream)))


@router.get("/dreams/{dream_id}", tags=["Dreams"])
async def get_dream(
    dream_id: str,
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    dream = await service.get_dream(user, dream_id)
    return api_response(status.HTTP_200_OK, dump(DreamOut.from_dream(dream)))


@router.put("/dreams/{dream_id}", tags=["Dreams"])
async def replace_summary(
    dream_id: str,
    body: SummaryReplace | None = None,
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    """Overwrite the dream's summary with user-supplied text."""
    body = body or SummaryReplace()
    dream = await service.replace_summary(user, dream_id, body.summary)
    return api_response(status.HTTP_200_OK, dump(DreamOut.from_dream(dream)))


@router.patch("/dreams/{dream_id}", tags=["Analysis"])
async def analyze_dream(
    dream_id: str,
    flags: AnalysisFlags | None = None,
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    """Generate any requested summary / sentiment / interpretation still missing."""
    flags = flags or AnalysisFlags()
    dream = await service.analyze_dream(user, dream_id, flags.to_request())
    return api_response(status.HTTP_200_OK, dump(DreamOut.from_dream(dream)))


@router.delete("/dreams/{dream_id}", tags=["Dreams"])
async def delete_dream(
    dream_id: str,
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    await service.delete_dream(user, dream_id)
    return api_response(status.HTTP_200_OK, dump(MessageOut(message="Dream deleted successfully")))


# ── Analysis ─────────────────────────────────────────────────


@router.post("/summary", tags=["Analysis"])
async def summarize(
    body: SummaryRequest | None = None,
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
) -> ORJSONResponse:
    """Summarize ``text`` without fallback and store it on ``dreamId``."""
    body = body or SummaryRequest()
    result = await service.summarize_and_save(user, body.dream_id, body.text)
    out = SummaryOut(summary=result["summary"], dream_id=result["dreamId"])
    return api_response(status.HTTP_200_OK, dump(out))


@router.post("/transcribe", tags=["Analysis"])
async def transcribe(
    file: UploadFile | None = File(None, description="Audio recording"),
    user: AuthUser = Depends(get_current_user),
    service: DreamService = Depends(get_service),
    analyzer: DreamAnalyzer = Depends(get_analyzer),
    settings: Settings = Depends(get_settings),
) -> ORJSONResponse:
    """Speech-to-text for a recorded dream (multipart field ``file``)."""
    if not analyzer.client.has_key:
        logger.error("HF_API_KEY is not set")
        return api_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="Hugging Face API key not configured",
        )

    if file is None:
        return api_response(status.HTTP_400_BAD_REQUEST, error="No audio file provided")

    audio = await file.read(settings.max_audio_bytes + 1)
    await file.close()
    if len(audio) > settings.max_audio_bytes:
        return api_response(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            error=f"Audio file exceeds {settings.max_audio_bytes // (1024 * 1024)}MB limit",
        )
    if not audio:
        return api_response(status.HTTP_400_BAD_REQUEST, error="No audio file provided")

    logger.info(
        "Transcription request | user={} file={} type={} size={}",
        user.id,
        file.filename,
        file.content_type,
        len(audio),
    )
    transcript = await service.transcribe(audio, file.content_type)
    return api_response(status.HTTP_200_OK, dump(TranscriptOut(transcript=transcript)))
