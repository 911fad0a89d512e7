# ============================================================
#  Lucidly — FastAPI Application Factory
# ============================================================
"""
Dream journal API with:
  • Dream CRUD scoped to the authenticated user
  • Summary / sentiment / interpretation via hosted models
  • Audio transcription with a bounded wait
  • CORS, security headers, request ID middleware
  • Structured logging integration
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from loguru import logger

from backend.apps.api.dependencies import get_analyzer, get_authenticator
from backend.apps.api.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from backend.apps.api.responses import register_exception_handlers
from backend.apps.api.routes import router as api_router
from backend.config import settings
from backend.logging_config import setup_logging

_start_time: float = time.time()


def get_uptime() -> float:
    return time.time() - _start_time


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ANN001
    """Startup / shutdown lifecycle."""
    global _start_time
    _start_time = time.time()
    setup_logging()
    logger.info(
        "{} v{} starting  |  env={}  debug={}  storage={}",
        settings.app_name,
        settings.app_version,
        settings.app_env,
        settings.debug,
        settings.storage_backend,
    )
    if not settings.hf_api_key:
        logger.warning("HF_API_KEY is not set; analysis and transcription will fail")
    yield
    if get_analyzer.cache_info().currsize:
        await get_analyzer().client.aclose()
    if get_authenticator.cache_info().currsize:
        await get_authenticator().aclose()
    logger.info("Lucidly shutting down gracefully")


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "**Lucidly** — dream journal API.\n\n"
            "Record dreams as text or audio, then summarize, sentiment-tag "
            "and interpret them with hosted models."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # RequestIDMiddleware outermost: the access log line carries the request id.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Errors & routes ──────────────────────────────────────
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
