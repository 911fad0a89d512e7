"""Structured logging configuration (Loguru)."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from backend.config import settings

NO_REQUEST = "-"


def setup_logging() -> None:
    """Configure Loguru sinks: coloured stderr plus a daily rotating file.

    Every record carries ``extra["request_id"]``; inside a request it is the
    id bound by ``RequestIDMiddleware``, elsewhere ``"-"``. In production the
    file sink writes one JSON object per line.
    """
    logger.remove()
    logger.configure(extra={"request_id": NO_REQUEST})

    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<magenta>{extra[request_id]}</magenta> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> — "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=fmt,
        level=settings.log_level,
        colorize=True,
        backtrace=True,
        diagnose=settings.debug and not settings.is_production,
    )

    logger.add(
        str(Path(settings.log_dir) / "lucidly_{time:YYYY-MM-DD}.log"),
        format=fmt,
        level="DEBUG",
        rotation="00:00",
        retention="30 days",
        compression="gz",
        serialize=settings.is_production,
        enqueue=True,
    )

    logger.info(
        "Logging ready  |  level={}  env={}  storage={}  auth={}",
        settings.log_level,
        settings.app_env,
        settings.storage_backend,
        settings.auth_backend,
    )
