"""Envelope responses and exception → HTTP mapping."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from journal.errors import (
    AllModelsFailedError,
    AuthenticationError,
    DreamNotFoundError,
    LucidlyError,
    MissingAPIKeyError,
    StorageError,
    TranscriptionTimeoutError,
    ValidationError,
)

ERROR_STATUS: dict[type[LucidlyError], int] = {
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    DreamNotFoundError: status.HTTP_404_NOT_FOUND,
    TranscriptionTimeoutError: status.HTTP_408_REQUEST_TIMEOUT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    MissingAPIKeyError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    AllModelsFailedError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def api_response(
    status_code: int,
    data: Any = None,
    error: str | None = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    """Consistent ``{success, data, error}`` body; success mirrors the status."""
    return ORJSONResponse(
        status_code=status_code,
        content={"success": status_code < 400, "data": data, "error": error},
        headers=headers,
    )


def status_for(exc: LucidlyError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _lucidly_error(request: Request, exc: LucidlyError) -> ORJSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
    return api_response(code, error=exc.message)


async def _http_error(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = f"Method {request.method} Not Allowed"
    return api_response(exc.status_code, error=message, headers=getattr(exc, "headers", None))


async def _validation_error(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return api_response(
        status.HTTP_400_BAD_REQUEST,
        error=f"{location}: {message}" if location else message,
    )


async def _unhandled_error(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled error on {} {}", request.method, request.url.path)
    return api_response(status.HTTP_500_INTERNAL_SERVER_ERROR, error="Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LucidlyError, _lucidly_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled_error)
