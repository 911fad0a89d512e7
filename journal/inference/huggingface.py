"""Hosted inference transport and the sequential model cascade.

The Hugging Face inference API serves each model at
``<base>/<owner>/<model>``. Models are frequently cold (503 while loading)
or withdrawn, so every operation names several interchangeable models and
walks them in order until one answers with something usable.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx
from loguru import logger

from journal.errors import MissingAPIKeyError
from journal.types import CascadeResult

HF_API_BASE = "https://api-inference.huggingface.co/models"

ModelCall = Callable[[str], Awaitable[httpx.Response]]
ModelParser = Callable[[str, Any], Any]


class HuggingFaceClient:
    """Thin async wrapper over the hosted inference endpoint.

    Usage:
        >>> client = HuggingFaceClient(api_key="hf_...")
        >>> response = await client.post_json("facebook/bart-large-cnn", {"inputs": text})
        >>> await client.aclose()
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = HF_API_BASE,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or None
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    @property
    def has_key(self) -> bool:
        return self._api_key is not None

    def require_key(self) -> None:
        if self._api_key is None:
            raise MissingAPIKeyError()

    def _headers(self, content_type: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": content_type,
        }

    async def post_json(self, model: str, payload: dict[str, Any]) -> httpx.Response:
        self.require_key()
        return await self._client.post(
            model, json=payload, headers=self._headers("application/json")
        )

    async def post_bytes(self, model: str, data: bytes, content_type: str) -> httpx.Response:
        self.require_key()
        return await self._client.post(model, content=data, headers=self._headers(content_type))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HuggingFaceClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


class ModelCascade:
    """Try a list of model names one after another.

    A model is skipped when the request fails at the transport level, the
    status is not 2xx, the body is not JSON, or ``parse`` returns ``None`` or
    raises on a malformed body.
    The first parsed value wins; ``None`` means every model failed.
    """

    async def run(
        self,
        task: str,
        models: Sequence[str],
        call: ModelCall,
        parse: ModelParser,
    ) -> CascadeResult | None:
        attempts: list[str] = []
        for model in models:
            attempts.append(model)
            logger.info("Trying {} with model: {}", task, model)

            try:
                response = await call(model)
            except httpx.HTTPError as e:
                logger.warning("Error with {} model {}: {}", task, model, e)
                continue

            if not response.is_success:
                if response.status_code == 503:
                    logger.info("Model {} is loading, trying next model", model)
                else:
                    logger.warning(
                        "{} model {} failed: {} {}",
                        task.capitalize(),
                        model,
                        response.status_code,
                        response.text[:200],
                    )
                continue

            try:
                body = response.json()
            except ValueError:
                logger.warning("{} model {} returned non-JSON body", task.capitalize(), model)
                continue

            try:
                value = parse(model, body)
            except (TypeError, KeyError, ValueError, AttributeError) as e:
                logger.warning("Could not parse {} result from {}: {}", task, model, e)
                continue
            if value is None:
                logger.warning("Unexpected {} result format from {}: {!r}", task, model, body)
                continue

            logger.info("{} succeeded with model {}", task.capitalize(), model)
            return CascadeResult(value=value, model=model, attempts=attempts)

        logger.warning("All {} models failed ({})", task, ", ".join(attempts))
        return None
