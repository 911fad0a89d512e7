"""PostgREST-backed dream store for a managed Supabase project.

Requests carry the caller's access token so the project's row-level
security policies apply; every query is additionally filtered by
``user_id``.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from journal.errors import DreamNotFoundError, StorageError
from journal.types import Dream, Sentiment

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class SupabaseDreamStore:
    """Dream persistence via ``/rest/v1/dreams``.

    Usage:
        >>> store = SupabaseDreamStore(url, anon_key, access_token=token)
        >>> dream = await store.create(user.id, "I was flying", None)
        >>> await store.aclose()
    """

    table = "dreams"

    def __init__(
        self,
        supabase_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not supabase_url or not api_key:
            raise StorageError("Missing Supabase environment variables")
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
        }
        self._client = httpx.AsyncClient(
            base_url=f"{supabase_url.rstrip('/')}/rest/v1/",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── helpers ──────────────────────────────────────────────

    @staticmethod
    def _scope(user_id: str, dream_id: str | None = None) -> dict[str, str]:
        params = {"user_id": f"eq.{user_id}"}
        if dream_id is not None:
            params["id"] = f"eq.{dream_id}"
        return params

    async def _request(
        self,
        method: str,
        action: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        single: bool = False,
        returning: bool = False,
        lookup: bool = False,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        if single:
            headers["Accept"] = SINGLE_OBJECT
        if returning:
            headers["Prefer"] = "return=representation"

        try:
            response = await self._client.request(
                method, self.table, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("Database error while trying to {}: {}", action, e)
            raise StorageError(f"Failed to {action}") from e

        if lookup and response.status_code in (404, 406):
            raise DreamNotFoundError()
        if not response.is_success:
            logger.error(
                "Database error while trying to {}: {} {}",
                action,
                response.status_code,
                response.text[:200],
            )
            raise StorageError(f"Failed to {action}")
        return response

    # ── DreamStore ───────────────────────────────────────────

    async def create(self, user_id: str, content: str, transcript: str | None) -> Dream:
        response = await self._request(
            "POST",
            "create dream",
            json={"content": content, "transcript": transcript, "user_id": user_id},
            single=True,
            returning=True,
        )
        return Dream.from_row(response.json())

    async def list(self, user_id: str) -> list[Dream]:
        params = {"select": "*", "order": "created_at.desc", **self._scope(user_id)}
        response = await self._request("GET", "fetch dreams", params=params)
        return [Dream.from_row(row) for row in response.json()]

    async def get(self, user_id: str, dream_id: str) -> Dream:
        params = {"select": "*", **self._scope(user_id, dream_id)}
        response = await self._request(
            "GET", "fetch dream", params=params, single=True, lookup=True
        )
        return Dream.from_row(response.json())

    async def update(self, user_id: str, dream_id: str, fields: dict[str, Any]) -> Dream:
        body = dict(fields)
        if isinstance(body.get("sentiment"), Sentiment):
            body["sentiment"] = body["sentiment"].to_dict()
        response = await self._request(
            "PATCH",
            "update dream",
            params=self._scope(user_id, dream_id),
            json=body,
            single=True,
            returning=True,
            lookup=True,
        )
        return Dream.from_row(response.json())

    async def delete(self, user_id: str, dream_id: str) -> None:
        await self._request("DELETE", "delete dream", params=self._scope(user_id, dream_id))
