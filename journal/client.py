"""Python client for the Lucidly HTTP API.

Attaches the session's bearer token to every call and normalises every
outcome, including transport failures, into an ``ApiResponse``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import httpx
from loguru import logger

T = TypeVar("T")


class TokenSource(Protocol):
    def access_token(self) -> str | None: ...

    def sign_out(self) -> None: ...


@dataclass
class ApiResponse(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None


class LucidlyClient:
    """Sync API wrapper.

    Usage:
        >>> client = LucidlyClient("http://localhost:8000", session=session)
        >>> resp = client.create_dream(content="I was flying over the sea")
        >>> if resp.success:
        ...     client.update_dream(resp.data["id"], generate_summary=True)
    """

    def __init__(
        self,
        base_url: str,
        session: TokenSource | None = None,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._session = session
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/api",
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> LucidlyClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---------- internals ----------
    def _auth_headers(self) -> dict[str, str]:
        token = self._session.access_token() if self._session else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> ApiResponse[Any]:
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = self._client.request(method, endpoint, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            return ApiResponse(success=False, error=str(e) or "Network error")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.is_success:
            if response.status_code == 401 and self._session is not None:
                logger.warning("Authentication failed, signing out")
                self._session.sign_out()
            return ApiResponse(
                success=False,
                error=body.get("error")
                or f"HTTP {response.status_code}: {response.reason_phrase}",
            )

        return ApiResponse(
            success=bool(body.get("success", True)),
            data=body.get("data"),
            error=body.get("error"),
        )

    # ---------- dreams ----------
    def get_dreams(self) -> ApiResponse[list[dict[str, Any]]]:
        return self._request("GET", "/dreams")

    def get_dream(self, dream_id: str) -> ApiResponse[dict[str, Any]]:
        return self._request("GET", f"/dreams/{dream_id}")

    def create_dream(
        self, content: str | None = None, transcript: str | None = None
    ) -> ApiResponse[dict[str, Any]]:
        payload = {k: v for k, v in {"content": content, "transcript": transcript}.items() if v}
        return self._request("POST", "/dreams", json=payload)

    def update_dream(
        self,
        dream_id: str,
        generate_summary: bool = False,
        generate_sentiment: bool = False,
        generate_interpretation: bool = False,
    ) -> ApiResponse[dict[str, Any]]:
        """Ask the server to run analysis for the flagged fields."""
        return self._request(
            "PATCH",
            f"/dreams/{dream_id}",
            json={
                "generateSummary": generate_summary,
                "generateSentiment": generate_sentiment,
                "generateInterpretation": generate_interpretation,
            },
        )

    def replace_summary(self, dream_id: str, summary: str) -> ApiResponse[dict[str, Any]]:
        return self._request("PUT", f"/dreams/{dream_id}", json={"summary": summary})

    def delete_dream(self, dream_id: str) -> ApiResponse[dict[str, str]]:
        return self._request("DELETE", f"/dreams/{dream_id}")

    def summarize(self, dream_id: str, text: str) -> ApiResponse[dict[str, Any]]:
        return self._request("POST", "/summary", json={"dreamId": dream_id, "text": text})

    # ---------- transcription ----------
    def transcribe_audio(
        self, audio: bytes, content_type: str = "audio/wav", filename: str = "recording.wav"
    ) -> ApiResponse[dict[str, str]]:
        return self._request("POST", "/transcribe", files={"file": (filename, audio, content_type)})

    # ---------- system ----------
    def health(self) -> ApiResponse[dict[str, Any]]:
        return self._request("GET", "/health")
