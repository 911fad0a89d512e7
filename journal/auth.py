"""Supabase auth: server-side token verification and client-side sessions."""

from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from loguru import logger

from journal.errors import AuthenticationError
from journal.types import AuthUser


class Authenticator(Protocol):
    async def authenticate(self, token: str) -> AuthUser: ...

    async def aclose(self) -> None: ...


def parse_bearer(header: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.startswith("Bearer "):
        raise AuthenticationError("Missing or invalid authorization header")
    token = header.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Missing or invalid authorization header")
    return token


def decode_jwt_payload(token: str) -> dict[str, Any]:
    """Decode the claims segment of a JWT without verifying the signature."""
    segment = token.split(".")[1]
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def is_token_expired(token: str, now: float | None = None) -> bool:
    """True when ``exp`` has passed or the token cannot be decoded."""
    try:
        exp = decode_jwt_payload(token)["exp"]
        current = int(now if now is not None else time.time())
        return float(exp) < current
    except (IndexError, KeyError, TypeError, ValueError):
        return True


class SupabaseAuthenticator:
    """Resolve bearer tokens to users via GoTrue ``/auth/v1/user``."""

    def __init__(
        self,
        supabase_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{supabase_url.rstrip('/')}/auth/v1/",
            headers={"apikey": api_key},
            timeout=timeout,
            transport=transport,
        )

    async def authenticate(self, token: str) -> AuthUser:
        try:
            response = await self._client.get("user", headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            logger.error("Auth service unreachable: {}", e)
            raise AuthenticationError("Invalid or expired token") from e

        if response.status_code != 200:
            raise AuthenticationError("Invalid or expired token")

        body = response.json()
        if not body.get("id"):
            raise AuthenticationError("Invalid or expired token")
        return AuthUser(id=str(body["id"]), email=body.get("email"))

    async def aclose(self) -> None:
        await self._client.aclose()


class UnverifiedTokenAuthenticator:
    """Development-only authenticator that trusts the token's own claims.

    Reads ``sub`` and ``email`` from the JWT payload and rejects expired
    tokens. Signatures are NOT checked, so this must never face real users.
    """

    async def authenticate(self, token: str) -> AuthUser:
        if is_token_expired(token):
            raise AuthenticationError("Invalid or expired token")
        claims = decode_jwt_payload(token)
        if not claims.get("sub"):
            raise AuthenticationError("Invalid or expired token")
        return AuthUser(id=str(claims["sub"]), email=claims.get("email"))

    async def aclose(self) -> None:
        return None


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str | None = None


class SupabaseSession:
    """Client-side session that keeps its access token fresh.

    Usage:
        >>> session = SupabaseSession(url, anon_key)
        >>> session.sign_in("me@example.com", "secret")
        >>> token = session.access_token()  # refreshed when expired
    """

    def __init__(
        self,
        supabase_url: str,
        api_key: str,
        tokens: SessionTokens | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=f"{supabase_url.rstrip('/')}/auth/v1/",
            headers={"apikey": api_key},
            timeout=10.0,
            transport=transport,
        )
        self._tokens = tokens

    @property
    def is_signed_in(self) -> bool:
        return self._tokens is not None

    def _grant(self, grant_type: str, body: dict[str, str]) -> SessionTokens:
        response = self._client.post("token", params={"grant_type": grant_type}, json=body)
        if response.status_code != 200:
            raise AuthenticationError(f"{grant_type} grant failed: HTTP {response.status_code}")
        data = response.json()
        return SessionTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
        )

    def sign_in(self, email: str, password: str) -> SessionTokens:
        self._tokens = self._grant("password", {"email": email, "password": password})
        return self._tokens

    def refresh(self) -> SessionTokens:
        if self._tokens is None or not self._tokens.refresh_token:
            raise AuthenticationError("No refresh token available")
        self._tokens = self._grant("refresh_token", {"refresh_token": self._tokens.refresh_token})
        return self._tokens

    def sign_out(self) -> None:
        if self._tokens is None:
            return
        try:
            self._client.post(
                "logout", headers={"Authorization": f"Bearer {self._tokens.access_token}"}
            )
        except httpx.HTTPError as e:
            logger.warning("Sign-out request failed: {}", e)
        self._tokens = None

    def access_token(self) -> str | None:
        """Current access token, refreshed first when expired.

        A failed refresh signs the session out and returns ``None`` so the
        caller can prompt for a new login.
        """
        if self._tokens is None:
            return None
        if is_token_expired(self._tokens.access_token):
            logger.info("Token expired, attempting refresh")
            try:
                self.refresh()
            except (AuthenticationError, httpx.HTTPError) as e:
                logger.error("Token refresh failed: {}", e)
                self.sign_out()
                return None
        return self._tokens.access_token

    def close(self) -> None:
        self._client.close()
