"""Shared test fixtures for Lucidly."""

from __future__ import annotations

import base64
import json
import random
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.apps.api.dependencies import (
    get_analyzer,
    get_current_user,
    get_settings,
    get_store,
)
from backend.apps.api.main import app
from backend.config import Settings
from journal.inference import DreamAnalyzer, HuggingFaceClient
from journal.storage import MemoryDreamStore
from journal.types import AuthUser

HF_BASE = "https://hf.test/models"

ModelRoutes = dict[str, Callable[[httpx.Request], httpx.Response] | httpx.Response]


def model_of(request: httpx.Request) -> str:
    """``https://hf.test/models/owner/name`` → ``owner/name``."""
    return request.url.path.removeprefix("/models/")


def hf_transport(routes: ModelRoutes, calls: list[str] | None = None) -> httpx.MockTransport:
    """Mock inference API: each model maps to a response (or a handler).

    Unlisted models answer 404, like a withdrawn model would.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        model = model_of(request)
        if calls is not None:
            calls.append(model)
        route = routes.get(model)
        if route is None:
            return httpx.Response(404, json={"error": f"Model {model} does not exist"})
        if callable(route):
            return route(request)
        return route

    return httpx.MockTransport(handler)


def make_jwt(claims: dict) -> str:
    """Unsigned JWT with the given claims."""

    def seg(obj: dict) -> str:
        raw = json.dumps(obj).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    return f"{seg({'alg': 'HS256', 'typ': 'JWT'})}.{seg(claims)}.signature"


@pytest.fixture
def make_analyzer() -> Callable[..., DreamAnalyzer]:
    """Factory for analyzers backed by a mock inference API."""

    def _make(
        routes: ModelRoutes | None = None,
        calls: list[str] | None = None,
        api_key: str | None = "hf_test",
        seed: int = 7,
    ) -> DreamAnalyzer:
        client = HuggingFaceClient(
            api_key=api_key,
            base_url=HF_BASE,
            transport=hf_transport(routes or {}, calls),
        )
        return DreamAnalyzer(client, rng=random.Random(seed))

    return _make


@pytest.fixture
def user() -> AuthUser:
    return AuthUser(id="user-1", email="dreamer@example.com")


@pytest.fixture
def other_user() -> AuthUser:
    return AuthUser(id="user-2", email="someone@example.com")


@pytest.fixture
def memory_store() -> MemoryDreamStore:
    return MemoryDreamStore()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        hf_api_key="hf_test",
        storage_backend="memory",
        transcription_timeout_seconds=2.0,
        max_audio_bytes=1024,
    )


@pytest.fixture
def api(
    make_analyzer: Callable[..., DreamAnalyzer],
    memory_store: MemoryDreamStore,
    user: AuthUser,
    test_settings: Settings,
):
    """Build a TestClient whose analyzer answers from ``routes``.

    Usage in a test: ``client = api({"facebook/bart-large-cnn": httpx.Response(...)})``.
    """

    def _build(routes: ModelRoutes | None = None, api_key: str | None = "hf_test") -> TestClient:
        analyzer = make_analyzer(routes, api_key=api_key)

        async def _store():
            yield memory_store

        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_analyzer] = lambda: analyzer
        app.dependency_overrides[get_store] = _store
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    yield _build
    app.dependency_overrides.clear()


AUTH = {"Authorization": "Bearer test-token"}
