"""Tests for backend.apps.api — routes, envelope, error mapping."""

from __future__ import annotations

import asyncio
import time

import httpx
from conftest import AUTH, make_jwt
from fastapi.testclient import TestClient
from loguru import logger

from backend.apps.api.dependencies import get_authenticator, get_current_user, get_service
from backend.apps.api.main import app
from journal.auth import UnverifiedTokenAuthenticator

BART = "facebook/bart-large-cnn"
ROBERTA = "cardiffnlp/twitter-roberta-base-sentiment-latest"
WHISPER_TURBO = "openai/whisper-large-v3-turbo"


def ok(body: object) -> httpx.Response:
    return httpx.Response(200, json=body)


class TestSystem:
    """Tests for unauthenticated system routes."""

    def test_health(self, api) -> None:
        resp = api().get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["data"]["status"] == "healthy"
        assert body["data"]["version"] == "1.0.0"
        assert "timestamp" in body["data"]

    def test_request_id_and_security_headers(self, api) -> None:
        resp = api().get("/api/health", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"

    def test_request_id_bound_to_log_records(self, api) -> None:
        records: list[dict] = []
        sink_id = logger.add(lambda message: records.append(message.record), level="INFO")
        try:
            api().get("/api/health", headers={"X-Request-ID": "req-7"})
        finally:
            logger.remove(sink_id)
        access = [r for r in records if "/api/health" in r["message"]]
        assert access
        assert access[0]["extra"]["request_id"] == "req-7"

    def test_dream_responses_are_not_cached(self, api) -> None:
        client = api()
        assert client.get("/api/dreams", headers=AUTH).headers["Cache-Control"] == "no-store"
        assert "Cache-Control" not in client.get("/api/health").headers

    def test_env_diagnostics_hides_key(self, api) -> None:
        data = api().get("/api/diagnostics/env").json()["data"]
        assert data == {
            "hfKeyExists": True,
            "hfKeyLength": len("hf_test"),
            "supabaseConfigured": False,
            "storageBackend": "memory",
        }

    def test_method_not_allowed(self, api) -> None:
        resp = api().delete("/api/health")
        assert resp.status_code == 405
        assert resp.json() == {"success": False, "data": None, "error": "Method DELETE Not Allowed"}

    def test_unhandled_error_envelope(self, api) -> None:
        class BrokenService:
            async def list_dreams(self, user):
                raise RuntimeError("connection pool exhausted")

        api()
        app.dependency_overrides[get_service] = BrokenService
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/api/dreams", headers=AUTH)
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "data": None, "error": "Internal server error"}


class TestDreamRoutes:
    """Tests for dream CRUD."""

    def test_create_list_get_delete(self, api) -> None:
        client = api()
        created = client.post("/api/dreams", json={"content": "Swimming through a cathedral."}, headers=AUTH)
        assert created.status_code == 201
        dream = created.json()["data"]
        assert dream["user_id"] == "user-1"
        assert dream["transcript"] is None

        listed = client.get("/api/dreams", headers=AUTH).json()["data"]
        assert [d["id"] for d in listed] == [dream["id"]]
        assert listed[0]["title"] == "Swimming through a cathedral"
        assert listed[0]["mood"] == "peaceful"

        fetched = client.get(f"/api/dreams/{dream['id']}", headers=AUTH).json()
        assert fetched["data"]["content"] == "Swimming through a cathedral."

        deleted = client.delete(f"/api/dreams/{dream['id']}", headers=AUTH)
        assert deleted.json()["data"] == {"message": "Dream deleted successfully"}
        assert client.get(f"/api/dreams/{dream['id']}", headers=AUTH).status_code == 404

    def test_create_requires_text(self, api) -> None:
        resp = api().post("/api/dreams", json={}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Either content or transcript is required"

    def test_get_missing(self, api) -> None:
        resp = api().get("/api/dreams/unknown", headers=AUTH)
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "data": None, "error": "Dream not found"}

    def test_put_summary(self, api) -> None:
        client = api()
        dream_id = client.post("/api/dreams", json={"content": "x"}, headers=AUTH).json()["data"]["id"]
        assert client.put(f"/api/dreams/{dream_id}", json={}, headers=AUTH).status_code == 400
        resp = client.put(f"/api/dreams/{dream_id}", json={"summary": "Mine."}, headers=AUTH)
        assert resp.json()["data"]["summary"] == "Mine."

    def test_patch_generates_analysis(self, api) -> None:
        client = api(
            {
                BART: ok([{"summary_text": "Cathedral swim."}]),
                ROBERTA: ok([[{"label": "negative", "score": 0.9}]]),
            }
        )
        dream_id = client.post(
            "/api/dreams", json={"content": "Swimming through a cathedral."}, headers=AUTH
        ).json()["data"]["id"]

        resp = client.patch(
            f"/api/dreams/{dream_id}",
            json={"generateSummary": True, "generateSentiment": True},
            headers=AUTH,
        )
        data = resp.json()["data"]
        assert resp.status_code == 200
        assert data["summary"] == "Cathedral swim."
        assert data["sentiment"] == {"label": "negative", "score": 0.9}
        assert data["interpretation"] is None

        listed = client.get("/api/dreams", headers=AUTH).json()["data"]
        assert listed[0]["mood"] == "nightmare"


class TestSummaryRoute:
    def test_missing_fields(self, api) -> None:
        resp = api().post("/api/summary", json={"text": "only text"}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Dream ID and text are required"

    def test_all_models_failed(self, api) -> None:
        client = api()
        dream_id = client.post("/api/dreams", json={"content": "x"}, headers=AUTH).json()["data"]["id"]
        resp = client.post("/api/summary", json={"dreamId": dream_id, "text": "x"}, headers=AUTH)
        assert resp.status_code == 500
        assert resp.json()["error"] == "All summarization models failed. Try again later."

    def test_success(self, api) -> None:
        client = api({BART: ok([{"summary_text": "Brief."}])})
        dream_id = client.post("/api/dreams", json={"content": "x"}, headers=AUTH).json()["data"]["id"]
        resp = client.post("/api/summary", json={"dreamId": dream_id, "text": "x"}, headers=AUTH)
        assert resp.json()["data"] == {"success": True, "summary": "Brief.", "dreamId": dream_id}
        assert client.get(f"/api/dreams/{dream_id}", headers=AUTH).json()["data"]["summary"] == "Brief."


class TestTranscribeRoute:
    def test_success(self, api) -> None:
        client = api({WHISPER_TURBO: ok({"text": "I was in a maze."})})
        resp = client.post(
            "/api/transcribe",
            files={"file": ("recording.wav", b"RIFF0000", "audio/wav")},
            headers=AUTH,
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {"transcript": "I was in a maze."}

    def test_missing_key(self, api) -> None:
        resp = api(api_key=None).post(
            "/api/transcribe", files={"file": ("a.wav", b"x", "audio/wav")}, headers=AUTH
        )
        assert resp.status_code == 500
        assert resp.json()["error"] == "Hugging Face API key not configured"

    def test_missing_file(self, api) -> None:
        resp = api().post("/api/transcribe", data={"other": "x"}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["error"] == "No audio file provided"

    def test_timeout(self, api, test_settings) -> None:
        async def stalled(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return ok({"text": "too late"})

        test_settings.transcription_timeout_seconds = 0.05
        resp = api({WHISPER_TURBO: stalled}).post(
            "/api/transcribe", files={"file": ("a.wav", b"RIFF", "audio/wav")}, headers=AUTH
        )
        assert resp.status_code == 408
        assert resp.json() == {
            "success": False,
            "data": None,
            "error": "Transcription took too long. Please try again with a shorter recording.",
        }

    def test_too_large(self, api) -> None:
        resp = api().post(
            "/api/transcribe", files={"file": ("a.wav", b"x" * 2048, "audio/wav")}, headers=AUTH
        )
        assert resp.status_code == 413


class TestAuthentication:
    """Tests for the real bearer-token dependency chain."""

    def test_missing_header(self, api) -> None:
        client = api()
        app.dependency_overrides.pop(get_current_user)
        app.dependency_overrides[get_authenticator] = UnverifiedTokenAuthenticator
        resp = client.get("/api/dreams")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Missing or invalid authorization header"

    def test_expired_token(self, api) -> None:
        client = api()
        app.dependency_overrides.pop(get_current_user)
        app.dependency_overrides[get_authenticator] = UnverifiedTokenAuthenticator
        token = make_jwt({"sub": "user-1", "exp": 1})
        resp = client.get("/api/dreams", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired token"

    def test_valid_token(self, api) -> None:
        client = api()
        app.dependency_overrides.pop(get_current_user)
        app.dependency_overrides[get_authenticator] = UnverifiedTokenAuthenticator
        token = make_jwt({"sub": "user-9", "exp": time.time() + 600})
        resp = client.post(
            "/api/dreams", json={"content": "hello"}, headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["user_id"] == "user-9"
