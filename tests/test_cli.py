"""Tests for the lucidly command-line entry points."""

from __future__ import annotations

import argparse

import pytest

import lucidly
from journal.errors import AuthenticationError


class RejectingSession:
    """Session double whose password grant always fails."""

    instances: list[RejectingSession] = []

    def __init__(self, url: str, api_key: str) -> None:
        self.closed = False
        RejectingSession.instances.append(self)

    def sign_in(self, email: str, password: str) -> None:
        raise AuthenticationError("password grant failed: HTTP 400")

    def close(self) -> None:
        self.closed = True


class TestDreamsCommand:
    def test_failed_sign_in_exits_cleanly(self, monkeypatch: pytest.MonkeyPatch) -> None:
        RejectingSession.instances.clear()
        monkeypatch.setattr("journal.auth.SupabaseSession", RejectingSession)
        monkeypatch.setattr(lucidly.getpass, "getpass", lambda prompt: "wrong")

        args = argparse.Namespace(url="http://localhost:8000", email="me@example.com")
        with pytest.raises(SystemExit) as exc_info:
            lucidly.cmd_dreams(args)

        assert exc_info.value.code == 1
        assert RejectingSession.instances[0].closed
