"""Shared pytest fixtures for the test suite.

Provides:
- An isolated sqlite database per test (migrations applied)
- httpx.MockTransport factories standing in for the upstream APIs
- A TestClient plus helpers to sign users up
"""
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment BEFORE any advisor import (main.py runs init_db at import)
_IMPORT_DB_DIR = tempfile.mkdtemp(prefix="advisor-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_IMPORT_DB_DIR, 'import.db')}"
os.environ["JWT_SECRET"] = "test-jwt-secret"
for _var in ("HF_API_KEY", "INSIGHT_API_KEY", "NEWS_API_KEY", "CRYPTOCOMPARE_API_KEY"):
    os.environ.pop(_var, None)


@pytest.fixture(autouse=True)
def _reset_settings_for_tests():
    """Reset settings singleton so per-test env vars take effect."""
    from advisor.core.config import reset_settings
    reset_settings()
    yield
    reset_settings()


# === DATABASE FIXTURES ===

@pytest.fixture(scope="function")
def test_db(tmp_path, monkeypatch):
    """Fresh sqlite file with all migrations applied."""
    from advisor.core.config import reset_settings
    from advisor.db.connect import init_db

    db_path = tmp_path / "advisor_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    reset_settings()
    init_db()
    yield str(db_path)
    reset_settings()


# === UPSTREAM MOCKING ===

@pytest.fixture
def upstream() -> Callable[..., httpx.MockTransport]:
    """Factory for a MockTransport serving one canned response.

    The returned transport records every request in `.calls`.
    """
    def factory(
        json: Any = None,
        status_code: int = 200,
        text: Optional[str] = None,
        exc: Optional[Exception] = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> httpx.MockTransport:
        calls = []

        def _handle(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if exc is not None:
                raise exc
            if handler is not None:
                return handler(request)
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json)

        transport = httpx.MockTransport(_handle)
        transport.calls = calls
        return transport

    return factory


@pytest.fixture
def news_batch():
    """CryptoCompare-shaped response body."""
    return {
        "Type": 100,
        "Message": "News list successfully returned",
        "Data": [
            {"title": "Fed minutes move global markets", "source": "reuters", "url": "https://n.example/1"},
            {"title": "Bitcoin miners brace for halving", "source": "coindesk", "url": "https://n.example/2"},
            {"title": "Stablecoin bill advances in Senate", "source": "theblock", "url": "https://n.example/3"},
            {"title": "NFT volumes slide again", "source": "decrypt", "url": "https://n.example/4"},
            {"title": "Exchange outflows hit monthly high", "source": "cointelegraph", "url": "https://n.example/5"},
            {"title": "Macro traders eye CPI print", "source": "bloomberg", "url": "https://n.example/6"},
        ],
    }


# === API FIXTURES ===

@pytest.fixture
def client(test_db):
    from fastapi.testclient import TestClient
    from advisor.api.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Sign a user up through the API; returns (headers, user)."""
    def _signup(email: str = "ada@example.com", name: str = "Ada", password: str = "hunter22"):
        response = client.post("/auth/signup", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]
    return _signup
