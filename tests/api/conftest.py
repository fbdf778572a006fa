"""API test fixtures — app wired to a throwaway SQLite file per test."""

import pytest
from fastapi.testclient import TestClient

import warroom.database as db_mod
from warroom.dependencies import reset_singletons


def _reset_singletons():
    """Forget the engine and every service so the next app starts clean."""
    db_mod._engine = None
    db_mod._session_factory = None
    reset_singletons()


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'warroom-test.db'}")
    monkeypatch.setenv("DB_WAL_MODE", "false")
    return monkeypatch


def _running_client():
    from warroom.main import create_app

    _reset_singletons()
    try:
        with TestClient(create_app()) as test_client:
            yield test_client
    finally:
        _reset_singletons()


@pytest.fixture
def client(app_env):
    """TestClient running the app lifespan; engine and hub live on its loop."""
    yield from _running_client()


@pytest.fixture
def limited_client(app_env):
    """A client whose live feed accepts a single subscriber."""
    app_env.setenv("WS_MAX_CONNECTIONS", "1")
    yield from _running_client()


@pytest.fixture
def responder():
    return {"X-Role": "responder", "X-Actor": "alice"}


@pytest.fixture
def admin():
    return {"X-Role": "admin", "X-Actor": "root"}


@pytest.fixture
def create_incident(client, responder):
    """POST an incident and return the created record."""

    def _create(**fields):
        body = {"title": "Checkout errors", "source": "monitoring", **fields}
        resp = client.post("/api/incidents", json=body, headers=responder)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create
