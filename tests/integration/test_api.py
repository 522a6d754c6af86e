"""Integration smoke tests for REST API (using mocked UoW via dependency override)."""
from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from firestore_sync.api.deps import get_clock, get_dispatcher, get_uow
from firestore_sync.app import create_app
from firestore_sync.application.exceptions import CredentialError
from firestore_sync.services.dispatcher import EventDispatcher
from tests.conftest import T0, FakeClock, FakeTokenProvider, FakeUoW, make_event


class OkProjector:
    async def project(self, event) -> None:
        return None


@pytest.fixture
def tokens():
    return FakeTokenProvider()


@pytest.fixture
def app_with_uow(tokens):
    app = create_app()
    uow = FakeUoW()
    dispatcher = EventDispatcher({"booking": OkProjector()}, tokens, clock=FakeClock())

    async def _override():
        yield uow

    app.dependency_overrides[get_uow] = _override
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_clock] = lambda: FakeClock()
    return app, uow


@pytest.fixture
def client(app_with_uow):
    app, _ = app_with_uow
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def uow(app_with_uow):
    _, uow = app_with_uow
    return uow


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_sync_with_empty_outbox(client, tokens):
    resp = client.post("/api/v1/sync")
    assert resp.status_code == 200
    assert resp.json() == {"message": "No due events", "total": 0, "success": 0, "failure": 0}
    assert tokens.calls == 0


def test_sync_processes_batch(client, uow):
    events = [make_event(aggregate_id=f"B{i}") for i in range(3)]
    uow.outbox.add(*events)

    resp = client.post("/api/v1/sync")

    assert resp.status_code == 200
    assert resp.json() == {"message": "Batch processed", "total": 3, "success": 3, "failure": 0}
    assert all(e.processed_at == T0 for e in uow.outbox.events.values())


def test_sync_credential_failure_returns_500(client, uow, tokens):
    event = make_event()
    uow.outbox.add(event)
    tokens.error = CredentialError("invalid_grant: account disabled")

    resp = client.post("/api/v1/sync")

    assert resp.status_code == 500
    assert resp.json() == {"error": "invalid_grant: account disabled"}
    assert uow.outbox.events[event.id].retry_count == 0
    assert uow._committed is False


def test_cleanup_purges_old_processed(client, uow):
    uow.outbox.add(
        make_event(processed_at=T0 - timedelta(days=10)),
        make_event(processed_at=T0 - timedelta(hours=1)),
    )

    resp = client.post("/api/v1/outbox/cleanup")

    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Cleanup complete"
    assert data["deleted"] == 1
    assert data["cutoff"].startswith("2025-09-29T08:00:00")
    assert len(uow.outbox.events) == 1


def test_request_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"


def test_request_id_is_generated(client):
    resp = client.get("/healthz")
    assert len(resp.headers["X-Request-ID"]) == 32
