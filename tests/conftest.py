"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from firestore_sync.application.exceptions import DocumentStoreError
from firestore_sync.domain.entities.outbox_event import OutboxEvent
from firestore_sync.domain.value_objects.field_value import FieldValue

T0 = datetime(2025, 10, 6, 8, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@dataclass
class FakeClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class FakeTokenProvider:
    token: str = "test-token"
    error: Exception | None = None
    calls: int = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


@dataclass
class FakeDocumentStore:
    """In-memory document store; paths listed in ``failures`` raise on write."""

    documents: dict[str, dict[str, FieldValue]] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    patches: list[str] = field(default_factory=list)
    deletes: list[str] = field(default_factory=list)

    def fail(self, path: str, exc: Exception | None = None) -> None:
        self.failures[path] = exc or DocumentStoreError(
            f"write to {path} failed (503)", status_code=503, body="unavailable",
        )

    async def patch_document(self, path: str, fields: dict[str, FieldValue]) -> None:
        self.patches.append(path)
        if path in self.failures:
            raise self.failures[path]
        self.documents.setdefault(path, {}).update(fields)

    async def delete_document(self, path: str) -> bool:
        self.deletes.append(path)
        if path in self.failures:
            raise self.failures[path]
        return self.documents.pop(path, None) is not None


def make_event(
    *,
    aggregate_type: str = "booking",
    event_type: str = "updated",
    aggregate_id: str | None = None,
    payload: dict[str, Any] | None = None,
    created_at: datetime | None = None,
    retry_count: int = 0,
    processed_at: datetime | None = None,
) -> OutboxEvent:
    return OutboxEvent(
        id=str(uuid.uuid4()),
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id or str(uuid.uuid4()),
        event_type=event_type,
        payload=payload if payload is not None else {},
        created_at=created_at or T0,
        retry_count=retry_count,
        processed_at=processed_at,
    )


def booking_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "customerId": "cust-1",
        "driverId": "drv-9",
        "customerName": "Lin",
        "pickupAddress": "Taipei Main Station",
        "pickupLocation": {"latitude": 25.0478, "longitude": 121.5170},
        "destination": "Taoyuan Airport T2",
        "startDate": "2025-10-10",
        "startTime": "09:30:00",
        "passengerCount": 3,
        "luggageCount": 2,
        "totalAmount": 2400,
        "depositAmount": 720,
        "status": "paid_deposit",
        "createdAt": "2025-10-06T07:55:00Z",
    }
    payload.update(overrides)
    return payload


def chat_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "msg-1",
        "bookingId": "B1",
        "senderId": "cust-1",
        "receiverId": "drv-9",
        "senderName": "Lin",
        "receiverName": "Chen",
        "messageText": "I'm at gate 3",
        "createdAt": "2025-10-06T07:58:00Z",
        "bookingData": {
            "customerId": "cust-1",
            "driverId": "drv-9",
            "customerName": "Lin",
            "driverName": "Chen",
            "pickupAddress": "Taipei Main Station",
            "bookingTime": "2025-10-10T09:30:00Z",
        },
    }
    payload.update(overrides)
    return payload


@dataclass
class FakeOutboxRepo:
    events: dict[str, OutboxEvent] = field(default_factory=dict)
    claims: list[bool] = field(default_factory=list)

    def add(self, *events: OutboxEvent) -> None:
        for event in events:
            self.events[event.id] = event

    async def fetch_due(
        self,
        limit: int,
        max_retries: int,
        *,
        claim: bool = False,
    ) -> list[OutboxEvent]:
        self.claims.append(claim)
        due = [e for e in self.events.values() if e.is_due(max_retries)]
        due.sort(key=lambda e: e.created_at or T0)
        return due[:limit]

    async def mark_processed(self, event_id: str, processed_at: datetime) -> None:
        self.events[event_id] = dataclasses.replace(self.events[event_id], processed_at=processed_at)

    async def mark_failed(self, event_id: str, error_message: str) -> None:
        event = self.events[event_id]
        self.events[event_id] = dataclasses.replace(
            event,
            retry_count=event.retry_count + 1,
            error_message=error_message,
        )

    async def purge_processed(self, before: datetime) -> int:
        stale = [
            event_id
            for event_id, e in self.events.items()
            if e.processed_at is not None and e.processed_at < before
        ]
        for event_id in stale:
            del self.events[event_id]
        return len(stale)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    outbox: FakeOutboxRepo = field(default_factory=FakeOutboxRepo)
    _committed: bool = False

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass
