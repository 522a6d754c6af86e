from __future__ import annotations

import pytest

from firestore_sync.application.exceptions import DocumentStoreError, ProjectionError
from firestore_sync.domain.value_objects.field_value import NullValue, StringValue, to_wire_fields
from firestore_sync.services.chat_message_projector import ChatMessageProjector
from tests.conftest import FakeClock, FakeDocumentStore, chat_payload, make_event


def _projector(store: FakeDocumentStore) -> ChatMessageProjector:
    return ChatMessageProjector(store, clock=FakeClock())


@pytest.mark.asyncio
async def test_created_message_and_room_summary():
    store = FakeDocumentStore()

    await _projector(store).project(
        make_event(aggregate_type="chat_message", event_type="created",
                   aggregate_id="msg-1", payload=chat_payload())
    )

    assert store.patches == ["chat_rooms/B1/messages/msg-1", "chat_rooms/B1"]

    message = to_wire_fields(store.documents["chat_rooms/B1/messages/msg-1"])
    assert message["messageText"] == {"stringValue": "I'm at gate 3"}
    assert message["createdAt"] == {"timestampValue": "2025-10-06T07:58:00.000Z"}
    assert message["translatedText"] == {"nullValue": None}
    assert message["readAt"] == {"nullValue": None}

    room = to_wire_fields(store.documents["chat_rooms/B1"])
    assert room["lastMessage"] == {"stringValue": "I'm at gate 3"}
    assert room["lastMessageTime"] == message["createdAt"]
    assert room["updatedAt"] == {"timestampValue": "2025-10-06T08:00:00.000Z"}
    assert room["driverName"] == {"stringValue": "Chen"}
    assert room["bookingTime"] == {"timestampValue": "2025-10-10T09:30:00.000Z"}


@pytest.mark.asyncio
async def test_room_defaults_without_booking_data():
    store = FakeDocumentStore()
    payload = chat_payload(bookingData=None, messageText=None)

    await _projector(store).project(
        make_event(aggregate_type="chat_message", aggregate_id="msg-1", payload=payload)
    )

    room = store.documents["chat_rooms/B1"]
    assert room["customerId"] == StringValue("")
    assert room["lastMessage"] == StringValue("")
    assert room["bookingTime"] == NullValue()


@pytest.mark.asyncio
async def test_message_failure_raises_and_skips_room():
    store = FakeDocumentStore()
    store.fail("chat_rooms/B1/messages/msg-1")

    with pytest.raises(DocumentStoreError):
        await _projector(store).project(
            make_event(aggregate_type="chat_message", aggregate_id="msg-1", payload=chat_payload())
        )
    assert store.patches == ["chat_rooms/B1/messages/msg-1"]


@pytest.mark.asyncio
async def test_room_failure_is_tolerated(caplog):
    store = FakeDocumentStore()
    store.fail("chat_rooms/B1")

    await _projector(store).project(
        make_event(aggregate_type="chat_message", aggregate_id="msg-1", payload=chat_payload())
    )

    assert "chat_rooms/B1/messages/msg-1" in store.documents
    assert any(r.levelname == "WARNING" for r in caplog.records)


@pytest.mark.asyncio
async def test_deleted_message_uses_aggregate_id():
    store = FakeDocumentStore()

    await _projector(store).project(
        make_event(aggregate_type="chat_message", event_type="deleted",
                   aggregate_id="msg-7", payload={"bookingId": "B1"})
    )

    assert store.deletes == ["chat_rooms/B1/messages/msg-7"]
    assert store.patches == []


@pytest.mark.asyncio
async def test_delete_failure_raises():
    store = FakeDocumentStore()
    store.fail("chat_rooms/B1/messages/msg-7")

    with pytest.raises(DocumentStoreError):
        await _projector(store).project(
            make_event(aggregate_type="chat_message", event_type="deleted",
                       aggregate_id="msg-7", payload={"bookingId": "B1"})
        )


@pytest.mark.asyncio
async def test_missing_booking_id_raises():
    store = FakeDocumentStore()

    with pytest.raises(ProjectionError, match="bookingId"):
        await _projector(store).project(
            make_event(aggregate_type="chat_message", aggregate_id="msg-1", payload={"id": "msg-1"})
        )
