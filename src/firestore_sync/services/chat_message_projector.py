from __future__ import annotations

import logging
from typing import Any

from firestore_sync.application.exceptions import CredentialError, ProjectionError
from firestore_sync.application.ports.clock import Clock, SystemClock
from firestore_sync.application.ports.document_store import DocumentStore
from firestore_sync.domain.entities.outbox_event import OutboxEvent
from firestore_sync.domain.value_objects.enums import EventType
from firestore_sync.domain.value_objects.field_value import Timestamp
from firestore_sync.services.field_codec import encode_fields

logger = logging.getLogger(__name__)


def build_message_document(payload: dict[str, Any]) -> dict[str, Any]:
    read_at = payload.get("readAt")
    return {
        "id": payload.get("id"),
        "senderId": payload.get("senderId"),
        "receiverId": payload.get("receiverId"),
        "senderName": payload.get("senderName") or "",
        "receiverName": payload.get("receiverName") or "",
        "messageText": payload.get("messageText"),
        "translatedText": payload.get("translatedText") or None,
        "createdAt": Timestamp(payload["createdAt"]) if payload.get("createdAt") else None,
        "readAt": Timestamp(read_at) if read_at else None,
    }


def build_room_document(
    booking_id: str,
    payload: dict[str, Any],
    updated_at: Timestamp,
) -> dict[str, Any]:
    """Summary of the conversation a message belongs to."""
    booking = payload.get("bookingData") or {}
    booking_time = booking.get("bookingTime")
    created_at = payload.get("createdAt")
    return {
        "bookingId": booking_id,
        "customerId": booking.get("customerId") or "",
        "driverId": booking.get("driverId") or "",
        "customerName": booking.get("customerName") or "",
        "driverName": booking.get("driverName") or "",
        "pickupAddress": booking.get("pickupAddress") or "",
        "bookingTime": Timestamp(booking_time) if booking_time else None,
        "lastMessage": payload.get("messageText") or "",
        "lastMessageTime": Timestamp(created_at) if created_at else None,
        "updatedAt": updated_at,
    }


class ChatMessageProjector:
    """Writes ``chat_rooms/{bookingId}/messages/{messageId}`` plus the room summary."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        rooms_collection: str = "chat_rooms",
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._rooms = rooms_collection
        self._clock = clock or SystemClock()

    async def project(self, event: OutboxEvent) -> None:
        payload = event.payload
        booking_id = payload.get("bookingId")
        if not booking_id:
            raise ProjectionError(f"Chat message {event.aggregate_id} has no bookingId")

        if event.event_type == EventType.DELETED:
            path = self._message_path(booking_id, event.aggregate_id)
            await self._store.delete_document(path)
            logger.info("Deleted chat message %s", path)
            return

        message_id = payload.get("id") or event.aggregate_id
        message_path = self._message_path(booking_id, message_id)
        await self._store.patch_document(message_path, encode_fields(build_message_document(payload)))
        logger.info("Upserted chat message %s", message_path)

        await self._update_room(booking_id, payload)

    async def _update_room(self, booking_id: str, payload: dict[str, Any]) -> None:
        room_path = f"{self._rooms}/{booking_id}"
        try:
            fields = encode_fields(
                build_room_document(booking_id, payload, Timestamp(self._clock.now()))
            )
            await self._store.patch_document(room_path, fields)
        except CredentialError:
            raise
        except Exception as exc:
            # the message itself is already delivered; a stale summary is tolerated
            logger.warning("Chat room %s summary update failed: %s", room_path, exc)
            return
        logger.debug("Updated chat room %s", room_path)

    def _message_path(self, booking_id: str, message_id: str) -> str:
        return f"{self._rooms}/{booking_id}/messages/{message_id}"
