"""Project booking rows into the ``orders_rt`` and ``bookings`` collections.

Both collections receive the same document. Writes are attempted one after
the other and failures are collected; what a partial failure means for the
event is decided by the configured :class:`DualWritePolicy`.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from firestore_sync.application.exceptions import CredentialError, ProjectionError
from firestore_sync.application.ports.document_store import DocumentStore
from firestore_sync.domain.entities.outbox_event import OutboxEvent
from firestore_sync.domain.value_objects.booking_status import map_booking_status
from firestore_sync.domain.value_objects.enums import DualWritePolicy, EventType
from firestore_sync.domain.value_objects.field_value import GeoPoint, Integer, Timestamp
from firestore_sync.services.field_codec import encode_fields

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS: tuple[str, ...] = ("orders_rt", "bookings")

# Taipei 101; used when the source row has no coordinates
FALLBACK_LOCATION = GeoPoint(latitude=25.0330, longitude=121.5654)


def build_booking_document(payload: dict[str, Any]) -> dict[str, Any]:
    """Shape a booking payload the way the client app reads it."""
    if payload.get("startDate") and payload.get("startTime"):
        booking_time = f"{payload['startDate']}T{payload['startTime']}"
    else:
        booking_time = payload.get("createdAt")

    luggage = payload.get("luggageCount")

    return {
        "customerId": payload.get("customerId"),
        "driverId": payload.get("driverId") or None,
        "customerName": payload.get("customerName") or None,
        "customerPhone": payload.get("customerPhone") or None,
        "driverName": payload.get("driverName") or None,
        "driverPhone": payload.get("driverPhone") or None,
        "driverVehiclePlate": payload.get("driverVehiclePlate") or None,
        "driverVehicleModel": payload.get("driverVehicleModel") or None,
        "driverRating": payload.get("driverRating") or None,
        "pickupAddress": payload.get("pickupAddress") or "",
        "pickupLocation": _pickup_point(payload.get("pickupLocation")),
        "dropoffAddress": payload.get("destination") or "",
        "dropoffLocation": FALLBACK_LOCATION,
        "bookingTime": _timestamp_or_none(booking_time),
        "passengerCount": Integer(payload.get("passengerCount") or 1),
        "luggageCount": Integer(luggage) if luggage else None,
        "notes": payload.get("specialRequirements") or None,
        "tourPackageId": payload.get("tourPackageId") or None,
        "tourPackageName": payload.get("tourPackageName") or None,
        "promoCode": payload.get("promoCode") or None,
        "influencerId": payload.get("influencerId") or None,
        "influencerCommission": payload.get("influencerCommission") or 0,
        "originalPrice": payload.get("originalPrice") or None,
        "discountAmount": payload.get("discountAmount") or 0,
        "finalPrice": payload.get("finalPrice") or None,
        "taxId": payload.get("taxId") or None,
        "estimatedFare": payload.get("totalAmount") or 0,
        "depositAmount": payload.get("depositAmount") or 0,
        "overtimeFee": payload.get("overtimeFee") or 0,
        "tipAmount": payload.get("tipAmount") or 0,
        "platformFee": payload.get("platformFee") or 0,
        "driverEarning": payload.get("driverEarning") or 0,
        "depositPaid": False,
        "status": map_booking_status(payload.get("status")),
        "createdAt": _timestamp_or_none(payload.get("createdAt")),
        "matchedAt": _timestamp_or_none(payload.get("actualStartTime")),
        "completedAt": _timestamp_or_none(payload.get("actualEndTime")),
    }


def _pickup_point(raw: Any) -> GeoPoint:
    if isinstance(raw, dict) and raw.get("latitude") is not None and raw.get("longitude") is not None:
        return GeoPoint(latitude=raw["latitude"], longitude=raw["longitude"])
    return FALLBACK_LOCATION


def _timestamp_or_none(raw: Any) -> Timestamp | None:
    return Timestamp(raw) if raw else None


class BookingProjector:
    def __init__(
        self,
        store: DocumentStore,
        *,
        collections: Sequence[str] = DEFAULT_COLLECTIONS,
        policy: DualWritePolicy = DualWritePolicy.LENIENT,
    ) -> None:
        self._store = store
        self._collections = tuple(collections)
        self._policy = policy

    async def project(self, event: OutboxEvent) -> None:
        booking_id = event.aggregate_id
        if event.event_type == EventType.DELETED:
            await self._fan_out(
                "delete",
                booking_id,
                lambda path: self._store.delete_document(path),
            )
            return

        fields = encode_fields(build_booking_document(event.payload))
        await self._fan_out(
            "upsert",
            booking_id,
            lambda path: self._store.patch_document(path, fields),
        )

    async def _fan_out(
        self,
        action: str,
        booking_id: str,
        write: Callable[[str], Awaitable[object]],
    ) -> None:
        succeeded: list[str] = []
        failed: list[tuple[str, str]] = []

        for collection in self._collections:
            path = f"{collection}/{booking_id}"
            try:
                await write(path)
            except CredentialError:
                raise
            except Exception as exc:
                logger.error("Booking %s failed for %s: %s", action, path, exc)
                failed.append((collection, str(exc)))
            else:
                succeeded.append(collection)

        if not failed:
            logger.info("Booking %s %s in %s", booking_id, action, ", ".join(succeeded))
            return

        detail = ", ".join(f"{name} ({error})" for name, error in failed)
        if not succeeded:
            raise ProjectionError(f"Booking {action} failed in all collections: {detail}")
        if self._policy == DualWritePolicy.STRICT:
            raise ProjectionError(f"Booking {action} failed in some collections: {detail}")

        logger.warning(
            "Booking %s %s partially applied: ok [%s], failed [%s]",
            booking_id,
            action,
            ", ".join(succeeded),
            ", ".join(name for name, _ in failed),
        )
