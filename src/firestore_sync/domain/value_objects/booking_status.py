"""Booking lifecycle states as the relational source and the client app see them."""
from __future__ import annotations

from enum import StrEnum


class BookingStatus(StrEnum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PENDING = "pending"
    AWAITING_DRIVER = "awaitingDriver"
    MATCHED = "matched"
    ON_THE_WAY = "ON_THE_WAY"
    IN_PROGRESS = "inProgress"
    AWAITING_BALANCE = "awaitingBalance"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Many-to-one on purpose: several source states collapse into one client phase.
SOURCE_TO_TARGET_STATUS: dict[str, BookingStatus] = {
    # payment and search
    "pending_payment": BookingStatus.PENDING_PAYMENT,
    "paid_deposit": BookingStatus.PENDING,
    "assigned": BookingStatus.AWAITING_DRIVER,
    "matched": BookingStatus.AWAITING_DRIVER,
    # in service
    "driver_confirmed": BookingStatus.MATCHED,
    "driver_departed": BookingStatus.ON_THE_WAY,
    "driver_arrived": BookingStatus.ON_THE_WAY,
    "trip_started": BookingStatus.IN_PROGRESS,
    "in_progress": BookingStatus.IN_PROGRESS,
    # settlement
    "trip_ended": BookingStatus.AWAITING_BALANCE,
    "pending_balance": BookingStatus.AWAITING_BALANCE,
    # final
    "completed": BookingStatus.COMPLETED,
    "cancelled": BookingStatus.CANCELLED,
}


def map_booking_status(source_status: str | None) -> str:
    """Translate a source status; anything unknown becomes ``pending``."""
    if source_status is None:
        return BookingStatus.PENDING.value
    return SOURCE_TO_TARGET_STATUS.get(source_status, BookingStatus.PENDING).value
