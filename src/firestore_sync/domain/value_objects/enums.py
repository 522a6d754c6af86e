from __future__ import annotations

from enum import StrEnum


class AggregateType(StrEnum):
    BOOKING = "booking"
    CHAT_MESSAGE = "chat_message"


class EventType(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class DualWritePolicy(StrEnum):
    LENIENT = "lenient"  # partial success is marked processed
    STRICT = "strict"  # any failed collection fails the event
