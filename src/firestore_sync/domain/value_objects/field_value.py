"""Tagged document field values and the input markers that produce them.

The ``*Value`` classes form the closed set of shapes the document store
understands; each renders its own REST wire form. ``GeoPoint``, ``Timestamp``
and ``Integer`` are input-side markers used when building documents.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True)
class NullValue:
    def to_wire(self) -> dict[str, Any]:
        return {"nullValue": None}


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str

    def to_wire(self) -> dict[str, Any]:
        return {"stringValue": self.value}


@dataclass(frozen=True, slots=True)
class IntegerValue:
    value: int

    def to_wire(self) -> dict[str, Any]:
        # int64 travels as a decimal string
        return {"integerValue": str(self.value)}


@dataclass(frozen=True, slots=True)
class DoubleValue:
    value: float

    def to_wire(self) -> dict[str, Any]:
        return {"doubleValue": self.value}


@dataclass(frozen=True, slots=True)
class BooleanValue:
    value: bool

    def to_wire(self) -> dict[str, Any]:
        return {"booleanValue": self.value}


@dataclass(frozen=True, slots=True)
class GeoPointValue:
    latitude: float
    longitude: float

    def to_wire(self) -> dict[str, Any]:
        return {
            "geoPointValue": {
                "latitude": self.latitude,
                "longitude": self.longitude,
            }
        }


@dataclass(frozen=True, slots=True)
class TimestampValue:
    value: datetime

    def to_wire(self) -> dict[str, Any]:
        return {"timestampValue": format_timestamp(self.value)}


@dataclass(frozen=True, slots=True)
class MapValue:
    fields: dict[str, FieldValue]

    def to_wire(self) -> dict[str, Any]:
        return {"mapValue": {"fields": to_wire_fields(self.fields)}}


FieldValue: TypeAlias = (
    NullValue
    | StringValue
    | IntegerValue
    | DoubleValue
    | BooleanValue
    | GeoPointValue
    | TimestampValue
    | MapValue
)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Timestamp:
    """An absolute instant, given as an ISO 8601 string or a datetime."""

    value: str | datetime


@dataclass(frozen=True, slots=True)
class Integer:
    value: int | float


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 in UTC with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def to_wire_fields(fields: dict[str, FieldValue]) -> dict[str, Any]:
    return {key: value.to_wire() for key, value in fields.items()}
