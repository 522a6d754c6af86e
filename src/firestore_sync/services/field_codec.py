"""Encode loosely-typed payload trees into tagged document field values."""
from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from firestore_sync.application.exceptions import FieldEncodingError
from firestore_sync.domain.value_objects.field_value import (
    BooleanValue,
    DoubleValue,
    FieldValue,
    GeoPoint,
    GeoPointValue,
    Integer,
    IntegerValue,
    MapValue,
    NullValue,
    StringValue,
    Timestamp,
    TimestampValue,
    to_wire_fields,
)

MAX_DEPTH = 32

_LATITUDE_KEY = "_latitude"
_LONGITUDE_KEY = "_longitude"
_TIMESTAMP_KEY = "_timestamp"
_INTEGER_KEY = "_integer"


def encode_fields(data: Mapping[str, Any]) -> dict[str, FieldValue]:
    """Encode a top-level document body into a field map."""
    return _encode_mapping(data, depth=0)


def encode_document(data: Mapping[str, Any]) -> dict[str, Any]:
    """Encode straight to the REST ``fields`` JSON."""
    return to_wire_fields(encode_fields(data))


def encode_value(value: Any, *, depth: int = 0) -> FieldValue:
    if depth > MAX_DEPTH:
        raise FieldEncodingError(f"Value nested deeper than {MAX_DEPTH} levels")

    if value is None:
        return NullValue()
    if isinstance(value, str):
        return StringValue(value)
    # bool before numbers: bool is an int subclass
    if isinstance(value, bool):
        return BooleanValue(value)
    if isinstance(value, (int, float)):
        return _encode_number(value)

    if isinstance(value, GeoPoint):
        return GeoPointValue(float(value.latitude), float(value.longitude))
    if isinstance(value, Timestamp):
        return TimestampValue(parse_instant(value.value))
    if isinstance(value, Integer):
        return IntegerValue(_to_int(value.value))
    if isinstance(value, datetime):
        return TimestampValue(parse_instant(value))

    if isinstance(value, Mapping):
        if _LATITUDE_KEY in value and _LONGITUDE_KEY in value:
            return GeoPointValue(
                float(value[_LATITUDE_KEY]),
                float(value[_LONGITUDE_KEY]),
            )
        if _TIMESTAMP_KEY in value:
            return TimestampValue(parse_instant(value[_TIMESTAMP_KEY]))
        if _INTEGER_KEY in value:
            return IntegerValue(_to_int(value[_INTEGER_KEY]))
        return MapValue(_encode_mapping(value, depth=depth + 1))

    raise FieldEncodingError(f"Unsupported field value type: {type(value).__name__}")


def parse_instant(raw: Any) -> datetime:
    """Reinterpret an ISO 8601 string (or datetime) as an absolute UTC instant."""
    if isinstance(raw, datetime):
        ts = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError as exc:
            raise FieldEncodingError(f"Invalid timestamp: {raw!r}") from exc
    else:
        raise FieldEncodingError(f"Invalid timestamp: {raw!r}")

    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _encode_mapping(data: Mapping[str, Any], *, depth: int) -> dict[str, FieldValue]:
    if depth > MAX_DEPTH:
        raise FieldEncodingError(f"Value nested deeper than {MAX_DEPTH} levels")
    return {str(key): encode_value(item, depth=depth) for key, item in data.items()}


def _encode_number(value: int | float) -> FieldValue:
    if isinstance(value, int):
        return IntegerValue(value)
    if math.isfinite(value) and value.is_integer():
        return IntegerValue(int(value))
    return DoubleValue(value)


def _to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise FieldEncodingError(f"Invalid integer: {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise FieldEncodingError(f"Invalid integer: {raw!r}") from exc
