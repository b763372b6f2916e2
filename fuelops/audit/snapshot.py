"""
Snapshot codec.

Turns a tracked entity into a plain JSON-able mapping of its business fields
and back. Values are normalized so that two reads of the same logical row
compare equal no matter how the driver formatted them: decimals and floats
become canonical fixed-point strings, datetimes become second-precision UTC
ISO strings.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import UUID

from sqlalchemy import Date, DateTime, Numeric, inspect
from sqlalchemy.types import Uuid

Snapshot = Dict[str, Any]

# Technical columns never tracked in snapshots or diffs
TECHNICAL_FIELDS = frozenset({
    "id",
    "created_at",
    "updated_at",
    "deleted_at",
    "created_by_id",
    "updated_by_id",
    "deleted_by_id",
    "transaction_id",
})


def tracked_fields(model, exclude: Iterable[str] = ()) -> Tuple[str, ...]:
    """Column attribute names of ``model`` that belong in a snapshot, in table order"""
    skip = TECHNICAL_FIELDS.union(exclude)
    return tuple(
        attr.key
        for attr in inspect(model).column_attrs
        if attr.key not in skip
    )


def _decimal_text(value: Decimal) -> str:
    if not value.is_finite():
        return str(value)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def normalize_value(value: Any) -> Any:
    """Convert a column value into its comparable, storable form"""
    if isinstance(value, enum.Enum):
        return normalize_value(value.value)
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Decimal):
        return _decimal_text(value)
    if isinstance(value, float):
        return _decimal_text(Decimal(repr(value)))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.replace(microsecond=0).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {str(key): normalize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize_value(item) for item in value]
    return str(value)


def normalize_snapshot(data: Optional[Dict[str, Any]], exclude: Iterable[str] = ()) -> Optional[Snapshot]:
    """Normalize a caller-supplied mapping, dropping technical fields"""
    if data is None:
        return None
    skip = TECHNICAL_FIELDS.union(exclude)
    return {key: normalize_value(value) for key, value in data.items() if key not in skip}


def snapshot(entity, fields: Optional[Iterable[str]] = None) -> Snapshot:
    """Capture the tracked fields of a loaded entity"""
    if fields is None:
        fields = tracked_fields(type(entity))
    return {field: normalize_value(getattr(entity, field)) for field in fields}


def decode_value(model, field: str, value: Any) -> Any:
    """Inverse of normalize_value for a column of ``model``"""
    if value is None:
        return None
    column = inspect(model).columns[field]
    column_type = column.type
    try:
        if isinstance(column_type, Numeric):
            return Decimal(str(value))
        if isinstance(column_type, DateTime):
            return datetime.fromisoformat(value) if isinstance(value, str) else value
        if isinstance(column_type, Date):
            return date.fromisoformat(value) if isinstance(value, str) else value
        if isinstance(column_type, Uuid):
            return UUID(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Cannot decode {model.__name__}.{field} from {value!r}") from e
    return value


def decode_snapshot(model, data: Snapshot, fields: Iterable[str]) -> Dict[str, Any]:
    """Decode the given fields of a snapshot into column values

    Fields missing from ``data`` or unknown to ``model`` are skipped.
    """
    columns = inspect(model).columns
    return {
        field: decode_value(model, field, data[field])
        for field in fields
        if field in data and field in columns
    }
