"""Conversions between SurrealDB records and domain values"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID


def parse_record_id(record_id) -> UUID:
    """Extract UUID from SurrealDB record ID (RecordID object or string)"""
    # Handle RecordID object from surrealdb SDK
    if hasattr(record_id, "id") and hasattr(record_id, "table_name"):
        return UUID(str(record_id.id))
    # Handle dict with 'id' key
    if isinstance(record_id, dict):
        return parse_record_id(record_id.get("id", ""))
    # Handle string format 'table:uuid' or 'table:⟨uuid⟩'
    if isinstance(record_id, str) and ":" in record_id:
        uuid_part = record_id.split(":", 1)[1]
        uuid_part = uuid_part.strip("⟨⟩<>`")
        return UUID(uuid_part)
    return UUID(str(record_id))


def parse_uuid_list(values) -> list[UUID]:
    """Reference arrays are stored as UUID strings"""
    return [UUID(str(v)) for v in values or []]


def uuid_strings(ids) -> list[str]:
    return [str(i) for i in ids]


def ensure_tz(dt: datetime) -> datetime:
    """Ensure datetime has timezone for SurrealDB"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_datetime(value: Any) -> datetime:
    """Naive UTC datetime from whatever the SDK returned"""
    if value is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        # SDK Datetime wrappers expose an ISO string via str()
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def first(result) -> Optional[dict]:
    """First record of a query result (list of records or a single record)"""
    if not result:
        return None
    if isinstance(result, dict):
        return result
    return result[0]


def rows(result) -> list[dict]:
    if not result:
        return []
    if isinstance(result, dict):
        return [result]
    return list(result)
