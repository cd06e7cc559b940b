from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

from dateutil import parser as dtparser


def parse_ts(ts: str) -> datetime:
    """Parse ISO-8601 timestamps and normalize to UTC."""
    dt = dtparser.isoparse(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_epoch_ms(ms: Union[int, float]) -> datetime:
    try:
        return datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError) as e:
        raise ValueError("timestamp out of range") from e


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def normalize_ts(value: Union[int, float, str, datetime]) -> datetime:
    """Accept epoch milliseconds, an ISO string or a datetime; return an aware UTC datetime."""
    if isinstance(value, bool):
        raise ValueError("timestamp must be epoch milliseconds or an ISO-8601 string")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        return from_epoch_ms(value)
    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return from_epoch_ms(int(s))
        return parse_ts(s)
    raise ValueError("timestamp must be epoch milliseconds or an ISO-8601 string")


def to_iso_utc(dt: datetime) -> str:
    """Serialize datetime to an ISO string with Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
