"""Utility helpers shared across modules."""

from __future__ import annotations

from datetime import UTC, datetime
from hashlib import sha256


def parse_iso_datetime(value: str) -> datetime:
    """Convert ISO strings (with trailing Z or an offset) into aware UTC datetimes."""
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def ensure_utc(dt: datetime) -> datetime:
    """Force a datetime into UTC without altering instant."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO string with a trailing Z."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def sha256_hex(payload: bytes) -> str:
    """Convenience wrapper for hex digests."""
    return sha256(payload).hexdigest()
