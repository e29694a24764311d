"""Time-related helpers.

This module centralizes helpers for obtaining and formatting timestamps in
UTC.  Asset creation dates cross the bridge as ISO 8601 strings, so every
serializer goes through :func:`isoformat_utc` to keep the format identical
across operations.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as an aware ``datetime`` instance."""

    return datetime.now(timezone.utc)


def utc_now_isoformat() -> str:
    """Return the current UTC time in ISO 8601 format ending with ``Z``."""

    return utc_now().isoformat().replace("+00:00", "Z")


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime.

    SQLite drops tzinfo on round-trip, so naive values are treated as UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    """Format *value* as ``YYYY-MM-DDTHH:MM:SSZ`` (second precision)."""

    return ensure_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")
