"""Datetime helpers shared by services and exports."""

from __future__ import annotations

from datetime import datetime, timezone


def as_utc(value: datetime | None) -> datetime | None:
    """Return an aware UTC datetime; naive values are taken to be UTC already.

    SQLite drops tzinfo on read, PostgreSQL does not.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
