"""Time helpers; timestamps are stored and compared in UTC."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_window(now: datetime) -> tuple[datetime, datetime]:
    """Return the UTC calendar-day boundaries containing ``now``.

    Orders are stored with UTC timestamps, so all "same day" filtering must
    use UTC boundaries as well.
    """
    start = as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start, end
