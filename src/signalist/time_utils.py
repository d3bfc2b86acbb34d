"""
Date helpers for news queries and email headers.

All dates are computed in UTC.  The clock used by :func:`now` can be swapped
with :func:`set_clock` so tests (and replays) can pin "today":

    from signalist.time_utils import set_clock, date_range

    set_clock(lambda: datetime(2026, 10, 19, tzinfo=timezone.utc))
    date_range(5)  # ("2026-10-14", "2026-10-19")
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

_clock: Optional[Callable[[], datetime]] = None


def set_clock(clock: Optional[Callable[[], datetime]]) -> None:
    """Install a replacement clock, or restore the wall clock with ``None``."""
    global _clock
    _clock = clock


def now() -> datetime:
    """Current time as an aware UTC datetime."""
    if _clock is not None:
        current = _clock()
        if current.tzinfo is None:
            return current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)
    return datetime.now(timezone.utc)


def date_range(days: int) -> Tuple[str, str]:
    """Return ``(from, to)`` as ``YYYY-MM-DD`` strings covering ``days`` back."""
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")
    to_dt = now()
    from_dt = to_dt - timedelta(days=days)
    return from_dt.strftime("%Y-%m-%d"), to_dt.strftime("%Y-%m-%d")


def formatted_today() -> str:
    """Long-form date for email headers, e.g. ``Monday, October 19, 2026``."""
    today = now()
    return f"{today:%A, %B} {today.day}, {today.year}"
