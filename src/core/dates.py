"""
DailyRoll — Date Calendar.

Every attendance day is identified by a `YYYY-MM-DD` key computed in one
fixed time zone, regardless of where an event was sent from.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

DATE_KEY_FORMAT = "%Y-%m-%d"


def today_key(tz_name: str, now: datetime | None = None) -> str:
    """Return today's date key in the given IANA time zone.

    Args:
        tz_name: e.g. "Asia/Taipei".
        now: Aware datetime to convert instead of the current time (tests).
    """
    tz = ZoneInfo(tz_name)
    current = now.astimezone(tz) if now is not None else datetime.now(tz)
    return current.date().isoformat()


def last_n_days(end_key: str, days: int) -> list[str]:
    """Return `days` date keys ending at (and including) `end_key`, ascending."""
    if days <= 0:
        return []
    end = date.fromisoformat(end_key)
    return [(end - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def month_days(month_token: str) -> list[str]:
    """Return every date key of a `YYYY-MM` month, ascending.

    Raises:
        ValueError: if the token is not a valid year/month.
    """
    year_s, _, month_s = month_token.partition("-")
    year, month = int(year_s), int(month_s)
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month_token!r}")
    _, length = calendar.monthrange(year, month)
    return [date(year, month, day).isoformat() for day in range(1, length + 1)]


def is_valid_month(month_token: str) -> bool:
    """True if `month_token` names a real calendar month."""
    try:
        month_days(month_token)
    except ValueError:
        return False
    return True
