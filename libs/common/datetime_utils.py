"""Datetime utilities for timezone-aware timestamps and calendar keys.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

Attendance is keyed by ISO date and dues by the first day of the month, so
the calendar helpers below are the only place those keys are computed.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

SUNDAY = 6


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def today() -> date:
    return utc_now().date()


def month_start(day: date) -> date:
    """Return the dues key for the month containing ``day``."""
    return day.replace(day=1)


def year_months(year: int) -> list[date]:
    """Return the twelve month keys of ``year``."""
    return [date(year, month, 1) for month in range(1, 13)]


def nearest_sunday(day: Optional[date] = None) -> date:
    """Return ``day`` if it is a Sunday, otherwise the following Sunday."""
    day = day or today()
    return day + timedelta(days=(SUNDAY - day.weekday()) % 7)
