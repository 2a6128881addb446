"""
Date-range resolution for analytics and report filters.

Turns a filter keyword (all, today, week, month, custom) into a concrete
[start, end] window in naive local time.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from backend.app.core.exceptions import InvalidDateRangeError

FILTER_ALL = "all"
FILTER_TODAY = "today"
FILTER_WEEK = "week"
FILTER_MONTH = "month"
FILTER_CUSTOM = "custom"


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, value: Optional[datetime]) -> bool:
        return value is not None and self.start <= value <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Most recent Sunday at midnight (the current day if it is a Sunday)."""
    days_since_sunday = (moment.weekday() + 1) % 7
    return start_of_day(moment - timedelta(days=days_since_sunday))


def _parse_bound(value: Optional[str], name: str) -> datetime:
    if not value:
        raise InvalidDateRangeError(
            f"{name} is required for a custom date range",
            details={"field": name}
        )
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise InvalidDateRangeError(
            f"{name} must be an ISO date",
            details={"field": name, "value": value}
        )
    # Stored timestamps are naive local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def build_date_range(
    filter: Optional[str],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[DateRange]:
    """
    Resolve a filter keyword to a date window.

    Args:
        filter: one of all, today, week, month, custom
        start_date: ISO start bound, only read for custom
        end_date: ISO end bound, only read for custom
        now: reference time, defaults to the current local time

    Returns:
        DateRange, or None when no date filtering applies (all or unknown keywords)

    Raises:
        InvalidDateRangeError: a custom bound is missing or not an ISO date

    Custom ranges are returned as given; start after end is not rejected.
    """
    now = now or datetime.now()

    if filter == FILTER_TODAY:
        return DateRange(start=start_of_day(now), end=now)
    if filter == FILTER_WEEK:
        return DateRange(start=start_of_week(now), end=now)
    if filter == FILTER_MONTH:
        return DateRange(start=start_of_day(now.replace(day=1)), end=now)
    if filter == FILTER_CUSTOM:
        return DateRange(
            start=_parse_bound(start_date, "start_date"),
            end=_parse_bound(end_date, "end_date"),
        )
    return None
