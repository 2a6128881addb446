"""
Unit tests for date filter resolution.
"""

import pytest
from datetime import datetime, timezone, timedelta

from backend.app.core.exceptions import InvalidDateRangeError
from backend.app.services.date_range import build_date_range, start_of_week, DateRange

# Wednesday
NOW = datetime(2024, 5, 15, 14, 30, 45)


def test_all_and_unknown_mean_no_window():
    assert build_date_range("all", now=NOW) is None
    assert build_date_range(None, now=NOW) is None
    assert build_date_range("quarter", now=NOW) is None


def test_today_starts_at_midnight():
    window = build_date_range("today", now=NOW)
    assert window.start == datetime(2024, 5, 15)
    assert window.end == NOW


def test_week_starts_on_sunday():
    window = build_date_range("week", now=NOW)
    assert window.start == datetime(2024, 5, 12)
    assert window.start.weekday() == 6
    assert window.end == NOW


def test_week_on_a_sunday_starts_that_day():
    sunday = datetime(2024, 5, 19, 8, 0)
    assert start_of_week(sunday) == datetime(2024, 5, 19)


def test_month_starts_on_the_first():
    window = build_date_range("month", now=NOW)
    assert window.start == datetime(2024, 5, 1)
    assert window.end == NOW


def test_start_never_after_end_for_keywords():
    for keyword in ("today", "week", "month"):
        window = build_date_range(keyword, now=NOW)
        assert window.start <= window.end


def test_custom_range_parses_iso_bounds():
    window = build_date_range("custom", "2024-01-01", "2024-01-31T23:59:59", now=NOW)
    assert window == DateRange(datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59, 59))
    assert window.contains(datetime(2024, 1, 15))
    assert not window.contains(datetime(2024, 2, 1))
    assert not window.contains(None)


def test_custom_range_is_not_reordered():
    window = build_date_range("custom", "2024-02-01", "2024-01-01", now=NOW)
    assert window.start > window.end


def test_custom_timezone_aware_bounds_become_naive():
    window = build_date_range("custom", "2024-01-01T00:00:00+00:00", "2024-01-02T00:00:00+00:00")
    assert window.start.tzinfo is None
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert window.start == expected
    assert window.end - window.start == timedelta(days=1)


@pytest.mark.parametrize("start, end", [
    (None, "2024-01-31"),
    ("2024-01-01", None),
    ("", ""),
])
def test_custom_range_requires_both_bounds(start, end):
    with pytest.raises(InvalidDateRangeError) as exc_info:
        build_date_range("custom", start, end, now=NOW)
    assert exc_info.value.status_code == 400


def test_custom_range_rejects_garbage():
    with pytest.raises(InvalidDateRangeError) as exc_info:
        build_date_range("custom", "yesterday", "2024-01-31", now=NOW)
    assert exc_info.value.details["field"] == "start_date"


def test_to_dict_uses_iso_strings():
    window = build_date_range("today", now=NOW)
    assert window.to_dict() == {"start": "2024-05-15T00:00:00", "end": "2024-05-15T14:30:45"}
