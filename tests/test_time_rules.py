from datetime import date, datetime, time

import pytest

from timekeeper.core import time_rules
from timekeeper.core.config import settings
from timekeeper.core.time_rules import (
    hours_between,
    intervals_overlap,
    local_date,
    minutes_between,
    range_bounds,
    to_minutes,
)


def test_to_minutes() -> None:
    assert to_minutes(time(0, 0)) == 0
    assert to_minutes(time(9, 30)) == 570
    assert to_minutes(time(23, 59)) == 1439


@pytest.mark.parametrize(
    "first, second, expected",
    [
        # Contained
        ((time(9), time(17)), (time(10), time(12)), True),
        # Partial overlap on either side
        ((time(9), time(12)), (time(11), time(14)), True),
        ((time(11), time(14)), (time(9), time(12)), True),
        # Identical
        ((time(9), time(12)), (time(9), time(12)), True),
        # Adjacent windows share only an endpoint
        ((time(9), time(12)), (time(12), time(14)), False),
        ((time(12), time(14)), (time(9), time(12)), False),
        # Disjoint
        ((time(6), time(8)), (time(9), time(12)), False),
    ],
)
def test_intervals_overlap(first, second, expected) -> None:
    assert intervals_overlap(*first, *second) is expected
    assert intervals_overlap(*second, *first) is expected


def test_durations() -> None:
    start = datetime(2024, 6, 10, 9, 0)
    end = datetime(2024, 6, 10, 16, 55, 59)
    assert minutes_between(start, end) == 475
    assert hours_between(start, datetime(2024, 6, 10, 10, 30)) == 1.5


def test_range_bounds_is_inclusive_of_end_date() -> None:
    lower, upper = range_bounds(date(2024, 6, 1), date(2024, 6, 3))
    assert lower == datetime(2024, 6, 1)
    assert upper == datetime(2024, 6, 4)
    assert range_bounds(None, None) == (None, None)


def test_calendar_days_follow_business_timezone(monkeypatch) -> None:
    monkeypatch.setattr(settings, "timezone", "Asia/Kolkata")
    # 20:00 UTC is 01:30 the next day in IST
    assert local_date(datetime(2024, 6, 10, 20, 0)) == date(2024, 6, 11)
    assert time_rules.local_day_start(date(2024, 6, 11)) == datetime(2024, 6, 10, 18, 30)
    assert time_rules.today(datetime(2024, 6, 10, 20, 0)) == date(2024, 6, 11)
