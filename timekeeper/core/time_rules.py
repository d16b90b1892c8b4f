"""Clock and calendar helpers.

Timestamps are persisted as naive UTC. Calendar days (today, daily buckets,
days present) are taken in the business timezone from settings.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

from timekeeper.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def business_tz():
    return pytz.timezone(settings.timezone)


def local_date(ts: datetime) -> date:
    """Calendar date of a naive UTC timestamp in the business timezone."""
    return pytz.utc.localize(ts).astimezone(business_tz()).date()


def local_day_start(day: date) -> datetime:
    """Naive UTC instant at which ``day`` starts in the business timezone."""
    local_midnight = business_tz().localize(datetime.combine(day, time.min))
    return local_midnight.astimezone(pytz.utc).replace(tzinfo=None)


def today(now: Optional[datetime] = None) -> date:
    return local_date(now or utcnow())


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open overlap test on minute-of-day: [s1, e1) and [s2, e2)."""
    s1, e1 = to_minutes(start1), to_minutes(end1)
    s2, e2 = to_minutes(start2), to_minutes(end2)
    return s1 < e2 and e1 > s2


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def range_bounds(
    start_date: Optional[date], end_date: Optional[date]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive calendar range -> [start, end) naive UTC bounds."""
    lower = local_day_start(start_date) if start_date else None
    upper = local_day_start(end_date + timedelta(days=1)) if end_date else None
    return lower, upper
