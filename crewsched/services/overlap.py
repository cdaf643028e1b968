"""Overlap predicates for schedule intervals.

Two granularities coexist and are kept apart on purpose:

* ``instant_overlap`` compares exact timestamps. Intervals that only touch
  (one ends exactly when the other starts) do not overlap. Conflict
  detection uses this.
* ``day_overlap`` compares whole calendar days. Two multi-day events that
  touch at a boundary share that calendar day, so they DO overlap here. The
  availability calendar uses this granularity.

A crew member booked on back-to-back events therefore shows no conflict but
still shows the shared day as booked. That mismatch is intrinsic to the two
views and is not reconciled.
"""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from dateutil.rrule import DAILY, rrule


def instant_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Open-interval overlap: ``a_start < b_end and a_end > b_start``."""
    return a_start < b_end and a_end > b_start


def calendar_date(ts: datetime, tz: str | None = None) -> date:
    """Calendar date of *ts*, optionally after converting it into zone *tz*."""
    if tz is None:
        return ts.date()
    return ts.astimezone(ZoneInfo(tz)).date()


def day_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
    tz: str | None = None,
) -> bool:
    """True when the inclusive calendar-day spans of A and B share a day."""
    a_first, a_last = calendar_date(a_start, tz), calendar_date(a_end, tz)
    b_first, b_last = calendar_date(b_start, tz), calendar_date(b_end, tz)
    return a_first <= b_last and b_first <= a_last


def booked_days(start: datetime, end: datetime, tz: str | None = None) -> list[date]:
    """Every calendar day from *start*'s date to *end*'s date, inclusive.

    Time of day is ignored: an event running 23:00 to 01:00 books two days.
    """
    first, last = calendar_date(start, tz), calendar_date(end, tz)
    rule = rrule(
        DAILY,
        dtstart=datetime.combine(first, time.min),
        until=datetime.combine(last, time.min),
    )
    return [dt.date() for dt in rule]


def day_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def booked_day_keys(start: datetime, end: datetime, tz: str | None = None) -> list[str]:
    """``booked_days`` rendered as ``YYYY-MM-DD`` keys."""
    return [day_key(d) for d in booked_days(start, end, tz)]
