# energyindex/utils.py
from __future__ import annotations
from datetime import datetime

import pandas as pd

from . import canon

SECONDS_PER_DAY = 86_400


def days_from_civil(year: int, month: int, day: int) -> int:
    """
    Days since 1970-01-01 in the proleptic Gregorian calendar.

    Total over all integers: months outside 1..12 carry into the year and
    days outside the month carry into neighbouring months (day 0 is the last
    day of the previous month), the same normalisation mktime applies.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1

    # Shift the year to start in March so the leap day is last
    if month <= 2:
        year -= 1
    era = year // 400
    yoe = year - era * 400
    doy = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146_097 + doe - 719_468


def linear_seconds(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
) -> int:
    """Wall-clock calendar fields -> seconds since 1970-01-01T00:00:00 (no tz)."""
    days = days_from_civil(year, month, day)
    return days * SECONDS_PER_DAY + hour * 3600 + minute * 60 + second


def bucket_index(hour: int) -> int:
    return hour // canon.BUCKET_HOURS


def parse_datetime(value: str) -> datetime:
    """
    Parse a user supplied date/time.

    Accepts ISO-8601 ('2021-02-01', '2021-02-01T00:15', '2021-02-01 00:15')
    and the import format ('01.02.2021 00:15').
    """
    s = value.strip()
    for fmt in ("ISO8601", canon.DEFAULT_TIMESTAMP_FORMAT, "%d.%m.%Y"):
        ts = pd.to_datetime(s, format=fmt, errors="coerce")
        if not pd.isna(ts):
            return ts.to_pydatetime()
    raise ValueError(
        f"Unrecognised date/time {value!r}. "
        "Expected YYYY-MM-DD[THH:MM] or DD.MM.YYYY [HH:MM]."
    )


def naive_wall_clock(ts: datetime | pd.Timestamp) -> datetime:
    """Drop tz info while keeping the wall-clock fields as encoded."""
    if isinstance(ts, pd.Timestamp):
        ts = ts.to_pydatetime()
    return ts.replace(tzinfo=None)


def month_label(ts: pd.Series) -> pd.Series:
    """Return YYYY-MM month labels from a datetime-like Series."""
    return ts.dt.strftime("%Y-%m")


def day_label(ts: pd.Series) -> pd.Series:
    """Return YYYY-MM-DD day labels from a datetime-like Series."""
    return ts.dt.strftime("%Y-%m-%d")
