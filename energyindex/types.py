from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from functools import cached_property, total_ordering
from typing import List, TypedDict

import pandas as pd
from pydantic import BaseModel

from . import canon, utils

_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class Timestamp:
    """
    Wall-clock calendar fields, compared as encoded (no timezone).

    Defaults describe an unset timestamp (year 1900, day 0); the fields are
    never validated here, that belongs to the importer.
    """

    year: int = canon.UNSET_YEAR
    month: int = 1
    day: int = 0
    hour: int = 0
    minute: int = 0
    second: int = 0

    @cached_property
    def linear_time(self) -> int:
        return utils.linear_seconds(
            self.year, self.month, self.day, self.hour, self.minute, self.second
        )

    @property
    def bucket(self) -> int:
        return utils.bucket_index(self.hour)

    @classmethod
    def from_datetime(cls, dt: datetime | pd.Timestamp) -> "Timestamp":
        dt = utils.naive_wall_clock(dt)
        return cls(dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)

    @classmethod
    def coerce(cls, value: "Timestamp | datetime | pd.Timestamp | str") -> "Timestamp":
        """Accept the range-bound shapes callers use and return a Timestamp."""
        if isinstance(value, Timestamp):
            return value
        if isinstance(value, str):
            return cls.from_datetime(utils.parse_datetime(value))
        if isinstance(value, (datetime, pd.Timestamp)):
            return cls.from_datetime(value)
        raise TypeError(f"Cannot interpret {type(value).__name__} as a timestamp.")

    def to_datetime(self) -> datetime:
        """Normalised datetime; raises OverflowError outside datetime's range."""
        return _EPOCH + timedelta(seconds=self.linear_time)

    def __str__(self) -> str:
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
            f"T{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )


@total_ordering
@dataclass(frozen=True, eq=False)
class Measurement:
    """
    One energy reading.

    Identity is the timestamp's linear time: two measurements at the same
    instant compare equal whatever their values.
    """

    timestamp: Timestamp = field(default_factory=Timestamp)
    autoconsumption: float = 0.0
    export_energy: float = 0.0
    import_energy: float = 0.0
    consumption: float = 0.0
    production: float = 0.0

    @property
    def linear_time(self) -> int:
        return self.timestamp.linear_time

    @classmethod
    def at(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        **values: float,
    ) -> "Measurement":
        return cls(Timestamp(year, month, day, hour, minute, second), **values)

    def values(self) -> dict[str, float]:
        return {name: float(getattr(self, name)) for name in canon.VALUE_FIELDS}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Measurement):
            return NotImplemented
        return self.linear_time == other.linear_time

    def __lt__(self, other: "Measurement") -> bool:
        if not isinstance(other, Measurement):
            return NotImplemented
        return self.linear_time < other.linear_time

    def __hash__(self) -> int:
        return hash(self.linear_time)


class ValueType(IntEnum):
    """Which numeric field of a Measurement an aggregate reads."""

    AUTOCONSUMPTION = 1
    EXPORT = 2
    IMPORT = 3
    CONSUMPTION = 4
    PRODUCTION = 5


###
### QUERY RESULTS
###


class SearchMatch(BaseModel):
    """An in-range record whose selected value hit the tolerance window."""

    value: float
    year: int
    month: int
    day: int
    hour: int
    minute: int

    def describe(self) -> str:
        return f"{self.value:g} {canon.UNIT} on {self.day:02d}.{self.month:02d}"


class Comparison(BaseModel):
    period1: float
    period2: float
    difference: float  # period1 - period2


###
### IMPORT
###


class LineError(BaseModel):
    line_no: int  # 1-based, header is line 1
    reason: str
    line: str


class ImportReport(BaseModel):
    valid: int = 0
    invalid: int = 0
    errors: List[LineError] = []

    @property
    def total(self) -> int:
        return self.valid + self.invalid


###
### SUMMARY
###


class SummaryMeta(TypedDict):
    count: int
    start: str
    end: str
    years: int
    buckets: int


class SummaryPayload(TypedDict):
    meta: SummaryMeta
    totals: dict[str, float]
    per_day_avg: dict[str, float]
    days: List[dict[str, float | str]]
    months: List[dict[str, float | str]]
    peaks: dict[str, dict[str, float | str]]
