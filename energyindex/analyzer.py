"""
Range-bounded aggregates over an EnergyIndex.

Every query is a full chronological cursor scan filtered by an inclusive
[start, end] window in linear time. Nothing here mutates the index.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterator, Optional, Union

import pandas as pd

from . import canon
from .tree import EnergyIndex
from .types import Comparison, Measurement, SearchMatch, Timestamp, ValueType

logger = logging.getLogger(__name__)

Selector = Callable[[Measurement], float]
SelectorLike = Union[ValueType, int, Selector]
Bound = Union[Timestamp, datetime, pd.Timestamp, str]
Reporter = Callable[[str], None]

_FIELDS: dict[int, str] = {
    ValueType.AUTOCONSUMPTION: "autoconsumption",
    ValueType.EXPORT: "export_energy",
    ValueType.IMPORT: "import_energy",
    ValueType.CONSUMPTION: "consumption",
    ValueType.PRODUCTION: "production",
}


def select(kind: ValueType | int, m: Measurement) -> float:
    """Read one numeric field; an unknown kind reads as 0.0."""
    name = _FIELDS.get(kind)
    if name is None:
        return 0.0
    return float(getattr(m, name))


def get_selector(kind: ValueType | int) -> Selector:
    name = _FIELDS.get(kind)
    if name is None:
        return lambda m: 0.0
    return lambda m: float(getattr(m, name))


def _as_selector(selector: SelectorLike) -> Selector:
    if callable(selector):
        return selector
    return get_selector(selector)


def _window(start: Bound, end: Bound) -> tuple[int, int]:
    return Timestamp.coerce(start).linear_time, Timestamp.coerce(end).linear_time


def in_range(index: EnergyIndex, start: Bound, end: Bound) -> Iterator[Measurement]:
    """Yield the measurements with start <= t <= end, in chronological order."""
    lo, hi = _window(start, end)
    cur, stop = index.begin(), index.end()
    while cur != stop:
        m = cur.current
        if lo <= m.linear_time <= hi:
            yield m
        cur.advance()


def calculate_sum(
    index: EnergyIndex, start: Bound, end: Bound, selector: SelectorLike
) -> float:
    pick = _as_selector(selector)
    total = 0.0
    for m in in_range(index, start, end):
        total += pick(m)
    return total


def calculate_avg(
    index: EnergyIndex, start: Bound, end: Bound, selector: SelectorLike
) -> float:
    """Mean of the selected field over the window; 0.0 when nothing matches."""
    pick = _as_selector(selector)
    total = 0.0
    n = 0
    for m in in_range(index, start, end):
        total += pick(m)
        n += 1
    return (total / n) if n > 0 else 0.0


def count(index: EnergyIndex, start: Bound, end: Bound) -> int:
    return sum(1 for _ in in_range(index, start, end))


def find_matches(
    index: EnergyIndex,
    kind: ValueType | int,
    target: float,
    tolerance: float,
    start: Bound,
    end: Bound,
) -> list[SearchMatch]:
    """
    In-range records whose selected value lies in
    [target - tolerance, target + tolerance], both ends inclusive.

    A negative tolerance gives an empty window and so matches nothing.
    """
    lo, hi = target - tolerance, target + tolerance
    out: list[SearchMatch] = []
    for m in in_range(index, start, end):
        value = select(kind, m)
        if lo <= value <= hi:
            ts = m.timestamp
            out.append(
                SearchMatch(
                    value=value,
                    year=ts.year,
                    month=ts.month,
                    day=ts.day,
                    hour=ts.hour,
                    minute=ts.minute,
                )
            )
    return out


def search(
    index: EnergyIndex,
    kind: ValueType | int,
    target: float,
    tolerance: float,
    start: Bound,
    end: Bound,
    *,
    report: Optional[Reporter] = print,
) -> list[SearchMatch]:
    """Report one line per match (value and day/month) and return the matches."""
    if tolerance < 0:
        logger.info("Negative tolerance %s: search window is empty", tolerance)
    matches = find_matches(index, kind, target, tolerance, start, end)
    if report is not None:
        for match in matches:
            report(f"Found: {match.describe()}")
    return matches


def compare(
    index: EnergyIndex,
    start1: Bound,
    end1: Bound,
    start2: Bound,
    end2: Bound,
    kind: SelectorLike,
    *,
    report: Optional[Reporter] = print,
) -> Comparison:
    """
    Sum two periods independently. The periods may overlap; difference is
    period1 - period2.
    """
    p1 = calculate_sum(index, start1, end1, kind)
    p2 = calculate_sum(index, start2, end2, kind)
    result = Comparison(period1=p1, period2=p2, difference=p1 - p2)
    if report is not None:
        report(f"Period 1: {p1:g} {canon.UNIT}")
        report(f"Period 2: {p2:g} {canon.UNIT}")
        report(f"Difference: {result.difference:g} {canon.UNIT}")
    return result
