from __future__ import annotations
import logging
from typing import Optional

import pandas as pd

from . import canon, utils
from .tree import EnergyIndex
from .types import Timestamp

logger = logging.getLogger(__name__)


def to_frame(index: EnergyIndex) -> pd.DataFrame:
    """
    Flatten the index into a DataFrame.

    Index: naive DatetimeIndex 't_start' (normalised wall-clock time)
    Columns: the five value fields

    Rows whose timestamp falls outside the pandas datetime range are left out.
    """
    measurements = list(index)
    rows = [m.values() for m in measurements]
    seconds = [m.linear_time for m in measurements]
    t_start = pd.to_datetime(pd.Series(seconds, dtype="int64"), unit="s", errors="coerce")

    df = pd.DataFrame(rows, columns=canon.VALUE_FIELDS, dtype=float)
    df.index = pd.DatetimeIndex(t_start, name=canon.INDEX_NAME)

    dropped = int(df.index.isna().sum())
    if dropped:
        logger.debug("Left %d out-of-range timestamps out of the frame", dropped)
        df = df[df.index.notna()]
    return df


def filter_range(
    df: pd.DataFrame,
    start: Optional[Timestamp] = None,
    end: Optional[Timestamp] = None,
) -> pd.DataFrame:
    """Rows with start <= t_start <= end; either bound may be omitted."""
    lo = pd.Timestamp(start.to_datetime()) if start is not None else None
    hi = pd.Timestamp(end.to_datetime()) if end is not None else None
    return df.loc[lo:hi] if (lo is not None or hi is not None) else df


def groupby_day(df: pd.DataFrame) -> pd.DataFrame:
    out = (
        df.groupby(pd.Grouper(level=canon.INDEX_NAME, freq="1D"))[canon.VALUE_FIELDS]
        .sum()
        .reset_index()
    )
    out = out.rename(columns={canon.INDEX_NAME: "day"})
    out["day"] = utils.day_label(out["day"])
    return out


def groupby_month(df: pd.DataFrame) -> pd.DataFrame:
    out = (
        df.groupby(pd.Grouper(level=canon.INDEX_NAME, freq="1MS"))[canon.VALUE_FIELDS]
        .sum()
        .reset_index()
    )
    out = out.rename(columns={canon.INDEX_NAME: "month"})
    out["month"] = utils.month_label(out["month"])
    return out


def peaks(df: pd.DataFrame) -> dict[str, dict[str, float | str]]:
    """Largest single reading per field and when it happened."""
    out: dict[str, dict[str, float | str]] = {}
    if df.empty:
        return out
    for col in canon.VALUE_FIELDS:
        pos = int(df[col].to_numpy().argmax())
        out[col] = {
            "value": float(df[col].iloc[pos]),
            "time": df.index[pos].isoformat(),
        }
    return out
