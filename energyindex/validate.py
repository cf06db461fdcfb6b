from __future__ import annotations
import numpy as np
import pandas as pd

from . import canon, exceptions

INCOMPLETE = "incomplete line"
BAD_TIMESTAMP = "invalid timestamp"
BAD_NUMBER = "invalid number"
NEGATIVE = "negative value"
DUPLICATE = "duplicate timestamp"


def assert_values_frame(df: pd.DataFrame) -> None:
    for col in canon.VALUE_FIELDS:
        if col not in df.columns:
            raise exceptions.IngestError(f"Missing required column '{col}'.")
    if not isinstance(df.index, pd.DatetimeIndex):
        raise exceptions.IngestError("Index must be a DatetimeIndex.")


def row_problems(
    text: pd.DataFrame, ts: pd.Series, values: pd.DataFrame
) -> pd.Series:
    """
    First problem found per row, '' when the row is usable.

    text: raw string fields ('' when missing)
    ts: parsed timestamps (NaT when unparsable)
    values: parsed numbers (NaN when unparsable)
    """
    missing = (text.apply(lambda c: c.str.strip()) == "").any(axis=1)
    bad_number = values.isna().any(axis=1) | ~np.isfinite(values.fillna(0.0)).all(
        axis=1
    )
    negative = (values.fillna(0.0) < 0).any(axis=1)

    # order matters: first matching condition wins
    reasons = np.select(
        [missing.to_numpy(), ts.isna().to_numpy(), bad_number.to_numpy(), negative.to_numpy()],
        [INCOMPLETE, BAD_TIMESTAMP, BAD_NUMBER, NEGATIVE],
        default="",
    )
    return pd.Series(reasons, index=text.index, dtype=object)


def assert_sorted(df: pd.DataFrame) -> None:
    if not df.index.is_monotonic_increasing:
        raise exceptions.EnergyIndexError("Index must be sorted ascending.")
