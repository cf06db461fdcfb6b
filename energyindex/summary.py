from __future__ import annotations
import pandas as pd
from typing import cast

from . import canon, transform
from .tree import EnergyIndex
from .types import SummaryPayload


def summarise(index: EnergyIndex) -> SummaryPayload:
    df = transform.to_frame(index)

    idx = pd.DatetimeIndex(df.index)
    start = idx.min() if len(idx) else None
    end = idx.max() if len(idx) else None

    # days that actually carry readings
    days_covered = int(idx.normalize().nunique()) if len(idx) else 0

    totals = {col: float(df[col].sum()) for col in canon.VALUE_FIELDS}
    per_day_avg = {
        col: (totals[col] / days_covered) if days_covered else 0.0
        for col in canon.VALUE_FIELDS
    }

    days_df = transform.groupby_day(df) if not df.empty else pd.DataFrame()
    months_df = transform.groupby_month(df) if not df.empty else pd.DataFrame()

    # groupby with a 1D grouper fills calendar gaps; keep days with readings only
    if not days_df.empty:
        days_df = days_df[
            days_df["day"].isin(idx.normalize().strftime("%Y-%m-%d"))
        ].reset_index(drop=True)

    payload: SummaryPayload = cast(
        SummaryPayload,
        {
            "meta": {
                "count": len(index),
                "start": start.isoformat() if start is not None else "",
                "end": end.isoformat() if end is not None else "",
                "years": len(index.years()),
                "buckets": index.bucket_count(),
            },
            "totals": totals,
            "per_day_avg": per_day_avg,
            "days": days_df.to_dict(orient="records") if not days_df.empty else [],
            "months": (
                months_df.to_dict(orient="records") if not months_df.empty else []
            ),
            "peaks": transform.peaks(df),
        },
    )
    return payload
