from __future__ import annotations
import logging
from os import PathLike
from pathlib import Path
from typing import IO

import pandas as pd

from . import canon, exceptions, validate
from .tree import EnergyIndex
from .types import ImportReport, LineError, Measurement, Timestamp

logger = logging.getLogger(__name__)

RAW_COLUMNS: list[str] = ["timestamp", *canon.VALUE_FIELDS]

# header is line 1, first data row is line 2
_FIRST_DATA_LINE = 2


def read_raw(
    source: str | PathLike | IO[str], *, delimiter: str = canon.DEFAULT_DELIMITER
) -> pd.DataFrame:
    """
    Split the delimited export into string fields, one row per data line.

    The header line is skipped, surrounding quotes are stripped, blank and
    short lines are kept (missing fields become '') and trailing extra
    fields are dropped. The untouched text of each line is kept in 'line'.
    """
    try:
        if hasattr(source, "read"):
            text = source.read()
        else:
            text = Path(source).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise exceptions.IngestError(f"Cannot read {source}: {exc}") from exc

    lines = text.splitlines()[1:]
    if not lines:
        return pd.DataFrame(columns=[*RAW_COLUMNS, "line"], dtype=object)

    s = pd.Series(lines, dtype=object)
    parts = (
        s.str.split(delimiter, expand=True, regex=False)
        .reindex(columns=range(len(RAW_COLUMNS)))
        .fillna("")
        .astype(str)
    )
    parts.columns = RAW_COLUMNS
    parts = parts.apply(lambda c: c.str.strip().str.strip('"').str.strip())
    parts["line"] = s
    parts.index = pd.RangeIndex(
        _FIRST_DATA_LINE, _FIRST_DATA_LINE + len(parts), name="line_no"
    )
    return parts


def parse_raw(
    raw: pd.DataFrame, *, timestamp_format: str = canon.DEFAULT_TIMESTAMP_FORMAT
) -> tuple[pd.Series, pd.DataFrame, pd.Series]:
    """Return (timestamps, values, problems) aligned on raw's index."""
    text = raw[RAW_COLUMNS].astype(str)
    ts = pd.to_datetime(text["timestamp"], format=timestamp_format, errors="coerce")
    # decimal comma or point
    values = text[canon.VALUE_FIELDS].apply(
        lambda c: pd.to_numeric(c.str.replace(",", ".", regex=False), errors="coerce")
    )
    problems = validate.row_problems(text, ts, values)
    return ts, values, problems


def load_csv(
    index: EnergyIndex,
    source: str | PathLike | IO[str],
    *,
    delimiter: str = canon.DEFAULT_DELIMITER,
    timestamp_format: str = canon.DEFAULT_TIMESTAMP_FORMAT,
) -> ImportReport:
    """
    Parse a delimited export and insert every usable row into the index.

    Rows are validated as a whole frame first, then inserted in file order
    so that the first of two rows sharing a timestamp wins.
    """
    raw = read_raw(source, delimiter=delimiter)
    report = ImportReport()
    if raw.empty:
        logger.info("Loaded 0, invalid 0")
        return report

    ts, values, problems = parse_raw(raw, timestamp_format=timestamp_format)
    for line_no in raw.index:
        line = raw.at[line_no, "line"]
        reason = problems.loc[line_no]
        if not reason:
            m = Measurement(
                Timestamp.from_datetime(ts.loc[line_no]),
                **{k: float(v) for k, v in values.loc[line_no].items()},
            )
            if index.insert(m):
                report.valid += 1
                logger.debug("OK: %s", line)
                continue
            reason = validate.DUPLICATE

        report.invalid += 1
        report.errors.append(LineError(line_no=int(line_no), reason=reason, line=line))
        logger.warning("ERR: %s | %s", reason, line)

    logger.info("Loaded %d, invalid %d", report.valid, report.invalid)
    return report


def from_dataframe(index: EnergyIndex, df: pd.DataFrame) -> ImportReport:
    """
    Insert rows of an already parsed frame.

    Expects a DatetimeIndex (or a 't_start'/'timestamp' column) and the five
    value columns. Timezone info, if any, is dropped keeping wall-clock time.
    """
    new = df.copy()
    if not isinstance(new.index, pd.DatetimeIndex):
        tcol = next((c for c in (canon.INDEX_NAME, "timestamp") if c in new.columns), None)
        if tcol is None:
            raise exceptions.IngestError(
                "No timestamp column found and index is not datetime."
            )
        new.index = pd.DatetimeIndex(pd.to_datetime(new.pop(tcol), errors="coerce"))
    validate.assert_values_frame(new)

    report = ImportReport()
    values = new[canon.VALUE_FIELDS].astype(float)
    for pos, (t, row) in enumerate(values.iterrows()):
        line = f"{t} {row.to_dict()}"
        if pd.isna(t):
            reason = validate.BAD_TIMESTAMP
        elif (row < 0).any() or row.isna().any():
            reason = validate.NEGATIVE if (row < 0).any() else validate.BAD_NUMBER
        elif index.insert(Measurement(Timestamp.from_datetime(t), **row.to_dict())):
            report.valid += 1
            continue
        else:
            reason = validate.DUPLICATE
        report.invalid += 1
        report.errors.append(LineError(line_no=pos + 1, reason=reason, line=line))
        logger.warning("ERR: %s | %s", reason, line)

    logger.info("Loaded %d, invalid %d", report.valid, report.invalid)
    return report
