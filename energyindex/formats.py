"""
Binary persistence for an EnergyIndex.

Layout: a flat run of fixed-width little-endian records, no header and no
length prefix; the file ends where the last record ends.

    year, month, day, hour, minute, second   int32 x 6
    autoconsumption, export_energy,
    import_energy, consumption, production   float64 x 5
"""
from __future__ import annotations
import logging
from os import PathLike
from pathlib import Path

import numpy as np

from . import canon, exceptions
from .tree import EnergyIndex
from .types import Measurement, Timestamp

logger = logging.getLogger(__name__)

RECORD_DTYPE = np.dtype(
    [(name, "<i4") for name in canon.CALENDAR_FIELDS]
    + [(name, "<f8") for name in canon.VALUE_FIELDS]
)
RECORD_SIZE: int = RECORD_DTYPE.itemsize  # 64


def to_records(index: EnergyIndex) -> np.ndarray:
    """Structured array of every measurement, in cursor order."""
    out = np.zeros(len(index), dtype=RECORD_DTYPE)
    for i, m in enumerate(index):
        ts = m.timestamp
        out[i] = (
            ts.year,
            ts.month,
            ts.day,
            ts.hour,
            ts.minute,
            ts.second,
            *m.values().values(),
        )
    return out


def from_records(records: np.ndarray) -> list[Measurement]:
    out: list[Measurement] = []
    for rec in records:
        ts = Timestamp(*(int(rec[name]) for name in canon.CALENDAR_FIELDS))
        out.append(
            Measurement(ts, **{name: float(rec[name]) for name in canon.VALUE_FIELDS})
        )
    return out


def encode(index: EnergyIndex) -> bytes:
    return to_records(index).tobytes()


def decode(data: bytes) -> list[Measurement]:
    if len(data) % RECORD_SIZE:
        raise exceptions.StorageError(
            f"Truncated data: {len(data)} bytes is not a multiple of the "
            f"{RECORD_SIZE}-byte record size."
        )
    return from_records(np.frombuffer(data, dtype=RECORD_DTYPE))


def save_binary(index: EnergyIndex, path: str | PathLike) -> int:
    """Write every measurement to path; returns the number of records."""
    data = encode(index)
    try:
        Path(path).write_bytes(data)
    except OSError as exc:
        raise exceptions.StorageError(f"Cannot write {path}: {exc}") from exc
    n = len(data) // RECORD_SIZE
    logger.info("Saved %d records to %s", n, path)
    return n


def load_binary(index: EnergyIndex, path: str | PathLike) -> int:
    """
    Replace the index contents with the records stored at path.

    The index is cleared first; records go through insert so duplicates
    are dropped. Returns the number inserted.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise exceptions.StorageError(f"Cannot read {path}: {exc}") from exc

    records = decode(data)
    index.clear()
    inserted = sum(1 for m in records if index.insert(m))
    if inserted != len(records):
        logger.warning(
            "Dropped %d duplicate records from %s", len(records) - inserted, path
        )
    logger.info("Loaded %d records from %s", inserted, path)
    return inserted
