__version__ = "0.1.0"

from . import (
    canon,
    exceptions,
    types,
    utils,
    tree,
    analyzer,
    validate,
    ingest,
    formats,
    transform,
    summary,
)
from .tree import Bucket, Cursor, EnergyIndex
from .types import Measurement, Timestamp, ValueType

__all__ = [
    "canon",
    "exceptions",
    "types",
    "utils",
    "tree",
    "analyzer",
    "validate",
    "ingest",
    "formats",
    "transform",
    "summary",
    "Bucket",
    "Cursor",
    "EnergyIndex",
    "Measurement",
    "Timestamp",
    "ValueType",
]
