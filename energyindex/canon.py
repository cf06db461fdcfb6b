from __future__ import annotations
from typing import Final

INDEX_NAME: Final[str] = "t_start"

# Value columns in source/storage order
VALUE_FIELDS: Final[list[str]] = [
    "autoconsumption",
    "export_energy",
    "import_energy",
    "consumption",
    "production",
]
CALENDAR_FIELDS: Final[list[str]] = ["year", "month", "day", "hour", "minute", "second"]

# Fixed 6-hour leaf windows: 0 (00-05), 1 (06-11), 2 (12-17), 3 (18-23)
BUCKET_HOURS: Final[int] = 6
BUCKETS_PER_DAY: Final[int] = 24 // BUCKET_HOURS

# Unset calendar fields land here (tm-style zero struct)
UNSET_YEAR: Final[int] = 1900

DEFAULT_DELIMITER: Final[str] = ";"
DEFAULT_TIMESTAMP_FORMAT: Final[str] = "%d.%m.%Y %H:%M"
DEFAULT_CSV_PATH: Final[str] = "Chart_Export.csv"
DEFAULT_STORE_PATH: Final[str] = "data.bin"

UNIT: Final[str] = "W"
