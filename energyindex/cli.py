"""
Command line front end.

  energyindex import [CSV]
  energyindex sum --start 2021-02-01 --end 2021-02-28T23:59 --field production
  energyindex avg ...
  energyindex search --field export --target 55.5 --tolerance 0.5 --start ... --end ...
  energyindex compare --start1 ... --end1 ... --start2 ... --end2 ... --field import
  energyindex summary

Every command works on the binary store from the settings; 'import' adds the
CSV rows to it and writes it back.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__, analyzer, canon, exceptions, formats, ingest, summary
from .config import Settings, get_settings
from .tree import EnergyIndex
from .types import Timestamp, ValueType

logger = logging.getLogger(__name__)

FIELD_NAMES: dict[str, ValueType] = {
    "auto": ValueType.AUTOCONSUMPTION,
    "autoconsumption": ValueType.AUTOCONSUMPTION,
    "export": ValueType.EXPORT,
    "import": ValueType.IMPORT,
    "consumption": ValueType.CONSUMPTION,
    "production": ValueType.PRODUCTION,
}


def _file_handler(path: str, level: int = logging.NOTSET) -> logging.FileHandler:
    try:
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        raise exceptions.ConfigError(f"Cannot open log file {path}: {exc}") from exc
    handler.setLevel(level)
    return handler


def setup_logging(settings: Settings) -> None:
    """
    Console logging at the configured level, plus an optional full log file
    and an optional error log that only receives WARNING and above.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(_file_handler(settings.log_file))
    if settings.error_log_file:
        handlers.append(_file_handler(settings.error_log_file, logging.WARNING))
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _field(value: str) -> ValueType:
    """Field by name, or by its menu number 1-5."""
    key = value.strip().lower()
    if key in FIELD_NAMES:
        return FIELD_NAMES[key]
    try:
        return ValueType(int(key))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"unknown field {value!r}; choose from {', '.join(FIELD_NAMES)} or 1-5"
        ) from None


def _when(value: str) -> Timestamp:
    try:
        return Timestamp.coerce(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _add_range(p: argparse.ArgumentParser, suffix: str = "") -> None:
    p.add_argument(f"--start{suffix}", required=True, type=_when)
    p.add_argument(f"--end{suffix}", required=True, type=_when)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="energyindex", description=__doc__.splitlines()[1])
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("--store", help="binary store path (overrides settings)")
    sub = ap.add_subparsers(dest="command", required=True)

    p_imp = sub.add_parser("import", help="add CSV rows to the store")
    p_imp.add_argument("csv", nargs="?", help="CSV export (defaults to settings)")
    p_imp.add_argument("--replace", action="store_true", help="start from an empty store")

    for name in ("sum", "avg"):
        p = sub.add_parser(name, help=f"{name} of a field over a time range")
        _add_range(p)
        p.add_argument("--field", required=True, type=_field)

    p_search = sub.add_parser("search", help="records within tolerance of a target")
    p_search.add_argument("--field", required=True, type=_field)
    p_search.add_argument("--target", required=True, type=float)
    p_search.add_argument("--tolerance", default=0.0, type=float)
    _add_range(p_search)

    p_cmp = sub.add_parser("compare", help="compare the sums of two periods")
    _add_range(p_cmp, "1")
    _add_range(p_cmp, "2")
    p_cmp.add_argument("--field", required=True, type=_field)

    sub.add_parser("summary", help="totals, daily and monthly breakdown as JSON")
    return ap


def _open_store(path: Path) -> EnergyIndex:
    index = EnergyIndex()
    if path.exists():
        formats.load_binary(index, path)
    else:
        logger.info("No store at %s yet, starting empty", path)
    return index


def run(args: argparse.Namespace, settings: Settings) -> int:
    store = Path(args.store or settings.store_path)

    if args.command == "import":
        index = EnergyIndex() if args.replace else _open_store(store)
        report = ingest.load_csv(
            index,
            args.csv or settings.csv_path,
            delimiter=settings.csv_delimiter,
            timestamp_format=settings.csv_timestamp_format,
        )
        formats.save_binary(index, store)
        print(f"Loaded: {report.valid}, invalid: {report.invalid}")
        return 0

    index = _open_store(store)

    if args.command in ("sum", "avg"):
        op = analyzer.calculate_sum if args.command == "sum" else analyzer.calculate_avg
        result = op(index, args.start, args.end, args.field)
        print(f"Result: {result:g} {canon.UNIT}")
    elif args.command == "search":
        matches = analyzer.search(
            index, args.field, args.target, args.tolerance, args.start, args.end
        )
        print(f"Matches: {len(matches)}")
    elif args.command == "compare":
        analyzer.compare(
            index, args.start1, args.end1, args.start2, args.end2, args.field
        )
    elif args.command == "summary":
        print(json.dumps(summary.summarise(index), indent=2, default=str))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
        setup_logging(settings)
        return run(args, settings)
    except exceptions.EnergyIndexError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
