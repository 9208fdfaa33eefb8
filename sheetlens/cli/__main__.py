from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sheetlens.config.loader import ConfigError, load_config, load_schema
from sheetlens.logging.init import log_summary, set_level, setup_logging
from sheetlens.models.column import ColumnType
from sheetlens.models.dataset import ProcessedDataset
from sheetlens.models.query_state import FilterOperator, FilterSpec, QueryState, SortDirection, SortSpec
from sheetlens.models.row_data import DataRow
from sheetlens.services.export import ExportFormat, export_dataset
from sheetlens.services.normalizer import normalize_value
from sheetlens.services.offloader import ParseFailedError, ParseOffloader, UnsupportedFileError
from sheetlens.services.progress import ParseProgressBar
from sheetlens.services.query import query_dataset
from sheetlens.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, config and (optionally) an external schema document
- Parse the file (worker process or inline)
- Apply search / filters / sort / page and print the visible rows as JSON lines
- Optionally export, then close with a SUMMARY line

Exit codes: 0 success, 1 fatal, 2 success with decode warnings.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_WARNINGS = 2

DISABLE_WORKER_ENV_VAR = "SHEETLENS_DISABLE_WORKER"
INSPECT_SAMPLE_ROWS = 5

# operators whose value is a comma-separated list
_LIST_OPERATORS = {FilterOperator.IN.value, FilterOperator.BETWEEN.value}
# operators compared with strict equality; their values are normalized to the column type
_EQUALITY_OPERATORS = {FilterOperator.EQ.value, FilterOperator.NEQ.value, FilterOperator.IN.value}


class UsageError(Exception):
    """Malformed --filter / --sort / --export arguments."""


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; .env values win over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1: {text}")
    return value


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetlens", description="Spreadsheet / CSV explorer with column type inference")
    p.add_argument("file", type=Path, help="Input file (.xlsx, .xls or .csv)")
    p.add_argument("--config", type=Path, help="YAML config file (default config/sheetlens.yml)")
    p.add_argument("--schema", type=Path, help="Schema document (YAML or JSON); skips inference")
    p.add_argument("--search", default="", help="Free-text search over searchable columns")
    p.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="COLUMN:OP:VALUE",
        help="Column filter (repeatable); in/between take comma-separated values",
    )
    p.add_argument("--sort", metavar="COLUMN[:asc|desc]", help="Sort column and direction")
    p.add_argument("--page", type=int, default=1, help="Page number (1-based)")
    p.add_argument("--page-size", type=_positive_int, help="Rows per page")
    p.add_argument("--inspect-data", action="store_true", help="Print the inferred schema & first rows then exit")
    p.add_argument("--export", choices=[f.value for f in ExportFormat], help="Export the matching rows")
    p.add_argument("--output", type=Path, help="Export destination")
    p.add_argument("--no-worker", action="store_true", help="Parse in-process instead of a worker process")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _coerce_filter_value(text: str, column_type: ColumnType | None, operator: str) -> Any:
    if column_type is None or operator not in _EQUALITY_OPERATORS:
        return text
    return normalize_value(text, column_type)


def _parse_filter(text: str, dataset: ProcessedDataset) -> FilterSpec:
    parts = text.split(":", 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise UsageError(f"invalid --filter {text!r}, expected COLUMN:OP:VALUE")
    column, operator, raw_value = parts
    definition = dataset.schema.column(column)
    column_type = definition.type if definition is not None else None
    if operator in _LIST_OPERATORS:
        value: Any = [_coerce_filter_value(v.strip(), column_type, operator) for v in raw_value.split(",")]
    else:
        value = _coerce_filter_value(raw_value, column_type, operator)
    return FilterSpec(column=column, operator=operator, value=value)


def _parse_sort(text: str) -> SortSpec:
    column, sep, direction = text.rpartition(":")
    if sep and direction.lower() in (SortDirection.ASC.value, SortDirection.DESC.value):
        return SortSpec(column=column, direction=SortDirection(direction.lower()))
    return SortSpec(column=text)


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _row_json(row: DataRow) -> str:
    record = {"_id": row.id, "_rowIndex": row.row_index}
    record.update({k: _json_value(v) for k, v in row.values.items()})
    return json.dumps(record, ensure_ascii=False)


def _inspect_data(dataset: ProcessedDataset) -> int:
    print(f"FILE: {dataset.metadata.source_file_name} rows={dataset.metadata.total_rows}")
    for column in dataset.schema.columns:
        print(f"  COLUMN: {column.key} type={column.type.value} label={column.label!r} searchable={column.searchable}")
    for row in dataset.rows[:INSPECT_SAMPLE_ROWS]:
        print(f"    {_row_json(row)}")
    return EXIT_SUCCESS


def _build_state(args: argparse.Namespace, dataset: ProcessedDataset, page_size: int) -> QueryState:
    state = QueryState.for_dataset(dataset, page_size=page_size)
    if args.search:
        state = state.with_search(args.search)
    for text in args.filter:
        state = state.with_filter(_parse_filter(text, dataset))
    if args.sort:
        state = state.with_sort(_parse_sort(args.sort))
    return state.with_page(args.page)


def _export(args: argparse.Namespace, dataset: ProcessedDataset, state: QueryState) -> None:
    if args.output is None:
        raise UsageError("--export requires --output")
    matching = query_dataset(dataset, state.with_page_size(max(1, len(dataset))))
    args.output.write_bytes(export_dataset(dataset, args.export, matching.rows))


def main(argv: list[str] | None = None) -> int:
    # Initialize logging system with labeled prefixes
    logger = setup_logging()

    # An empty list is a valid argv (tests); only None reads the process arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
        schema = load_schema(args.schema) if args.schema is not None else None
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    path: Path = args.file
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL
    size = path.stat().st_size
    if size > cfg.upload.max_bytes:
        logger.error(f"file too large: {path.name} ({size} bytes, limit {cfg.upload.max_bytes})")
        return EXIT_FATAL

    use_worker = None
    if args.no_worker or os.getenv(DISABLE_WORKER_ENV_VAR) == "1":
        use_worker = False

    offloader = ParseOffloader(cfg)
    try:
        with ParseProgressBar(path.name) as progress:
            dataset = offloader.parse(
                path.read_bytes(),
                path.name,
                on_progress=progress,
                schema=schema,
                use_worker=use_worker,
            )
    except UnsupportedFileError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except ParseFailedError as e:
        logger.error(f"parse failed: {e.message}")
        if e.stack:
            logger.debug(e.stack)
        return EXIT_FATAL

    for warning in dataset.metadata.warnings:
        logger.warning(warning)
    logger.info(f"parsed {path.name}: rows={len(dataset)} columns={len(dataset.schema.columns)}")

    if args.inspect_data:
        return _inspect_data(dataset)

    try:
        state = _build_state(args, dataset, args.page_size or cfg.query.page_size)
        result = query_dataset(dataset, state)
        if args.export:
            _export(args, dataset, state)
            logger.info(f"exported {args.export} to {args.output}")
    except UsageError as e:
        logger.error(str(e))
        return EXIT_FATAL

    for row in result.rows:
        print(_row_json(row))

    log_summary(render_summary_line(dataset, result).removeprefix("SUMMARY "))

    if dataset.metadata.warnings:
        return EXIT_WARNINGS
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
