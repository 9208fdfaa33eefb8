from __future__ import annotations

import csv
import io
import re
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from pathlib import PurePath
from typing import Any

import pandas as pd
import pandas._libs.parsers as parsers

from ..models.cell import cell_text, is_blank, to_native
from ..models.dataset import RawParseResult
from ..models.messages import FileKind, ParseStage

"""File decoder: spreadsheet / delimited-text bytes -> headers + loosely typed row maps.

- Spreadsheets (.xlsx, .xls): first worksheet only, row 1 is the header row, the rest
  are data rows read positionally.
- Delimited text (.csv): tokenized with the csv module and read by pandas.read_csv as
  text (NA strings become None), then each field is typed on its own: integer and
  float text become numbers, true/false in any case become booleans, the rest stays
  text. One text field never turns the other numbers of its column into strings.

Decoding never raises for malformed rows. Problems are reported as strings in
RawParseResult.errors and the affected cells become None.
"""

__all__ = [
    "EMPTY_FILE_ERROR",
    "EMPTY_SHEET_ERROR",
    "NO_DATA_ROWS_ERROR",
    "ProgressCallback",
    "decode_file",
    "decode_kind",
    "detect_file_kind",
]

ProgressCallback = Callable[[ParseStage, int, str], None]

EMPTY_SHEET_ERROR = "Empty sheet"
EMPTY_FILE_ERROR = "Empty file"
NO_DATA_ROWS_ERROR = "No data rows"

# Rows between two progress reports on large inputs
PROGRESS_ROW_STEP = 1000

_EXTENSION_KINDS = {
    ".xlsx": FileKind.XLSX,
    ".xls": FileKind.XLS,
    ".csv": FileKind.CSV,
}
_CSV_MIME_TYPES = {"text/csv", "application/csv"}
_EXCEL_ENGINES = {
    FileKind.XLSX: "openpyxl",
    FileKind.XLS: "xlrd",
}

_INT_TEXT_RE = re.compile(r"[-+]?\d+")
_FLOAT_TEXT_RE = re.compile(r"[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?")
_BOOL_TEXT = {"true": True, "false": False}


def detect_file_kind(file_name: str, mime_type: str | None = None) -> FileKind | None:
    """Pick the decode branch from the file extension (or a CSV MIME type)."""
    kind = _EXTENSION_KINDS.get(PurePath(file_name).suffix.lower())
    if kind is not None:
        return kind
    if mime_type and mime_type.split(";")[0].strip().lower() in _CSV_MIME_TYPES:
        return FileKind.CSV
    return None


def _na_options(keep_na_strings: Iterable[str] | None) -> tuple[list[str] | None, bool]:
    """pandas NA settings: defaults minus the strings that must stay literal."""
    if keep_na_strings:
        custom_na = set(parsers.STR_NA_VALUES) - set(keep_na_strings)
        return sorted(custom_na), False
    return None, True


def _notify(report: ProgressCallback | None, stage: ParseStage, percent: int, message: str) -> None:
    if report is not None:
        report(stage, percent, message)


def _header_names(values: Sequence[Any]) -> list[str]:
    """Header cell text; blank cells get a positional ``column_<index>`` placeholder."""
    headers: list[str] = []
    for index, value in enumerate(values):
        text = "" if is_blank(value) else cell_text(to_native(value)).strip()
        headers.append(text or f"column_{index}")
    return headers


def _duplicate_warnings(headers: list[str]) -> list[str]:
    counts = Counter(headers)
    return [
        f"Duplicate header '{name}': later columns overwrite earlier values"
        for name, count in counts.items()
        if count > 1
    ]


def _build_rows(
    headers: list[str],
    records: Sequence[Sequence[Any]],
    report: ProgressCallback | None,
) -> tuple[list[dict[str, Any]], list[list[Any]]]:
    """Map positional records onto headers.

    All-blank records are skipped. A duplicated header keeps the value of its last
    column. Cells beyond the header width are dropped; missing cells are None.
    """
    _notify(report, ParseStage.PROCESSING, 60, "Processing rows...")
    total = len(records)
    rows: list[dict[str, Any]] = []
    raw_rows: list[list[Any]] = [list(headers)]
    for index, record in enumerate(records):
        if total > PROGRESS_ROW_STEP and index % PROGRESS_ROW_STEP == 0:
            percent = 60 + (index * 30) // total
            _notify(report, ParseStage.PROCESSING, percent, f"Processing row {index + 1} of {total}...")
        values = [to_native(v) for v in record]
        if all(is_blank(v) for v in values):
            continue
        row: dict[str, Any] = {}
        for position, header in enumerate(headers):
            row[header] = values[position] if position < len(values) else None
        rows.append(row)
        raw_rows.append(values)
    return rows, raw_rows


def read_first_sheet(
    data: bytes, kind: FileKind, keep_na_strings: Iterable[str] | None = None
) -> pd.DataFrame:
    """Read the first worksheet without header inference."""
    na_values, keep_default_na = _na_options(keep_na_strings)
    with pd.ExcelFile(io.BytesIO(data), engine=_EXCEL_ENGINES[kind]) as xls:
        if not xls.sheet_names:
            return pd.DataFrame()
        return xls.parse(
            xls.sheet_names[0],
            header=None,
            keep_default_na=keep_default_na,
            na_values=na_values,
        )


def decode_spreadsheet(
    data: bytes,
    kind: FileKind,
    *,
    keep_na_strings: Iterable[str] | None = None,
    report: ProgressCallback | None = None,
) -> RawParseResult:
    _notify(report, ParseStage.PARSING, 20, "Reading sheet...")
    df = read_first_sheet(data, kind, keep_na_strings)
    _notify(report, ParseStage.PARSING, 40, "Converting data...")

    if df.shape[0] == 0 or df.shape[1] == 0:
        return RawParseResult.failed(EMPTY_SHEET_ERROR)

    headers = _header_names(df.iloc[0].tolist())
    records = list(df.iloc[1:].itertuples(index=False, name=None))
    rows, raw_rows = _build_rows(headers, records, report)

    errors = _duplicate_warnings(headers)
    if not rows:
        errors.append(NO_DATA_ROWS_ERROR)
    return RawParseResult(headers=headers, rows=rows, raw_rows=raw_rows, errors=errors)


def _type_field(value: Any) -> Any:
    """Scalar typing of one delimited-text field; NA cells pass through."""
    if not isinstance(value, str):
        return value
    lowered = value.lower()
    if lowered in _BOOL_TEXT:
        return _BOOL_TEXT[lowered]
    if _INT_TEXT_RE.fullmatch(value):
        return int(value)
    if _FLOAT_TEXT_RE.fullmatch(value):
        return float(value)
    return value


def _fit_records(text: str, errors: list[str]) -> list[list[str]]:
    """Tokenize delimited text; blank lines dropped, rows wider than the header truncated."""
    records = [fields for fields in csv.reader(io.StringIO(text)) if fields]
    if not records:
        return []
    width = len(records[0])
    fitted = [records[0]]
    for fields in records[1:]:
        if len(fields) > width:
            errors.append(f"Too many fields: expected {width} fields but parsed {len(fields)}")
            fields = fields[:width]
        fitted.append(fields)
    return fitted


def decode_delimited(
    data: bytes,
    *,
    keep_na_strings: Iterable[str] | None = None,
    report: ProgressCallback | None = None,
) -> RawParseResult:
    _notify(report, ParseStage.PARSING, 20, "Parsing CSV...")
    text = data.decode("utf-8-sig", errors="replace")
    errors: list[str] = []
    records = _fit_records(text, errors)
    if not records:
        return RawParseResult.failed(EMPTY_FILE_ERROR)

    headers = _header_names(records[0])
    typed_records: list[tuple[Any, ...]] = []
    if len(records) > 1:
        # records are rewritten with a fixed width; pandas only applies the NA rules here
        buffer = io.StringIO()
        csv.writer(buffer).writerows(records[1:])
        buffer.seek(0)
        na_values, keep_default_na = _na_options(keep_na_strings)
        try:
            df = pd.read_csv(
                buffer,
                header=None,
                names=list(range(len(headers))),
                dtype=str,
                skip_blank_lines=True,
                keep_default_na=keep_default_na,
                na_values=na_values,
            )
        except pd.errors.ParserError as e:
            return RawParseResult.failed(f"Parse error: {e}")
        typed_records = [
            tuple(_type_field(v) for v in record)
            for record in df.itertuples(index=False, name=None)
        ]

    _notify(report, ParseStage.PARSING, 40, "Converting data...")
    rows, raw_rows = _build_rows(headers, typed_records, report)

    errors.extend(_duplicate_warnings(headers))
    if not rows:
        errors.append(NO_DATA_ROWS_ERROR)
    return RawParseResult(headers=headers, rows=rows, raw_rows=raw_rows, errors=errors)


def decode_file(
    data: bytes,
    file_name: str,
    mime_type: str | None = None,
    *,
    keep_na_strings: Iterable[str] | None = None,
    report: ProgressCallback | None = None,
) -> RawParseResult:
    """Decode raw file bytes into headers and row maps.

    Unknown file kinds return an empty result with a single error instead of raising.
    """
    kind = detect_file_kind(file_name, mime_type)
    if kind is None:
        return RawParseResult.failed(f"Unsupported file type: {file_name}")
    return decode_kind(data, kind, keep_na_strings=keep_na_strings, report=report)


def decode_kind(
    data: bytes,
    kind: FileKind,
    *,
    keep_na_strings: Iterable[str] | None = None,
    report: ProgressCallback | None = None,
) -> RawParseResult:
    """Decode bytes whose kind was already detected."""
    if kind.is_spreadsheet:
        return decode_spreadsheet(data, kind, keep_na_strings=keep_na_strings, report=report)
    return decode_delimited(data, keep_na_strings=keep_na_strings, report=report)
