from __future__ import annotations

import io
import json
from datetime import date, datetime
from enum import Enum
from typing import Any

import pandas as pd

from ..models.dataset import ProcessedDataset

"""Dataset export to xlsx / csv / json.

Field names are the column labels. Only the rows passed in are written, so callers
can export either the full dataset or the current query result.
"""

__all__ = [
    "EXPORT_MIME_TYPES",
    "ExportFormat",
    "export_dataset",
    "export_records",
]

# Excel limits worksheet titles to 31 characters
SHEET_NAME_MAX = 31


class ExportFormat(str, Enum):
    XLSX = "xlsx"
    CSV = "csv"
    JSON = "json"


EXPORT_MIME_TYPES = {
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.CSV: "text/csv;charset=utf-8",
    ExportFormat.JSON: "application/json",
}


def export_records(dataset: ProcessedDataset, rows: Any = None) -> list[dict[str, Any]]:
    """Rows as label-keyed records, in schema column order."""
    source = dataset.rows if rows is None else rows
    return [
        {column.label: row.get(column.key) for column in dataset.schema.columns}
        for row in source
    ]


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def export_dataset(dataset: ProcessedDataset, fmt: ExportFormat | str, rows: Any = None) -> bytes:
    """Serialize a dataset (or a subset of its rows) to bytes.

    Raises:
        ValueError: unknown export format
    """
    fmt = ExportFormat(fmt)
    records = export_records(dataset, rows)
    labels = [column.label for column in dataset.schema.columns]

    if fmt is ExportFormat.JSON:
        return json.dumps(records, indent=2, ensure_ascii=False, default=_json_default).encode("utf-8")

    frame = pd.DataFrame.from_records(records, columns=labels)
    if fmt is ExportFormat.CSV:
        return frame.to_csv(index=False).encode("utf-8")

    buffer = io.BytesIO()
    sheet_name = (dataset.schema.name or "Sheet1")[:SHEET_NAME_MAX]
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()
