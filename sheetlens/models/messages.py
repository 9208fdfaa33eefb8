from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .dataset import DatasetMetadata, ProcessedDataset, RawParseResult
from .row_data import DataRow
from .schema import DataSchema

"""Parse worker message protocol.

Order on the channel: ready -> request -> progress* -> (result | error).
The same message types are produced by the inline (same-process) path so callers
cannot tell which path ran. ``to_dict`` renders the wire names used by external
collaborators (fileBytes, rawRows, ...).
"""

__all__ = [
    "ErrorMessage",
    "FileKind",
    "ParseRequest",
    "ParseStage",
    "ProgressMessage",
    "ReadyMessage",
    "ResultMessage",
]


class FileKind(str, Enum):
    XLSX = "spreadsheet-xlsx"
    XLS = "spreadsheet-legacy"
    CSV = "delimited-text"

    @property
    def is_spreadsheet(self) -> bool:
        return self is not FileKind.CSV


class ParseStage(str, Enum):
    """Progress stages, always reported in this order."""
    READING = "reading"
    PARSING = "parsing"
    PROCESSING = "processing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ReadyMessage:
    """Sent once by the worker when it has initialized."""
    type: str = "ready"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class ParseRequest:
    file_bytes: bytes
    file_name: str
    file_kind: FileKind

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "parse",
            "payload": {
                "fileBytes": self.file_bytes,
                "fileName": self.file_name,
                "fileKind": self.file_kind.value,
            },
        }


@dataclass(frozen=True)
class ProgressMessage:
    stage: ParseStage
    percent: int      # 0-100
    message: str

    def __post_init__(self) -> None:
        if not 0 <= self.percent <= 100:
            raise ValueError(f"percent out of range: {self.percent}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "progress",
            "payload": {"stage": self.stage.value, "percent": self.percent, "message": self.message},
        }


@dataclass(frozen=True)
class ResultMessage:
    """Success payload: the decoded shape plus the processed schema and rows."""
    headers: list[str]
    rows: list[DataRow]
    raw_rows: list[list[Any]]
    errors: list[str]
    schema: DataSchema
    metadata: DatasetMetadata

    @classmethod
    def build(cls, raw: RawParseResult, dataset: ProcessedDataset) -> ResultMessage:
        return cls(
            headers=list(raw.headers),
            rows=list(dataset.rows),
            raw_rows=raw.raw_rows,
            errors=list(raw.errors),
            schema=dataset.schema,
            metadata=dataset.metadata,
        )

    def to_dataset(self) -> ProcessedDataset:
        return ProcessedDataset(schema=self.schema, rows=tuple(self.rows), metadata=self.metadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "result",
            "payload": {
                "headers": self.headers,
                "rows": [{"_id": r.id, "_rowIndex": r.row_index, **r.values} for r in self.rows],
                "rawRows": self.raw_rows,
                "errors": self.errors,
            },
        }


@dataclass(frozen=True)
class ErrorMessage:
    message: str
    stack: str | None = None

    @staticmethod
    def from_exception(exc: BaseException) -> ErrorMessage:
        """Capture an exception's message and formatted traceback."""
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return ErrorMessage(message=str(exc) or type(exc).__name__, stack=stack)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.stack is not None:
            payload["stack"] = self.stack
        return {"type": "error", "payload": payload}
