from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .row_data import DataRow
from .schema import DataSchema

"""Decoding output and the processed dataset aggregate.

RawParseResult is created once per decode and discarded after normalization.
ProcessedDataset is created once per successful parse and is replaced wholesale on
re-upload, never patched in place.
"""

__all__ = [
    "DatasetMetadata",
    "ProcessedDataset",
    "RawParseResult",
]


@dataclass(frozen=True)
class RawParseResult:
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)     # header -> loosely typed value
    raw_rows: list[list[Any]] = field(default_factory=list)      # positional, header row included
    errors: list[str] = field(default_factory=list)              # advisory decode messages

    @classmethod
    def failed(cls, message: str) -> RawParseResult:
        """Empty result carrying a single error message."""
        return cls(errors=[message])


@dataclass(frozen=True)
class DatasetMetadata:
    total_rows: int
    processed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    source_file_name: str | None = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProcessedDataset:
    """Schema + normalized rows + metadata."""
    schema: DataSchema
    rows: tuple[DataRow, ...]
    metadata: DatasetMetadata

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))

    def __len__(self) -> int:
        return len(self.rows)

    def row_by_id(self, row_id: str) -> DataRow | None:
        for row in self.rows:
            if row.id == row_id:
                return row
        return None
