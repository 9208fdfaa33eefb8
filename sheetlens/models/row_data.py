from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from .cell import CellValue

"""DataRow model: one normalized record of a processed dataset."""

__all__ = [
    "DataRow",
    "new_row_id",
]


def new_row_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class DataRow:
    """Logical representation of a single row after normalization.

    ``row_index`` is the 0-based position of the row among the decoded data rows
    (the header row is not counted).
    """
    row_index: int
    values: dict[str, CellValue]
    id: str = field(default_factory=new_row_id)

    def get(self, key: str, default: Any = None) -> CellValue:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> CellValue:
        return self.values[key]
