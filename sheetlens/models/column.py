from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Column-level domain models: semantic type tag, display format and column contract."""

__all__ = [
    "Alignment",
    "BadgeColor",
    "ColumnDefinition",
    "ColumnFormat",
    "ColumnType",
]


class ColumnType(str, Enum):
    """Closed set of semantic column kinds.

    Assigned once per column by inference; may be overridden by a supplied schema.
    """
    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    IMAGE = "image"
    BADGE = "badge"
    PROGRESS = "progress"

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_TYPES

    @property
    def is_temporal(self) -> bool:
        return self in (ColumnType.DATE, ColumnType.DATETIME)


NUMERIC_TYPES = frozenset(
    {ColumnType.NUMBER, ColumnType.CURRENCY, ColumnType.PERCENTAGE, ColumnType.PROGRESS}
)


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class BadgeColor:
    bg: str    # background hex colour
    text: str  # foreground hex colour


@dataclass(frozen=True)
class ColumnFormat:
    """Display/parse contract for a column. Read-only once built."""
    type: ColumnType
    locale: str | None = None
    currency: str | None = None
    decimals: int | None = None
    date_format: str | None = None
    prefix: str | None = None
    suffix: str | None = None
    badge_colors: dict[str, BadgeColor] | None = None


@dataclass(frozen=True)
class ColumnDefinition:
    """One column's full contract, referenced by every row."""
    key: str                 # key in DataRow.values (the decoded header)
    label: str               # human label, also the exported field name
    format: ColumnFormat
    sortable: bool = True
    filterable: bool = True
    searchable: bool = False
    hidden: bool = False
    align: Alignment = Alignment.LEFT
    width: str | int | None = field(default=None, compare=False)

    @property
    def type(self) -> ColumnType:
        return self.format.type
