from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .dataset import ProcessedDataset
    from .row_data import DataRow

"""Caller-owned view state for the query engine.

QueryState is immutable. Every transition (new search text, a filter added, a page
change) returns a new state; the query engine only ever reads it.
"""

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FilterOperator",
    "FilterSpec",
    "QueryResult",
    "QueryState",
    "SortDirection",
    "SortSpec",
]

DEFAULT_PAGE_SIZE = 25


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterOperator(str, Enum):
    """Operators understood by the query engine.

    FilterSpec.operator is a plain string so that callers may pass values that are
    not listed here; the engine keeps every row for those.
    """
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    BETWEEN = "between"


@dataclass(frozen=True)
class FilterSpec:
    column: str
    operator: str
    value: Any = None  # list/tuple for "in" and "between"

    def __post_init__(self) -> None:
        if isinstance(self.operator, FilterOperator):
            object.__setattr__(self, "operator", self.operator.value)


@dataclass(frozen=True)
class SortSpec:
    column: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SortDirection(self.direction))


@dataclass(frozen=True)
class QueryState:
    """Search text, filters (at most one per column), sort and page."""
    search: str = ""
    filters: tuple[FilterSpec, ...] = ()
    sort: SortSpec | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        object.__setattr__(self, "filters", tuple(self.filters))

    @classmethod
    def for_dataset(cls, dataset: ProcessedDataset, page_size: int = DEFAULT_PAGE_SIZE) -> QueryState:
        """Initial state for a freshly loaded dataset (schema default sort applied)."""
        return cls(sort=dataset.schema.default_sort, page_size=page_size)

    def with_search(self, search: str) -> QueryState:
        return replace(self, search=search, page=1)

    def with_filter(self, spec: FilterSpec) -> QueryState:
        """Add a filter, replacing any existing filter on the same column."""
        kept = tuple(f for f in self.filters if f.column != spec.column)
        return replace(self, filters=kept + (spec,), page=1)

    def without_filter(self, column: str) -> QueryState:
        return replace(self, filters=tuple(f for f in self.filters if f.column != column))

    def clear_filters(self) -> QueryState:
        """Drop every filter and the search text."""
        return replace(self, filters=(), search="")

    def with_sort(self, sort: SortSpec | None) -> QueryState:
        return replace(self, sort=sort)

    def with_page(self, page: int) -> QueryState:
        return replace(self, page=page)

    def with_page_size(self, page_size: int) -> QueryState:
        return replace(self, page_size=page_size, page=1)


@dataclass(frozen=True)
class QueryResult:
    rows: list[DataRow]   # the visible page
    total_filtered: int   # matches before pagination
    page: int             # effective page after clamping
    total_pages: int
