from __future__ import annotations

import logging
import math
import unicodedata
from collections.abc import Callable, Sequence
from datetime import date, datetime, time
from functools import cmp_to_key
from typing import Any

from ..models.cell import cell_text, is_number
from ..models.dataset import ProcessedDataset
from ..models.query_state import FilterOperator, FilterSpec, QueryResult, QueryState, SortDirection, SortSpec
from ..models.row_data import DataRow

"""Query engine: search -> filters -> sort -> page over a ProcessedDataset.

``query_dataset`` is a pure function of (dataset, state). It never mutates the
dataset and recomputes everything on each call.
"""

__all__ = [
    "apply_filter",
    "apply_search",
    "paginate",
    "query_dataset",
    "sort_rows",
]

logger = logging.getLogger(__name__)


def _strict_equal(left: Any, right: Any) -> bool:
    # bool is an int subclass; True must not equal 1
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _as_number(value: Any) -> float:
    """Numeric reading used by the ordering operators; NaN when there is none."""
    # null reads as NaN, not 0, so an empty cell never satisfies gt/gte/lt/lte/between
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime.combine(value, time()).timestamp()
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    try:
        return _as_number(datetime.fromisoformat(text))
    except ValueError:
        return math.nan


def _text(value: Any) -> str:
    return cell_text(value).lower()


def _between(cell: Any, bounds: Any) -> bool:
    if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
        return False
    number = _as_number(cell)
    return _as_number(bounds[0]) <= number <= _as_number(bounds[1])


def _is_in(cell: Any, choices: Any) -> bool:
    if not isinstance(choices, (list, tuple, set, frozenset)):
        return False
    return any(_strict_equal(cell, choice) for choice in choices)


_PREDICATES: dict[str, Callable[[Any, Any], bool]] = {
    FilterOperator.EQ.value: _strict_equal,
    FilterOperator.NEQ.value: lambda cell, target: not _strict_equal(cell, target),
    FilterOperator.GT.value: lambda cell, target: _as_number(cell) > _as_number(target),
    FilterOperator.GTE.value: lambda cell, target: _as_number(cell) >= _as_number(target),
    FilterOperator.LT.value: lambda cell, target: _as_number(cell) < _as_number(target),
    FilterOperator.LTE.value: lambda cell, target: _as_number(cell) <= _as_number(target),
    FilterOperator.CONTAINS.value: lambda cell, target: _text(target) in _text(cell),
    FilterOperator.STARTS_WITH.value: lambda cell, target: _text(cell).startswith(_text(target)),
    FilterOperator.ENDS_WITH.value: lambda cell, target: _text(cell).endswith(_text(target)),
    FilterOperator.IN.value: _is_in,
    FilterOperator.BETWEEN.value: _between,
}


def apply_search(rows: Sequence[DataRow], search: str, searchable_keys: Sequence[str]) -> list[DataRow]:
    """Keep rows where any searchable column contains the text (case-insensitive)."""
    if not search:
        return list(rows)
    needle = search.lower()
    return [
        row
        for row in rows
        if any(
            row.get(key) is not None and needle in _text(row.get(key))
            for key in searchable_keys
        )
    ]


def apply_filter(rows: Sequence[DataRow], spec: FilterSpec) -> list[DataRow]:
    """Apply one filter. Unknown operators keep every row."""
    predicate = _PREDICATES.get(spec.operator)
    if predicate is None:
        logger.debug("ignoring filter on %r with unknown operator %r", spec.column, spec.operator)
        return list(rows)
    return [row for row in rows if predicate(row.get(spec.column), spec.value)]


def _collation_key(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _compare_values(left: Any, right: Any) -> int:
    if is_number(left) and is_number(right):
        return (left > right) - (left < right)
    left_text, right_text = cell_text(left), cell_text(right)
    left_key = (_collation_key(left_text), left_text)
    right_key = (_collation_key(right_text), right_text)
    return (left_key > right_key) - (left_key < right_key)


def sort_rows(rows: Sequence[DataRow], sort: SortSpec) -> list[DataRow]:
    """Stable single-column sort; None values go last in both directions."""
    present = [row for row in rows if row.get(sort.column) is not None]
    missing = [row for row in rows if row.get(sort.column) is None]
    sign = -1 if sort.direction is SortDirection.DESC else 1

    def compare(a: DataRow, b: DataRow) -> int:
        return sign * _compare_values(a.get(sort.column), b.get(sort.column))

    return sorted(present, key=cmp_to_key(compare)) + missing


def paginate(rows: Sequence[DataRow], page: int, page_size: int) -> tuple[list[DataRow], int, int]:
    """Slice one page; the page is clamped to [1, total_pages].

    Returns:
        (page rows, effective page, total pages)
    """
    total_pages = max(1, math.ceil(len(rows) / page_size))
    effective = min(max(1, page), total_pages)
    start = (effective - 1) * page_size
    return list(rows[start:start + page_size]), effective, total_pages


def query_dataset(dataset: ProcessedDataset, state: QueryState) -> QueryResult:
    """Run search, filters, sort and pagination over a dataset.

    Args:
        dataset: the processed dataset (never modified)
        state: caller-owned query state

    Returns:
        QueryResult with the visible page and the match count before pagination
    """
    rows: list[DataRow] = apply_search(dataset.rows, state.search, dataset.schema.searchable_keys)
    for spec in state.filters:
        rows = apply_filter(rows, spec)
    if state.sort is not None:
        rows = sort_rows(rows, state.sort)
    visible, page, total_pages = paginate(rows, state.page, state.page_size)
    return QueryResult(rows=visible, total_filtered=len(rows), page=page, total_pages=total_pages)
