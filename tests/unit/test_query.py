from __future__ import annotations
from datetime import datetime

import pytest

from sheetlens.models.column import ColumnDefinition, ColumnFormat, ColumnType
from sheetlens.models.dataset import DatasetMetadata, ProcessedDataset
from sheetlens.models.query_state import FilterOperator, FilterSpec, QueryState, SortDirection, SortSpec
from sheetlens.models.row_data import DataRow
from sheetlens.models.schema import DataSchema
from sheetlens.services.query import query_dataset


def _dataset(records: list[dict], searchable: tuple[str, ...] = ("name",)) -> ProcessedDataset:
    keys = list(records[0]) if records else []
    schema = DataSchema(
        id="s",
        name="t",
        columns=tuple(
            ColumnDefinition(
                key=k,
                label=k.title(),
                format=ColumnFormat(type=ColumnType.STRING),
                searchable=k in searchable,
            )
            for k in keys
        ),
    )
    rows = tuple(DataRow(row_index=i, values=dict(r)) for i, r in enumerate(records))
    return ProcessedDataset(schema=schema, rows=rows, metadata=DatasetMetadata(total_rows=len(rows)))


def _names(result) -> list:
    return [r["name"] for r in result.rows]


PEOPLE = [
    {"name": "Alice", "age": 30, "city": "Lima", "active": True},
    {"name": "Bob", "age": 25, "city": "Quito", "active": False},
    {"name": "Charlie", "age": None, "city": "lima", "active": True},
    {"name": "Diana", "age": 41, "city": None, "active": False},
    {"name": "Eve", "age": 1, "city": "Bogotá", "active": True},
]


def test_scenario_search_is_case_insensitive_substring():
    result = query_dataset(_dataset(PEOPLE), QueryState(search="e"))
    assert _names(result) == ["Alice", "Charlie", "Eve"]
    assert result.total_filtered == 3


def test_search_only_looks_at_searchable_columns():
    result = query_dataset(_dataset(PEOPLE), QueryState(search="quito"))
    assert result.rows == []
    result = query_dataset(_dataset(PEOPLE, searchable=("name", "city")), QueryState(search="QUITO"))
    assert _names(result) == ["Bob"]


def test_scenario_last_page_holds_the_remainder():
    records = [{"name": f"r{i}"} for i in range(6)]
    result = query_dataset(_dataset(records), QueryState(page=2, page_size=4))
    assert len(result.rows) == 2
    assert result.total_filtered == 6
    assert result.page == 2
    assert result.total_pages == 2


@pytest.mark.parametrize("requested,effective", [(0, 1), (-3, 1), (99, 2)])
def test_page_is_clamped(requested, effective):
    records = [{"name": f"r{i}"} for i in range(6)]
    result = query_dataset(_dataset(records), QueryState(page=requested, page_size=4))
    assert result.page == effective


def test_empty_dataset_has_one_empty_page():
    result = query_dataset(_dataset([]), QueryState())
    assert result.rows == []
    assert (result.page, result.total_pages, result.total_filtered) == (1, 1, 0)


@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
def test_nulls_sort_last_in_both_directions(direction):
    result = query_dataset(_dataset(PEOPLE), QueryState(sort=SortSpec("age", direction)))
    ages = [r["age"] for r in result.rows]
    assert ages[-1] is None
    expected = sorted([30, 25, 41, 1], reverse=direction is SortDirection.DESC)
    assert ages[:-1] == expected


def test_string_sort_ignores_case_and_accents():
    records = [{"name": n} for n in ["beta", "Álvaro", "alpha", "Bravo"]]
    result = query_dataset(_dataset(records), QueryState(sort=SortSpec("name")))
    assert _names(result) == ["alpha", "Álvaro", "beta", "Bravo"]


def test_sort_is_stable_for_ties():
    records = [{"name": f"r{i}", "group": "same"} for i in range(5)]
    result = query_dataset(_dataset(records), QueryState(sort=SortSpec("group", SortDirection.DESC)))
    assert _names(result) == [f"r{i}" for i in range(5)]


def test_pagination_is_complete_and_disjoint():
    records = [{"name": f"r{i:02d}", "n": (i * 7) % 11} for i in range(23)]
    dataset = _dataset(records)
    state = QueryState(sort=SortSpec("n"), page_size=5)
    full = query_dataset(dataset, state.with_page_size(100)).rows
    first = query_dataset(dataset, state)
    pages = []
    for page in range(1, first.total_pages + 1):
        pages.extend(query_dataset(dataset, state.with_page(page)).rows)
    assert [r.id for r in pages] == [r.id for r in full]


def test_filters_are_idempotent():
    dataset = _dataset(PEOPLE)
    spec = FilterSpec("age", FilterOperator.GTE, 25)
    once = query_dataset(dataset, QueryState(filters=(spec,)))
    twice = query_dataset(dataset, QueryState(filters=(spec, spec)))
    assert _names(once) == _names(twice) == ["Alice", "Bob", "Diana"]


@pytest.mark.parametrize(
    "spec,expected",
    [
        (FilterSpec("city", "eq", "Lima"), ["Alice"]),
        (FilterSpec("city", "neq", "Lima"), ["Bob", "Charlie", "Diana", "Eve"]),
        (FilterSpec("age", "gt", 25), ["Alice", "Diana"]),
        (FilterSpec("age", "gte", "25"), ["Alice", "Bob", "Diana"]),
        (FilterSpec("age", "lt", 25), ["Eve"]),
        (FilterSpec("age", "lte", 25), ["Bob", "Eve"]),
        (FilterSpec("city", "contains", "IM"), ["Alice", "Charlie"]),
        (FilterSpec("city", "startsWith", "bo"), ["Eve"]),
        (FilterSpec("city", "endsWith", "TO"), ["Bob"]),
        (FilterSpec("city", "in", ["Quito", "Bogotá"]), ["Bob", "Eve"]),
        (FilterSpec("age", "between", [20, 35]), ["Alice", "Bob"]),
        (FilterSpec("age", "between", [20]), []),
        (FilterSpec("city", "in", "Quito"), []),
    ],
)
def test_filter_operators(spec, expected):
    assert _names(query_dataset(_dataset(PEOPLE), QueryState(filters=(spec,)))) == expected


def test_null_cells_never_satisfy_ordering_filters():
    for operator, value in (("lt", 1000), ("lte", 0), ("gte", -1), ("between", [-1, 1000])):
        names = _names(query_dataset(_dataset(PEOPLE), QueryState(filters=(FilterSpec("age", operator, value),))))
        assert "Charlie" not in names


def test_unknown_operator_keeps_every_row():
    result = query_dataset(_dataset(PEOPLE), QueryState(filters=(FilterSpec("age", "regex", ".*"),)))
    assert result.total_filtered == len(PEOPLE)


def test_equality_never_mixes_booleans_and_numbers():
    dataset = _dataset(PEOPLE)
    assert _names(query_dataset(dataset, QueryState(filters=(FilterSpec("active", "eq", 1),)))) == []
    assert _names(query_dataset(dataset, QueryState(filters=(FilterSpec("age", "eq", True),)))) == []
    assert _names(query_dataset(dataset, QueryState(filters=(FilterSpec("active", "eq", True),)))) == [
        "Alice",
        "Charlie",
        "Eve",
    ]


def test_date_values_compare_as_instants():
    records = [
        {"name": "a", "when": datetime(2024, 1, 1)},
        {"name": "b", "when": datetime(2024, 6, 1)},
        {"name": "c", "when": None},
    ]
    spec = FilterSpec("when", "gte", "2024-03-01")
    assert _names(query_dataset(_dataset(records), QueryState(filters=(spec,)))) == ["b"]


def test_search_filter_sort_combined():
    state = (
        QueryState()
        .with_search("a")
        .with_filter(FilterSpec("active", "eq", True))
        .with_sort(SortSpec("name", SortDirection.DESC))
    )
    assert _names(query_dataset(_dataset(PEOPLE), state)) == ["Charlie", "Alice"]


def test_query_does_not_modify_dataset():
    dataset = _dataset(PEOPLE)
    before = [r.id for r in dataset.rows]
    query_dataset(dataset, QueryState(sort=SortSpec("age", SortDirection.DESC), search="e"))
    assert [r.id for r in dataset.rows] == before
