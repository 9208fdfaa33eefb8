from __future__ import annotations
from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from sheetlens.models import (
    DataRow,
    DataSchema,
    ErrorMessage,
    FileKind,
    FilterOperator,
    FilterSpec,
    ParseRequest,
    ParseStage,
    ProgressMessage,
    QueryState,
    SchemaError,
    SortDirection,
    SortSpec,
    cell_text,
    is_blank,
    to_native,
)


def test_cell_text_forms():
    assert cell_text(None) == ""
    assert cell_text(True) == "true"
    assert cell_text(1.0) == "1"
    assert cell_text(2.5) == "2.5"
    assert cell_text(date(2024, 1, 5)) == "2024-01-05"
    assert cell_text(datetime(2024, 1, 5, 8, 0)) == "2024-01-05T08:00:00"


def test_is_blank_and_to_native():
    assert is_blank(None) and is_blank("") and is_blank(float("nan")) and is_blank(pd.NaT)
    assert not is_blank(0) and not is_blank(" ") and not is_blank(False)
    assert to_native(np.int64(3)) == 3 and type(to_native(np.int64(3))) is int
    assert to_native(np.float64("nan")) is None
    assert to_native(pd.Timestamp("2024-01-05")) == datetime(2024, 1, 5)


def test_row_ids_are_unique():
    ids = {DataRow(row_index=i, values={}).id for i in range(100)}
    assert len(ids) == 100


class TestQueryState:

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError):
            QueryState(page_size=0)

    def test_search_and_filter_reset_page(self):
        state = QueryState(page=3)
        assert state.with_search("x").page == 1
        assert state.with_filter(FilterSpec("a", "eq", 1)).page == 1
        assert state.with_page_size(10).page == 1
        assert state.with_sort(SortSpec("a")).page == 3

    def test_one_filter_per_column(self):
        state = QueryState().with_filter(FilterSpec("a", "eq", 1)).with_filter(FilterSpec("b", "eq", 2))
        state = state.with_filter(FilterSpec("a", "gt", 5))
        assert [(f.column, f.operator) for f in state.filters] == [("b", "eq"), ("a", "gt")]
        assert [f.column for f in state.without_filter("b").filters] == ["a"]

    def test_clear_filters_also_clears_search(self):
        state = QueryState(search="x").with_filter(FilterSpec("a", "eq", 1)).clear_filters()
        assert state.filters == () and state.search == ""

    def test_operator_enum_is_stored_as_string(self):
        assert FilterSpec("a", FilterOperator.STARTS_WITH, "x").operator == "startsWith"
        assert SortSpec("a", "desc").direction is SortDirection.DESC


SCHEMA_DOC = {
    "id": "sales",
    "name": "Sales",
    "columns": [
        {
            "key": "status",
            "label": "Status",
            "format": {"type": "badge", "badgeColors": {"open": {"bg": "#dbeafe", "text": "#1e40af"}}},
            "align": "center",
        },
        {
            "key": "amount",
            "label": "Amount",
            "format": {"type": "currency", "currency": "BRL", "locale": "pt-BR", "decimals": 2},
            "searchable": False,
        },
    ],
    "defaultSort": {"column": "amount", "direction": "desc"},
    "features": {"charts": False, "columnToggle": False},
}


def test_schema_from_dict_and_back():
    schema = DataSchema.from_dict(SCHEMA_DOC)
    assert schema.keys == ["status", "amount"]
    assert schema.column("status").format.badge_colors["open"].bg == "#dbeafe"
    assert schema.default_sort == SortSpec("amount", SortDirection.DESC)
    assert schema.features.charts is False and schema.features.column_toggle is False
    assert schema.features.export is True
    again = DataSchema.from_dict(schema.to_dict())
    assert again == schema


@pytest.mark.parametrize(
    "doc",
    [
        {"name": "no id", "columns": []},
        {"id": "x", "name": "n", "columns": [{"key": "a", "label": "A", "format": {"type": "money"}}]},
        {"id": "x", "name": "n", "columns": [], "unexpected": 1},
    ],
)
def test_schema_from_dict_rejects_invalid_documents(doc):
    with pytest.raises(SchemaError, match="schema validation failed"):
        DataSchema.from_dict(doc)


def test_query_state_for_dataset_uses_default_sort():
    from sheetlens.models import DatasetMetadata, ProcessedDataset

    dataset = ProcessedDataset(
        schema=DataSchema.from_dict(SCHEMA_DOC), rows=(), metadata=DatasetMetadata(total_rows=0)
    )
    state = QueryState.for_dataset(dataset, page_size=10)
    assert state.sort == SortSpec("amount", SortDirection.DESC)
    assert state.page_size == 10


class TestWorkerMessages:

    def test_progress_percent_range(self):
        with pytest.raises(ValueError):
            ProgressMessage(ParseStage.PARSING, 101, "x")
        assert ProgressMessage(ParseStage.COMPLETE, 100, "Done").to_dict() == {
            "type": "progress",
            "payload": {"stage": "complete", "percent": 100, "message": "Done"},
        }

    def test_parse_request_wire_names(self):
        payload = ParseRequest(b"abc", "a.csv", FileKind.CSV).to_dict()["payload"]
        assert payload == {"fileBytes": b"abc", "fileName": "a.csv", "fileKind": "delimited-text"}

    def test_error_from_exception_keeps_stack(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            message = ErrorMessage.from_exception(e)
        assert message.message == "boom"
        assert "RuntimeError: boom" in message.stack
        assert message.to_dict()["type"] == "error"
