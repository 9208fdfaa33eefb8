from __future__ import annotations

from sheetlens.models.dataset import DatasetMetadata, ProcessedDataset
from sheetlens.models.query_state import QueryResult
from sheetlens.models.schema import DataSchema
from sheetlens.services.summary import render_summary_line


def _dataset(warnings=()):
    schema = DataSchema(id="s", name="n", columns=())
    meta = DatasetMetadata(total_rows=6, source_file_name="sales.csv", warnings=tuple(warnings))
    return ProcessedDataset(schema=schema, rows=(), metadata=meta)


def test_render_summary_line_without_query():
    assert render_summary_line(_dataset()) == "SUMMARY file=sales.csv rows=6 columns=0 warnings=0"


def test_render_summary_line_with_query_result():
    result = QueryResult(rows=[], total_filtered=6, page=2, total_pages=2)
    line = render_summary_line(_dataset(["No data rows"]), result)
    assert line == "SUMMARY file=sales.csv rows=6 columns=0 warnings=1 visible=0 filtered=6 page=2/2"


def test_unknown_source_name():
    dataset = ProcessedDataset(
        schema=DataSchema(id="s", name="n", columns=()), rows=(), metadata=DatasetMetadata(total_rows=0)
    )
    assert render_summary_line(dataset).startswith("SUMMARY file=- ")
