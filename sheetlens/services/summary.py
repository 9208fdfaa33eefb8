from __future__ import annotations

from ..models.dataset import ProcessedDataset
from ..models.query_state import QueryResult

"""Summary line rendering for the CLI SUMMARY output."""

__all__ = ["render_summary_line"]


def render_summary_line(dataset: ProcessedDataset, result: QueryResult | None = None) -> str:
    """Render the SUMMARY line for a processed dataset.

    Format:
    SUMMARY file={name} rows={rows} columns={columns} warnings={warnings}
    [visible={visible} filtered={filtered} page={page}/{pages}]

    Args:
        dataset: the processed dataset
        result: the query result shown to the user, if any

    Returns:
        Formatted SUMMARY line

    Examples:
        >>> from sheetlens.models import DataSchema, DatasetMetadata, ProcessedDataset
        >>> schema = DataSchema(id="s", name="Imported Data", columns=())
        >>> meta = DatasetMetadata(total_rows=0, source_file_name="a.csv")
        >>> render_summary_line(ProcessedDataset(schema=schema, rows=(), metadata=meta))
        'SUMMARY file=a.csv rows=0 columns=0 warnings=0'
    """
    name = dataset.metadata.source_file_name or "-"
    line = (
        f"SUMMARY file={name} "
        f"rows={dataset.metadata.total_rows} "
        f"columns={len(dataset.schema.columns)} "
        f"warnings={len(dataset.metadata.warnings)}"
    )
    if result is not None:
        line += (
            f" visible={len(result.rows)}"
            f" filtered={result.total_filtered}"
            f" page={result.page}/{result.total_pages}"
        )
    return line
