from __future__ import annotations

import logging

from ..excel.reader import ProgressCallback, decode_kind
from ..models.config_models import AppConfig
from ..models.dataset import DatasetMetadata, ProcessedDataset, RawParseResult
from ..models.messages import ParseRequest, ParseStage, ResultMessage
from ..models.row_data import DataRow
from ..models.schema import DataSchema
from .normalizer import normalize_row
from .schema_generator import generate_schema

"""Pipeline: decoded rows -> schema (generated or supplied) -> normalized dataset.

``run_pipeline`` is the whole unit of work executed for one parse request, either
inside the worker process or inline by the offloader.
"""

__all__ = [
    "process_data",
    "run_pipeline",
]

logger = logging.getLogger(__name__)


def process_data(
    raw: RawParseResult,
    schema: DataSchema | None = None,
    *,
    config: AppConfig | None = None,
    source_file_name: str | None = None,
) -> ProcessedDataset:
    """Build a ProcessedDataset from a decode result.

    Args:
        raw: decoder output
        schema: externally supplied schema; inference is skipped when given
        config: application config (defaults when None)
        source_file_name: recorded in the dataset metadata

    Returns:
        ProcessedDataset whose metadata carries the decode errors as warnings
    """
    config = config or AppConfig()
    if schema is None:
        schema = generate_schema(
            raw.headers,
            raw.rows,
            schema_name=config.schema.name,
            currency_code=config.schema.currency_code,
            locale=config.schema.locale,
            threshold=config.inference.threshold,
            badge_max_distinct=config.inference.badge_max_distinct,
        )
    else:
        logger.debug("using supplied schema %r, inference skipped", schema.id)

    dayfirst = config.normalize.dayfirst
    rows = tuple(
        DataRow(row_index=index, values=normalize_row(raw_row, schema, dayfirst=dayfirst))
        for index, raw_row in enumerate(raw.rows)
    )
    metadata = DatasetMetadata(
        total_rows=len(rows),
        source_file_name=source_file_name,
        warnings=tuple(raw.errors),
    )
    return ProcessedDataset(schema=schema, rows=rows, metadata=metadata)


def run_pipeline(
    request: ParseRequest,
    *,
    config: AppConfig,
    schema: DataSchema | None = None,
    report: ProgressCallback | None = None,
) -> ResultMessage:
    """Decode, infer and normalize one file; return the success payload."""
    raw = decode_kind(
        request.file_bytes,
        request.file_kind,
        keep_na_strings=config.decode.keep_na_strings,
        report=report,
    )
    if report is not None:
        report(ParseStage.PROCESSING, 90, "Inferring column types...")
    dataset = process_data(raw, schema, config=config, source_file_name=request.file_name)
    if report is not None:
        report(ParseStage.COMPLETE, 100, "Done")
    return ResultMessage.build(raw, dataset)
