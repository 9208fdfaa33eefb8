"""Domain models for sheetlens.

This package contains the data model shared by the decode, inference,
normalization and query stages.
"""

from .cell import CellValue, cell_text, is_blank, is_number, to_native
from .column import Alignment, BadgeColor, ColumnDefinition, ColumnFormat, ColumnType
from .config_models import AppConfig
from .dataset import DatasetMetadata, ProcessedDataset, RawParseResult
from .messages import (
    ErrorMessage,
    FileKind,
    ParseRequest,
    ParseStage,
    ProgressMessage,
    ReadyMessage,
    ResultMessage,
)
from .query_state import (
    FilterOperator,
    FilterSpec,
    QueryResult,
    QueryState,
    SortDirection,
    SortSpec,
)
from .row_data import DataRow
from .schema import DataSchema, SchemaError, SchemaFeatures

__all__ = [
    # Values
    "CellValue",
    "cell_text",
    "is_blank",
    "is_number",
    "to_native",
    # Schema
    "Alignment",
    "BadgeColor",
    "ColumnDefinition",
    "ColumnFormat",
    "ColumnType",
    "DataSchema",
    "SchemaError",
    "SchemaFeatures",
    # Data
    "DataRow",
    "DatasetMetadata",
    "ProcessedDataset",
    "RawParseResult",
    # Query
    "FilterOperator",
    "FilterSpec",
    "QueryResult",
    "QueryState",
    "SortDirection",
    "SortSpec",
    # Worker protocol
    "ErrorMessage",
    "FileKind",
    "ParseRequest",
    "ParseStage",
    "ProgressMessage",
    "ReadyMessage",
    "ResultMessage",
    # Configuration
    "AppConfig",
]
