"""sheetlens: tabular file ingestion with column type inference and querying."""

from .models import DataSchema, ProcessedDataset, QueryResult, QueryState
from .services.offloader import ParseFailedError, ParseOffloader, UnsupportedFileError
from .services.pipeline import process_data
from .services.query import query_dataset

__version__ = "0.1.0"

__all__ = [
    "DataSchema",
    "ParseFailedError",
    "ParseOffloader",
    "ProcessedDataset",
    "QueryResult",
    "QueryState",
    "UnsupportedFileError",
    "process_data",
    "query_dataset",
]
