"""
Core data models for the catalog ETL pipeline.

All typed models use Pydantic for runtime validation and type safety.
"""

from .clean_record import CleanRecord, CompositeKey
from .load_result import DualLoadResult, LoadResult
from .raw_record import RAW_COLUMNS, RawRecord
from .rejected_row import RejectedRow
from .run_result import FileProcessResult, RunResult, RunSummary
from .source_file_info import SourceFileInfo
from .validation_result import RowValidationResult, TransformResult, TransformStats

__all__ = [
    "SourceFileInfo",
    "RawRecord",
    "RAW_COLUMNS",
    "CleanRecord",
    "CompositeKey",
    "RowValidationResult",
    "RejectedRow",
    "TransformResult",
    "TransformStats",
    "LoadResult",
    "DualLoadResult",
    "FileProcessResult",
    "RunSummary",
    "RunResult",
]
