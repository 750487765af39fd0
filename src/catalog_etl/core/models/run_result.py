"""
Per-file and per-run outcome models produced by the pipeline orchestrator.
"""

from typing import List

from pydantic import BaseModel, Field

from .load_result import DualLoadResult
from .source_file_info import SourceFileInfo


class FileProcessResult(BaseModel):
    """
    Outcome of driving one source file through the pipeline.

    Attributes:
        file_path: Source file path
        file_info: Parsed filename metadata (None if the filename was malformed)
        success: Whether every stage completed
        rows_processed: Rows read from the file
        valid_rows: Rows that passed validation
        rejected_rows: Rows rejected by validation
        duplicate_rows: Valid rows dropped as duplicates
        media_verified: Records whose media URL served an image
        csv_path: Cleaned CSV export path
        audit_log_path: Audit log path
        load_result: Sink load outcome
        errors: Warnings and errors collected for this file
        duration_ms: Wall-clock processing time
    """

    file_path: str
    file_info: SourceFileInfo | None = None
    success: bool
    rows_processed: int = 0
    valid_rows: int = 0
    rejected_rows: int = 0
    duplicate_rows: int = 0
    media_verified: int = 0
    csv_path: str | None = None
    audit_log_path: str | None = None
    load_result: DualLoadResult | None = None
    errors: List[str] = Field(default_factory=list)
    duration_ms: int = 0


class RunSummary(BaseModel):
    """
    Aggregate statistics for one pipeline run.
    """

    total_files: int = 0
    successful_files: int = 0
    failed_files: int = 0
    total_rows_processed: int = 0
    total_valid_rows: int = 0
    total_rejected_rows: int = 0
    total_duration_ms: int = 0

    @property
    def success_rate(self) -> int:
        if self.total_rows_processed == 0:
            return 0
        return round(self.total_valid_rows / self.total_rows_processed * 100)

    @classmethod
    def from_file_results(cls, results: List[FileProcessResult], duration_ms: int) -> "RunSummary":
        successful = sum(1 for r in results if r.success)
        return cls(
            total_files=len(results),
            successful_files=successful,
            failed_files=len(results) - successful,
            total_rows_processed=sum(r.rows_processed for r in results),
            total_valid_rows=sum(r.valid_rows for r in results),
            total_rejected_rows=sum(r.rejected_rows for r in results),
            total_duration_ms=duration_ms,
        )


class RunResult(BaseModel):
    """
    Everything a run produced: one result per file plus the summary.
    """

    file_results: List[FileProcessResult] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)

    @property
    def exit_code(self) -> int:
        return 1 if self.summary.failed_files > 0 else 0
