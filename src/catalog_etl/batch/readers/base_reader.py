"""
Spreadsheet reader interface and shared column mapping.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from catalog_etl.core.models import RAW_COLUMNS, RawRecord


class ReadResult(BaseModel):
    """
    Rows read from one spreadsheet.

    Attributes:
        rows: Raw rows keyed by canonical column header, in file order
        headers: Headers exactly as found in the file
        warnings: Non-fatal problems (missing columns, extra sheets)
    """

    rows: list[dict[str, Any]] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SpreadsheetReader(ABC):
    """
    Reads one spreadsheet file into raw rows.

    Only the expected catalog columns are extracted; headers are matched
    case-insensitively and re-keyed to their canonical spelling.
    """

    @abstractmethod
    def read(self, file_path: str | Path) -> ReadResult:
        """
        Read a spreadsheet.

        Args:
            file_path: Path to the file

        Returns:
            ReadResult with rows and warnings
        """
        pass

    @staticmethod
    def map_columns(headers: list[Any]) -> tuple[dict[str, int], list[str]]:
        """
        Locate the expected columns in a header row.

        Returns:
            (canonical column -> index, warnings)
        """
        normalized = [str(h).strip().lower() if h is not None else "" for h in headers]

        mapping: dict[str, int] = {}
        for column in RAW_COLUMNS:
            try:
                mapping[column] = normalized.index(column.lower())
            except ValueError:
                continue

        warnings = []
        missing = [column for column in RAW_COLUMNS if column not in mapping]
        if missing:
            warnings.append(f"Missing expected columns: {', '.join(missing)}")

        return mapping, warnings

    @staticmethod
    def normalize_cell(value: Any) -> Any:
        """Trim strings; empty cells read as ''."""
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @staticmethod
    def drop_trailing_blank_rows(rows: list[RawRecord]) -> list[RawRecord]:
        """Remove empty rows left at the end of a sheet; inner rows keep their line numbers."""
        end = len(rows)
        while end and all(v is None or v == "" for v in rows[end - 1].values()):
            end -= 1
        return rows[:end]
