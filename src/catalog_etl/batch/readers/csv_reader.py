"""
CSV reader for raw exports saved as comma-separated text.
"""

import csv
from pathlib import Path

from catalog_etl.core.models import RawRecord

from .base_reader import ReadResult, SpreadsheetReader


class CsvReader(SpreadsheetReader):
    """
    Reads a UTF-8 CSV file with a header row.

    All values arrive as trimmed text; blank and short-row cells read as "".
    """

    def __init__(self, delimiter: str = ","):
        """
        Initialize CSV reader.

        Args:
            delimiter: Field delimiter
        """
        self.delimiter = delimiter

    def read(self, file_path: str | Path) -> ReadResult:
        # utf-8-sig drops the BOM spreadsheet tools prepend on export
        with open(file_path, newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle, delimiter=self.delimiter)
            headers = next(reader, None)
            if headers is None:
                raise ValueError(f"No header row found in {file_path}")

            mapping, warnings = self.map_columns(headers)

            rows: list[RawRecord] = []
            for values in reader:
                row: RawRecord = {}
                for column, index in mapping.items():
                    value = values[index] if index < len(values) else ""
                    row[column] = self.normalize_cell(value)
                rows.append(row)

        return ReadResult(
            rows=self.drop_trailing_blank_rows(rows),
            headers=headers,
            warnings=warnings,
        )
