"""
Generic file reader dispatching on file extension (xlsx, xlsm, csv).
"""

from pathlib import Path

from .base_reader import ReadResult, SpreadsheetReader
from .csv_reader import CsvReader
from .xlsx_reader import XlsxReader


class FileReader:
    """
    Generic file reader supporting every raw export format.
    """

    def __init__(self):
        xlsx_reader = XlsxReader()
        self.readers: dict[str, SpreadsheetReader] = {
            ".xlsx": xlsx_reader,
            ".xlsm": xlsx_reader,
            ".csv": CsvReader(),
        }

    def read(self, file_path: str | Path) -> ReadResult:
        """
        Read a raw export file.

        Args:
            file_path: Path to file

        Returns:
            ReadResult with rows and warnings

        Raises:
            ValueError: If the file extension is unsupported
        """
        suffix = Path(file_path).suffix.lower()
        reader = self.readers.get(suffix)
        if reader is None:
            raise ValueError(f"Unsupported file format: {suffix or file_path}")
        return reader.read(file_path)
