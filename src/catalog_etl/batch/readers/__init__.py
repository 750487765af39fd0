"""
Raw spreadsheet readers.
"""

from .base_reader import ReadResult, SpreadsheetReader
from .csv_reader import CsvReader
from .file_reader import FileReader
from .xlsx_reader import XlsxReader

__all__ = [
    "ReadResult",
    "SpreadsheetReader",
    "CsvReader",
    "XlsxReader",
    "FileReader",
]
