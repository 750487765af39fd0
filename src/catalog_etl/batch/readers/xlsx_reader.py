"""
Excel reader using openpyxl.
"""

from pathlib import Path

from openpyxl import load_workbook

from catalog_etl.core.models import RawRecord
from catalog_etl.core.models import raw_record as columns

from .base_reader import ReadResult, SpreadsheetReader


class XlsxReader(SpreadsheetReader):
    """
    Reads the first worksheet of an .xlsx/.xlsm workbook.

    Author cells carrying a hyperlink are rendered as ``[name](url)`` so
    the row validator can split the author page URL out.
    """

    def read(self, file_path: str | Path) -> ReadResult:
        # Hyperlinks are only exposed outside read-only mode
        workbook = load_workbook(filename=file_path, data_only=True)
        try:
            if not workbook.worksheets:
                raise ValueError(f"No worksheets found in {file_path}")

            worksheet = workbook.worksheets[0]
            warnings = []
            if len(workbook.worksheets) > 1:
                warnings.append(f"Multiple sheets found, using first sheet: {worksheet.title}")

            sheet_rows = worksheet.iter_rows()
            header_cells = next(sheet_rows, None)
            if header_cells is None:
                raise ValueError(f"No data found in worksheet {worksheet.title}")

            headers = [cell.value for cell in header_cells]
            mapping, column_warnings = self.map_columns(headers)
            warnings.extend(column_warnings)

            rows: list[RawRecord] = []
            for cells in sheet_rows:
                row: RawRecord = {}
                for column, index in mapping.items():
                    cell = cells[index] if index < len(cells) else None
                    value = self.normalize_cell(cell.value if cell is not None else None)

                    link = getattr(cell, "hyperlink", None)
                    if column == columns.AUTHOR and value and link is not None and link.target:
                        value = f"[{value}]({link.target})"

                    row[column] = value
                rows.append(row)
        finally:
            workbook.close()

        return ReadResult(
            rows=self.drop_trailing_blank_rows(rows),
            headers=[str(h) if h is not None else "" for h in headers],
            warnings=warnings,
        )
