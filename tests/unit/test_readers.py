"""
Unit tests for spreadsheet readers.
"""

import csv
import zipfile

import pytest
from openpyxl import Workbook

from catalog_etl.batch.readers import CsvReader, FileReader, XlsxReader
from catalog_etl.core.models import RAW_COLUMNS
from catalog_etl.core.rules import RowValidator


def _write_xlsx(path, headers, rows, extra_sheet=False):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Books"
    sheet.append(headers)
    for row in rows:
        sheet.append(row)
    if extra_sheet:
        workbook.create_sheet("Notes")
    workbook.save(path)
    return sheet


def _write_csv(path, headers, rows):
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        writer.writerows(rows)


@pytest.mark.unit
class TestXlsxReader:
    """Tests for XlsxReader"""

    def test_reads_rows_with_native_types(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(["Title", "ASIN", "Author", "price", "nReviews"])
        sheet.append(["Dragon Reborn", "B000000001", "Jane Doe", 4.99, 156])
        workbook.save(path)

        result = XlsxReader().read(path)

        assert len(result.rows) == 1
        row = result.rows[0]
        assert row["Title"] == "Dragon Reborn"
        assert row["ASIN"] == "B000000001"
        assert row["price"] == 4.99
        assert row["nReviews"] == 156
        assert "Series" not in row

    def test_author_hyperlink_rendered_as_link(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(["Title", "ASIN", "Author"])
        sheet.append(["Dragon Reborn", "B000000001", "Jane"])
        sheet.append(["Second", "B000000002", "John"])
        sheet["C2"].hyperlink = "https://x.com/a"
        workbook.save(path)

        result = XlsxReader().read(path)

        assert result.rows[0]["Author"] == "[Jane](https://x.com/a)"
        assert result.rows[1]["Author"] == "John"

    def test_missing_columns_warned(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        _write_xlsx(path, ["Title", "ASIN", "Author"], [["Dragon", "B1", "Jane"]])

        result = XlsxReader().read(path)

        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Missing expected columns:")
        assert "coverImage" in result.warnings[0]
        assert "Title" not in result.warnings[0]

    def test_headers_matched_case_insensitively(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        _write_xlsx(path, [" title ", "asin", "AUTHOR"], [["Dragon", "B1", "Jane"]])

        result = XlsxReader().read(path)

        assert result.rows == [{"Title": "Dragon", "ASIN": "B1", "Author": "Jane"}]
        assert result.headers == [" title ", "asin", "AUTHOR"]

    def test_extra_sheets_warned(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        _write_xlsx(path, list(RAW_COLUMNS), [], extra_sheet=True)

        result = XlsxReader().read(path)

        assert result.warnings == ["Multiple sheets found, using first sheet: Books"]

    def test_blank_cells_read_as_empty_text(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        _write_xlsx(path, ["Title", "ASIN", "Author"], [["  ", "B1", None]])

        result = XlsxReader().read(path)

        assert result.rows == [{"Title": "", "ASIN": "B1", "Author": ""}]

    def test_unreadable_file_raises(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        path.write_text("not a workbook")

        with pytest.raises(zipfile.BadZipFile):
            XlsxReader().read(path)


@pytest.mark.unit
class TestCsvReader:
    """Tests for CsvReader"""

    def test_reads_rows_as_text(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        _write_csv(path, ["Title", "ASIN", "Author", "price"], [["Dragon", "B1", "Jane", " 4.99 "]])

        result = CsvReader().read(path)

        assert result.rows == [{"Title": "Dragon", "ASIN": "B1", "Author": "Jane", "price": "4.99"}]

    def test_short_rows_and_blanks(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        _write_csv(path, ["Title", "ASIN", "Author"], [["Dragon", ""]])

        result = CsvReader().read(path)

        assert result.rows == [{"Title": "Dragon", "ASIN": "", "Author": ""}]

    def test_byte_order_mark_ignored(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        path.write_text("Title,ASIN,Author\nDragon,B1,Jane\n", encoding="utf-8-sig")

        result = CsvReader().read(path)

        assert result.rows[0]["Title"] == "Dragon"

    def test_trailing_blank_rows_dropped(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        _write_csv(path, ["Title", "ASIN", "Author"], [["", "", ""], ["Dragon", "B1", "Jane"], ["", "", ""], [""]])

        result = CsvReader().read(path)

        assert len(result.rows) == 2
        assert result.rows[0] == {"Title": "", "ASIN": "", "Author": ""}

    def test_empty_file_raises(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        path.write_text("")

        with pytest.raises(ValueError, match="No header row"):
            CsvReader().read(path)


@pytest.mark.unit
class TestReadThenValidate:
    """Tests for rows flowing from a reader into the row validator"""

    def test_blank_flag_cell_is_false(self, tmp_path, file_info):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        path.write_text("Title,ASIN,Author,hasRomance,hasSupernatural\nDragon,B1,Jane,,no\n")

        (row,) = CsvReader().read(path).rows
        record = RowValidator().validate(row, file_info).record

        assert row["hasRomance"] == ""
        assert record.has_romance is False
        assert record.has_supernatural is False

    def test_blank_xlsx_cells_in_optional_columns(self, tmp_path, file_info):
        path = tmp_path / "20250811_fantasy_raw_data.xlsx"
        _write_xlsx(
            path,
            ["Title", "ASIN", "Author", "hasRomance", "price", "Series"],
            [["Dragon", "B1", "Jane", None, None, "  "]],
        )

        (row,) = XlsxReader().read(path).rows
        record = RowValidator().validate(row, file_info).record

        assert record.has_romance is False
        assert record.price is None
        assert record.series is None


@pytest.mark.unit
class TestFileReader:
    """Tests for extension dispatch"""

    def test_dispatches_csv(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.csv"
        _write_csv(path, ["Title", "ASIN", "Author"], [["Dragon", "B1", "Jane"]])

        assert len(FileReader().read(path).rows) == 1

    def test_dispatches_xlsx_case_insensitively(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.XLSX"
        _write_xlsx(path, ["Title", "ASIN", "Author"], [["Dragon", "B1", "Jane"]])

        assert len(FileReader().read(path).rows) == 1

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "20250811_fantasy_raw_data.txt"
        path.write_text("x")

        with pytest.raises(ValueError, match="Unsupported file format"):
            FileReader().read(path)
