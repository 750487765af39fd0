"""
Cleaned CSV export of validated records.
"""

import csv
import json
from datetime import date
from pathlib import Path
from typing import Any, Iterable

from catalog_etl.core.models import CleanRecord, SourceFileInfo

CSV_COLUMNS = tuple(CleanRecord.model_fields)


def format_csv_value(value: Any) -> str:
    """Render one field as CSV text: lists as JSON, dates as ISO, booleans lower-case."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def write_clean_csv(
    records: Iterable[CleanRecord],
    output_dir: str | Path,
    file_info: SourceFileInfo,
) -> Path:
    """
    Write records to ``<output_dir>/<YYYYMMDD><category_key>.csv``.

    Args:
        records: Final records of one source file
        output_dir: Export directory (created if missing)
        file_info: Metadata of the source file

    Returns:
        Path of the written file
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    csv_path = output_path / f"{file_info.stem}.csv"

    with open(csv_path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_COLUMNS)
        for record in records:
            writer.writerow(format_csv_value(getattr(record, column)) for column in CSV_COLUMNS)

    return csv_path
