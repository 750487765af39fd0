"""
Per-file audit trail: a human-readable log plus a JSON-lines file of rejected rows.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

from catalog_etl.core.models import SourceFileInfo, TransformResult

REJECTED_SUFFIX = ".rejected.jsonl"


class AuditLogWriter:
    """
    Writes ``<log_dir>/<YYYYMMDD><category_key>.log`` and its
    ``.rejected.jsonl`` sibling for one processed file.
    """

    def __init__(self, log_dir: str | Path):
        """
        Initialize audit writer.

        Args:
            log_dir: Directory for audit files (created on first write)
        """
        self.log_dir = Path(log_dir)

    def log_path(self, file_info: SourceFileInfo) -> Path:
        return self.log_dir / f"{file_info.stem}.log"

    def rejected_path(self, file_info: SourceFileInfo) -> Path:
        return self.log_dir / f"{file_info.stem}{REJECTED_SUFFIX}"

    def write(self, file_info: SourceFileInfo, source_name: str, result: TransformResult) -> Path:
        """
        Write both audit files for one source file.

        Args:
            file_info: Metadata of the source file
            source_name: Source filename shown in the header
            result: Validation outcome of the file

        Returns:
            Path of the .log file
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)

        log_path = self.log_path(file_info)
        log_path.write_text(self.render(file_info, source_name, result), encoding="utf-8")

        with open(self.rejected_path(file_info), "w", encoding="utf-8") as handle:
            for rejected in result.rejected:
                entry = {
                    "line_number": rejected.line_number,
                    "errors": rejected.errors,
                    "raw_payload": rejected.raw_payload,
                }
                # Raw payloads may hold dates read from the sheet
                handle.write(json.dumps(entry, default=str, ensure_ascii=False) + "\n")

        return log_path

    @staticmethod
    def render(file_info: SourceFileInfo, source_name: str, result: TransformResult) -> str:
        stats = result.stats
        lines = [
            f"ETL Log for {source_name}",
            f"Generated: {datetime.now(timezone.utc).isoformat()}",
            f"Category: {file_info.category_name}",
            f"Date: {file_info.ingestion_date.isoformat()}",
            "",
            f"Total rows processed: {stats.total_processed}",
            f"Valid rows: {stats.valid_count}",
            f"Rejected rows: {stats.rejected_count}",
            f"Success rate: {stats.success_rate}%",
        ]

        if result.rejected:
            lines.append("")
            lines.append("Rejected rows:")
            lines.extend(rejected.audit_line() for rejected in result.rejected)

        return "\n".join(lines) + "\n"
