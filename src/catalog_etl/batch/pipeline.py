"""
Batch pipeline orchestration.

Coordinates the flow per file:
parse filename → read → validate → deduplicate → enrich → verify media →
CSV export → load → audit log
"""

import time
from enum import Enum
from pathlib import Path

from catalog_etl.batch.dedup import dedupe
from catalog_etl.batch.enrich import enrich
from catalog_etl.batch.media import MediaLinkVerifier
from catalog_etl.batch.readers import FileReader
from catalog_etl.batch.writers import AuditLogWriter, write_clean_csv
from catalog_etl.core.config import PipelineConfig
from catalog_etl.core.errors import PipelineFatalError, SinkInitializationError
from catalog_etl.core.filename_parser import is_raw_data_file, parse_filename
from catalog_etl.core.models import FileProcessResult, RunResult, RunSummary
from catalog_etl.core.rules import transform_rows
from catalog_etl.observability.logger import get_logger, log_operation
from catalog_etl.observability.metrics import (
    file_processing_duration_seconds,
    files_processed_total,
    record_file_rows,
)
from catalog_etl.warehouse.loader import DualSinkLoader

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    DISCOVERING = "discovering"
    PROCESSING = "processing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    FAILED = "failed"


class CatalogPipeline:
    """
    Orchestrates one ETL run over a set of raw export files.

    Flow:
    1. Open the injected sinks (failure is fatal)
    2. Discover files in the input directory, or take the explicit list
    3. Drive each file through every stage; any error fails only that file
    4. Summarize the run and close the sinks
    """

    def __init__(
        self,
        config: PipelineConfig,
        loader: DualSinkLoader,
        reader: FileReader | None = None,
        verifier: MediaLinkVerifier | None = None,
        audit_writer: AuditLogWriter | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Run configuration
            loader: Sinks to load into; opened and closed by run()
            reader: Spreadsheet reader
            verifier: Media link verifier
            audit_writer: Per-file audit log writer
        """
        self.config = config
        self.loader = loader
        self.reader = reader or FileReader()
        self.verifier = verifier or MediaLinkVerifier(
            concurrency=config.media_concurrency,
            timeout=config.media_timeout,
        )
        self.audit_writer = audit_writer or AuditLogWriter(config.log_dir)
        self.state = PipelineState.IDLE

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline state change", extra={"from_state": self.state.value, "to_state": state.value})
        self.state = state

    def run(self) -> RunResult:
        """
        Execute the run.

        Returns:
            RunResult with one FileProcessResult per file and the summary

        Raises:
            PipelineFatalError: If the sinks cannot be opened or the input
                directory cannot be read
        """
        start_time = time.perf_counter()

        try:
            self._transition(PipelineState.INITIALIZING)
            try:
                self.loader.open()
            except SinkInitializationError as e:
                self._transition(PipelineState.FAILED)
                logger.error("Sink initialization failed", extra={"error": str(e)})
                raise PipelineFatalError(str(e)) from e

            self._transition(PipelineState.DISCOVERING)
            try:
                files = self.discover_files()
            except OSError as e:
                self._transition(PipelineState.FAILED)
                logger.error("File discovery failed", extra={"input_dir": str(self.config.input_dir), "error": str(e)})
                raise PipelineFatalError(f"Failed to discover files in {self.config.input_dir}: {e}") from e

            if self.config.force_reprocess:
                logger.info("Force reprocess requested; loads are idempotent so every file is processed")

            logger.info("Starting ETL run", extra={"files": len(files)})
            if not files:
                logger.warning("No raw data files found", extra={"input_dir": str(self.config.input_dir)})

            self._transition(PipelineState.PROCESSING)
            file_results = [self.process_file(path) for path in files]

            self._transition(PipelineState.SUMMARIZING)
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            summary = RunSummary.from_file_results(file_results, duration_ms)
            logger.info("ETL run complete", extra={**summary.model_dump(), "success_rate": summary.success_rate})

            self._transition(PipelineState.DONE)
            return RunResult(file_results=file_results, summary=summary)
        finally:
            self.loader.close()

    def discover_files(self) -> list[Path]:
        """
        Select the files for this run.

        Explicit names are resolved against the input directory unless
        absolute; otherwise the input directory is scanned for raw exports.

        Returns:
            File paths in lexicographic order (explicit lists keep their order)

        Raises:
            OSError: If the input directory cannot be read
        """
        input_dir = Path(self.config.input_dir)

        if self.config.files:
            return [
                Path(name) if Path(name).is_absolute() else input_dir / name
                for name in self.config.files
            ]

        return sorted(
            (path for path in input_dir.iterdir() if path.is_file() and is_raw_data_file(path.name)),
            key=lambda path: path.name,
        )

    def process_file(self, file_path: Path) -> FileProcessResult:
        """
        Drive one file through every stage.

        Never raises: any error is captured in the returned result.

        Args:
            file_path: Source file

        Returns:
            FileProcessResult
        """
        start_time = time.perf_counter()
        filename = file_path.name
        errors: list[str] = []
        file_info = None

        try:
            with log_operation("Processing file", logger=logger, file=filename):
                file_info = parse_filename(filename)

                read_result = self.reader.read(file_path)
                errors.extend(read_result.warnings)

                transformed = transform_rows(read_result.rows, file_info)

                deduped = dedupe(transformed.valid)
                if deduped.duplicates:
                    logger.info(
                        "Dropped duplicate records",
                        extra={"file": filename, "duplicates": len(deduped.duplicates)},
                    )

                records = self.verifier.verify(enrich(deduped.unique))

                csv_path = write_clean_csv(records, self.config.output_dir, file_info)

                load_result = self.loader.load(records, filename)
                errors.extend(load_result.errors)

                audit_log_path = self.audit_writer.write(file_info, filename, transformed)

        except Exception as e:
            logger.exception("File processing failed", extra={"file": filename})
            errors.append(str(e))
            duration = time.perf_counter() - start_time
            files_processed_total.labels(status="failure").inc()
            file_processing_duration_seconds.observe(duration)
            return FileProcessResult(
                file_path=str(file_path),
                file_info=file_info,
                success=False,
                errors=errors,
                duration_ms=int(duration * 1000),
            )

        duration = time.perf_counter() - start_time
        files_processed_total.labels(status="success").inc()
        file_processing_duration_seconds.observe(duration)
        record_file_rows(
            file_info.category_name,
            valid=len(deduped.unique),
            rejected=transformed.stats.rejected_count,
            duplicates=len(deduped.duplicates),
        )

        result = FileProcessResult(
            file_path=str(file_path),
            file_info=file_info,
            success=True,
            rows_processed=transformed.stats.total_processed,
            valid_rows=transformed.stats.valid_count,
            rejected_rows=transformed.stats.rejected_count,
            duplicate_rows=len(deduped.duplicates),
            media_verified=sum(1 for r in records if r.media_verified),
            csv_path=str(csv_path),
            audit_log_path=str(audit_log_path),
            load_result=load_result,
            errors=errors,
            duration_ms=int(duration * 1000),
        )
        logger.info(
            "File processed",
            extra={
                "file": filename,
                "rows": result.rows_processed,
                "valid": result.valid_rows,
                "rejected": result.rejected_rows,
                "duplicates": result.duplicate_rows,
                "media_verified": result.media_verified,
            },
        )
        return result
