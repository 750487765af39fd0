"""
Dual-sink loading: the analytical store plus the optional document store.
"""

from catalog_etl.core.errors import SinkWriteError
from catalog_etl.core.models import CleanRecord, DualLoadResult
from catalog_etl.observability.logger import get_logger
from catalog_etl.observability.metrics import record_sink_write, sink_write_errors_total

from .analytical_sink import AnalyticalSink
from .document_sink import DocumentSink

logger = get_logger(__name__)


class DualSinkLoader:
    """
    Loads each batch into the analytical sink, then the document sink.

    An analytical failure raises SinkWriteError for the file; document
    batch failures are reported in the result and never raise.
    """

    def __init__(self, analytical: AnalyticalSink, document: DocumentSink | None = None):
        """
        Initialize loader.

        Args:
            analytical: Analytical (DuckDB) sink
            document: Document sink, or None to skip it
        """
        self.analytical = analytical
        self.document = document

    @property
    def sinks(self) -> list:
        return [s for s in (self.analytical, self.document) if s is not None]

    def open(self) -> None:
        """
        Open every sink.

        Raises:
            SinkInitializationError: If any sink cannot be initialized
        """
        for sink in self.sinks:
            sink.open()

    def close(self) -> None:
        """Close every sink; close errors are logged and never raised."""
        for sink in self.sinks:
            try:
                sink.close()
            except Exception:
                logger.exception("Error closing sink", extra={"sink": sink.name})

    def load(self, records: list[CleanRecord], batch_id: str) -> DualLoadResult:
        """
        Upsert a batch into both sinks.

        Args:
            records: Final records of one source file
            batch_id: Batch identifier (the source filename)

        Returns:
            DualLoadResult with one LoadResult per sink

        Raises:
            SinkWriteError: If the analytical load fails
        """
        try:
            analytical = self.analytical.load(records, batch_id)
        except SinkWriteError:
            sink_write_errors_total.labels(sink=self.analytical.name).inc()
            raise
        record_sink_write(self.analytical.name, analytical.inserted, analytical.updated)

        document = None
        if self.document is not None:
            document = self.document.load(records, batch_id)
            record_sink_write(self.document.name, document.inserted, document.updated)

        return DualLoadResult(analytical=analytical, document=document)
