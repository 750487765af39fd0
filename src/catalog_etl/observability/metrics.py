"""
Prometheus metrics collection for catalog-etl

Counters and histograms for row quality, file outcomes, media probing
and sink writes. All metrics live on a dedicated registry so tests and
embedding processes never collide with the default global registry.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

rows_processed_total = Counter(
    name="catalog_etl_rows_processed_total",
    documentation="Total number of spreadsheet rows processed",
    labelnames=["category", "status"],  # status: valid, rejected, duplicate
    registry=REGISTRY,
)

files_processed_total = Counter(
    name="catalog_etl_files_processed_total",
    documentation="Total number of source files processed",
    labelnames=["status"],  # status: success, failure
    registry=REGISTRY,
)

file_processing_duration_seconds = Histogram(
    name="catalog_etl_file_processing_duration_seconds",
    documentation="Time spent driving one source file through every stage",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

# =======================
# MEDIA METRICS
# =======================

media_probes_total = Counter(
    name="catalog_etl_media_probes_total",
    documentation="Total number of media URL probes",
    labelnames=["result"],  # result: verified, rejected
    registry=REGISTRY,
)

# =======================
# SINK METRICS
# =======================

sink_writes_total = Counter(
    name="catalog_etl_sink_writes_total",
    documentation="Total number of records written to a sink",
    labelnames=["sink", "operation"],  # operation: insert, update
    registry=REGISTRY,
)

sink_write_errors_total = Counter(
    name="catalog_etl_sink_write_errors_total",
    documentation="Total number of failed sink write batches",
    labelnames=["sink"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: the exporter is only needed when the CLI asks for it
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def record_file_rows(category: str, valid: int, rejected: int, duplicates: int) -> None:
    """
    Record row outcome counts for one processed file

    Args:
        category: Category display name
        valid: Rows that passed validation
        rejected: Rows rejected by the validator
        duplicates: Valid rows dropped by the deduplicator
    """
    if valid:
        rows_processed_total.labels(category=category, status="valid").inc(valid)
    if rejected:
        rows_processed_total.labels(category=category, status="rejected").inc(rejected)
    if duplicates:
        rows_processed_total.labels(category=category, status="duplicate").inc(duplicates)


def record_sink_write(sink: str, inserted: int, updated: int) -> None:
    """
    Record the outcome of one sink load

    Args:
        sink: Sink name ("analytical" or "document")
        inserted: Rows inserted
        updated: Rows updated
    """
    if inserted:
        sink_writes_total.labels(sink=sink, operation="insert").inc(inserted)
    if updated:
        sink_writes_total.labels(sink=sink, operation="update").inc(updated)
