"""
Exception types raised by the catalog ETL pipeline.

Only PipelineFatalError (and the sink initialization error it wraps)
stops a run; everything else is captured per file or per row.
"""


class CatalogETLError(Exception):
    """Base class for pipeline errors."""


class ConfigError(CatalogETLError):
    """Raised when pipeline configuration cannot be loaded."""


class FilenameParseError(CatalogETLError, ValueError):
    """Raised when a source filename carries no usable ingestion date."""

    def __init__(self, filename: str, message: str):
        self.filename = filename
        super().__init__(f"{filename}: {message}")


class SinkInitializationError(CatalogETLError):
    """Raised when a sink cannot be opened or its schema created."""

    def __init__(self, sink: str, message: str):
        self.sink = sink
        super().__init__(f"Failed to initialize {sink} sink: {message}")


class SinkWriteError(CatalogETLError):
    """Raised when a batch cannot be written to a sink."""

    def __init__(self, sink: str, batch_id: str, message: str):
        self.sink = sink
        self.batch_id = batch_id
        super().__init__(f"Failed to load batch {batch_id} into {sink} sink: {message}")


class PipelineFatalError(CatalogETLError):
    """Raised when the run cannot continue (sinks or input directory unavailable)."""
