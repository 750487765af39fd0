"""
Command-line interface for the catalog ETL pipeline.

Usage:
    catalog-etl run [--input-dir DIR] [--files a.xlsx,b.xlsx] [options]
"""

import argparse
import sys

from catalog_etl.batch.pipeline import CatalogPipeline
from catalog_etl.core.config import PipelineConfig
from catalog_etl.core.errors import ConfigError, PipelineFatalError
from catalog_etl.observability.logger import get_logger
from catalog_etl.observability.metrics import start_metrics_server
from catalog_etl.warehouse.analytical_sink import AnalyticalSink
from catalog_etl.warehouse.connection import DatabaseConnectionPool
from catalog_etl.warehouse.document_sink import DocumentSink
from catalog_etl.warehouse.loader import DualSinkLoader

logger = get_logger(__name__)


def build_loader(config: PipelineConfig) -> DualSinkLoader:
    """
    Construct the sinks for a run (not yet opened).

    Raises:
        ValueError: If the document sink has no usable connection settings
    """
    analytical = AnalyticalSink(config.analytical_db)

    document = None
    if not config.skip_documents:
        document = DocumentSink(DatabaseConnectionPool(conninfo=config.document_url))

    return DualSinkLoader(analytical, document)


def run_command(args) -> int:
    """
    Execute the ETL run command.

    Args:
        args: Command-line arguments

    Returns:
        Process exit status
    """
    overrides = {
        "input_dir": args.input_dir,
        "output_dir": args.output_dir,
        "log_dir": args.log_dir,
        "analytical_db": args.analytical_db,
        "document_url": args.document_url,
        "skip_documents": args.skip_documents,
        "force_reprocess": args.force,
        "files": args.files,
        "media_concurrency": args.concurrency,
    }

    try:
        config = PipelineConfig.load(config_path=args.config, overrides=overrides)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if args.metrics_port:
        start_metrics_server(args.metrics_port)
        logger.info(f"Metrics exporter listening on port {args.metrics_port}")

    try:
        loader = build_loader(config)
    except ValueError as e:
        logger.error(f"Cannot configure document sink: {e}")
        return 1

    pipeline = CatalogPipeline(config=config, loader=loader)

    try:
        result = pipeline.run()
    except PipelineFatalError as e:
        logger.error(f"ETL run failed: {e}")
        return 1

    summary = result.summary
    logger.info("=" * 60)
    logger.info("ETL RUN COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Files processed: {summary.total_files}")
    logger.info(f"Successful: {summary.successful_files}")
    logger.info(f"Failed: {summary.failed_files}")
    logger.info(f"Total rows: {summary.total_rows_processed}")
    logger.info(f"Valid rows: {summary.total_valid_rows}")
    logger.info(f"Rejected rows: {summary.total_rejected_rows}")
    logger.info(f"Success rate: {summary.success_rate}%")
    logger.info(f"Duration: {summary.total_duration_ms / 1000:.1f}s")
    logger.info("=" * 60)

    for file_result in result.file_results:
        if not file_result.success:
            logger.error(f"Failed: {file_result.file_path}: {'; '.join(file_result.errors)}")

    return result.exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalog-etl",
        description="Catalog spreadsheet ETL pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process every raw export in ./data_raw
  catalog-etl run

  # Process specific files without the document sink
  catalog-etl run --files 20250811_fantasy_raw_data.xlsx --skip-documents

  # Use a YAML configuration file and expose metrics
  catalog-etl run --config config/etl.yaml --metrics-port 9108
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the ETL pipeline")
    run_parser.add_argument("--input-dir", help="Directory with raw exports (default: ./data_raw)")
    run_parser.add_argument("--output-dir", help="Directory for cleaned CSV files (default: ./data_cleaned)")
    run_parser.add_argument("--log-dir", help="Directory for audit logs (default: ./logs)")
    run_parser.add_argument("--analytical-db", help="DuckDB database file (default: ./catalog.duckdb)")
    run_parser.add_argument("--document-url", help="PostgreSQL connection string for the document sink")
    run_parser.add_argument(
        "--skip-documents",
        action="store_true",
        default=None,
        help="Skip the document sink"
    )
    run_parser.add_argument(
        "--force",
        action="store_true",
        default=None,
        help="Force reprocessing of all files"
    )
    run_parser.add_argument("--files", help="Comma-separated list of files to process")
    run_parser.add_argument("--concurrency", type=int, help="Concurrent media probes (default: 10)")
    run_parser.add_argument("--config", help="YAML configuration file")
    run_parser.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "run":
        return run_command(args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
