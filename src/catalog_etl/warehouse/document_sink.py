"""
Document sink: batched JSONB document upserts into PostgreSQL.

Implements INSERT ... ON CONFLICT UPDATE per record for reliable,
idempotent writes. Batches commit independently; a failing batch is
rolled back and reported while the remaining batches continue.
"""

from datetime import datetime, timezone
from typing import Any

import psycopg
from psycopg.types.json import Jsonb

from catalog_etl.core.errors import SinkInitializationError
from catalog_etl.core.models import CleanRecord, LoadResult
from catalog_etl.observability.logger import get_logger
from catalog_etl.observability.metrics import sink_write_errors_total

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

SINK_NAME = "document"

TABLE_NAME = "catalog_documents"

DEFAULT_BATCH_SIZE = 100

SCHEMA_SQL = (
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        ingestion_date DATE NOT NULL,
        category TEXT NOT NULL,
        natural_key TEXT NOT NULL,
        title TEXT NOT NULL,
        author TEXT NOT NULL,
        release_date DATE,
        topic_tags TEXT[],
        subcategories TEXT[],
        document JSONB NOT NULL,
        source_file TEXT,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        PRIMARY KEY (ingestion_date, category, natural_key)
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_catalog_documents_category ON {TABLE_NAME}(category)",
    f"CREATE INDEX IF NOT EXISTS idx_catalog_documents_author ON {TABLE_NAME}(author)",
)

# xmax is 0 only for a freshly inserted row version
UPSERT_SQL = f"""
    INSERT INTO {TABLE_NAME} (
        ingestion_date, category, natural_key, title, author,
        release_date, topic_tags, subcategories, document, source_file, updated_at
    )
    VALUES (
        %(ingestion_date)s, %(category)s, %(natural_key)s, %(title)s, %(author)s,
        %(release_date)s, %(topic_tags)s, %(subcategories)s, %(document)s, %(source_file)s, %(updated_at)s
    )
    ON CONFLICT (ingestion_date, category, natural_key) DO UPDATE SET
        title = EXCLUDED.title,
        author = EXCLUDED.author,
        release_date = EXCLUDED.release_date,
        topic_tags = EXCLUDED.topic_tags,
        subcategories = EXCLUDED.subcategories,
        document = EXCLUDED.document,
        source_file = EXCLUDED.source_file,
        updated_at = EXCLUDED.updated_at
    RETURNING (xmax = 0) AS inserted
"""

STATS_SQL = f"""
    SELECT
        COUNT(*) AS total_documents,
        COUNT(DISTINCT category) AS unique_categories,
        COUNT(DISTINCT author) AS unique_authors,
        AVG((document->>'rating')::numeric) AS avg_rating,
        AVG((document->>'price')::numeric) AS avg_price,
        MIN(ingestion_date) AS earliest_date,
        MAX(ingestion_date) AS latest_date
    FROM {TABLE_NAME}
"""


def to_document(record: CleanRecord, updated_at: datetime) -> dict[str, Any]:
    """
    Serialize a record as its JSONB document.

    Dates are ISO strings inside the document; the row also carries them
    as native DATE columns for range queries.
    """
    document = record.model_dump(mode="json")
    document["updated_at"] = updated_at.isoformat()
    return document


class DocumentSink:
    """
    PostgreSQL JSONB document store keyed by (ingestion_date, category, natural_key).
    """

    name = SINK_NAME

    def __init__(self, pool: DatabaseConnectionPool, batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Initialize document sink.

        Args:
            pool: Database connection pool (opened by open())
            batch_size: Records per committed batch
        """
        self.pool = pool
        self.batch_size = batch_size

    def open(self) -> None:
        """
        Open the pool and create the table and indexes.

        Raises:
            SinkInitializationError: If the database is unreachable or the schema cannot be created
        """
        try:
            self.pool.open()
            for statement in SCHEMA_SQL:
                self.pool.execute_command(statement)
        except psycopg.Error as e:
            self.pool.close()
            raise SinkInitializationError(SINK_NAME, str(e)) from e

        logger.info("Document sink initialized", extra={"table": TABLE_NAME})

    def close(self) -> None:
        self.pool.close()

    def load(self, records: list[CleanRecord], batch_id: str) -> LoadResult:
        """
        Upsert records in batches.

        Args:
            records: Deduplicated records of one source file
            batch_id: Batch identifier (the source filename), stored per row

        Returns:
            LoadResult with inserted/updated counts and one error per failed batch
        """
        result = LoadResult()
        updated_at = datetime.now(timezone.utc)

        for start in range(0, len(records), self.batch_size):
            batch = records[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1

            try:
                inserted, updated = self._upsert_batch(batch, batch_id, updated_at)
            except psycopg.Error as e:
                message = f"Batch {batch_number} of {batch_id} failed: {e}"
                logger.error(message, extra={"batch_id": batch_id, "batch_number": batch_number})
                sink_write_errors_total.labels(sink=SINK_NAME).inc()
                result.errors.append(message)
                continue

            result.inserted += inserted
            result.updated += updated

        logger.info(
            "Document load complete",
            extra={
                "batch_id": batch_id,
                "inserted": result.inserted,
                "updated": result.updated,
                "failed_batches": len(result.errors),
            },
        )
        return result

    def _upsert_batch(
        self,
        batch: list[CleanRecord],
        batch_id: str,
        updated_at: datetime,
    ) -> tuple[int, int]:
        inserted = 0
        with self.pool.get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    for record in batch:
                        cur.execute(UPSERT_SQL, _to_params(record, batch_id, updated_at))
                        if cur.fetchone()["inserted"]:
                            inserted += 1
                conn.commit()
            except psycopg.Error:
                conn.rollback()
                raise

        return inserted, len(batch) - inserted

    def collection_stats(self) -> dict[str, Any]:
        """
        Summary statistics of the stored documents.

        Returns:
            Dictionary with document, category and author counts, average
            rating and price, and the ingestion date range
        """
        rows = self.pool.execute_query(STATS_SQL)
        return dict(rows[0]) if rows else {}

    def get_document(self, ingestion_date, category: str, natural_key: str) -> dict[str, Any] | None:
        """Fetch one stored document by composite key."""
        rows = self.pool.execute_query(
            f"SELECT document FROM {TABLE_NAME} "
            "WHERE ingestion_date = %s AND category = %s AND natural_key = %s",
            (ingestion_date, category, natural_key),
        )
        return rows[0]["document"] if rows else None


def _to_params(record: CleanRecord, batch_id: str, updated_at: datetime) -> dict[str, Any]:
    return {
        "ingestion_date": record.ingestion_date,
        "category": record.category,
        "natural_key": record.natural_key,
        "title": record.title,
        "author": record.author,
        "release_date": record.release_date,
        "topic_tags": record.topic_tags,
        "subcategories": record.subcategories,
        "document": Jsonb(to_document(record, updated_at)),
        "source_file": batch_id,
        "updated_at": updated_at,
    }
