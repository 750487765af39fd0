"""
Analytical sink: idempotent staged upserts into a DuckDB file.

Each load stages the batch in a temporary table shaped like the target,
updates rows whose composite key already exists, inserts the rest and
drops the staging table, all in one transaction.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from catalog_etl.core.errors import SinkInitializationError, SinkWriteError
from catalog_etl.core.models import CleanRecord, LoadResult
from catalog_etl.observability.logger import get_logger

logger = get_logger(__name__)

SINK_NAME = "analytical"

TABLE_NAME = "catalog_records"
STAGING_TABLE_NAME = "catalog_records_staging"

KEY_COLUMNS = ("ingestion_date", "category", "natural_key")

RECORD_COLUMNS = tuple(CleanRecord.model_fields)

# Columns the sink adds on top of the record itself
LOAD_COLUMNS = RECORD_COLUMNS + ("source_file", "loaded_at")

CREATE_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        ingestion_date DATE NOT NULL,
        category VARCHAR NOT NULL,
        natural_key VARCHAR NOT NULL,
        title VARCHAR NOT NULL,
        author VARCHAR NOT NULL,
        author_url VARCHAR,
        series VARCHAR,
        price DOUBLE,
        rating DOUBLE,
        review_count INTEGER,
        sales_rank BIGINT,
        release_date DATE,
        publisher VARCHAR,
        description VARCHAR,
        media_url VARCHAR,
        product_url VARCHAR,
        topic_tags VARCHAR[],
        subcategories VARCHAR[],
        keyphrases VARCHAR,
        estimated_pov VARCHAR,
        has_supernatural BOOLEAN,
        has_romance BOOLEAN,
        media_verified BOOLEAN NOT NULL DEFAULT FALSE,
        source_file VARCHAR,
        loaded_at TIMESTAMP,
        PRIMARY KEY (ingestion_date, category, natural_key)
    )
"""

INDEX_SQL = (
    f"CREATE INDEX IF NOT EXISTS idx_catalog_records_category ON {TABLE_NAME}(category)",
    f"CREATE INDEX IF NOT EXISTS idx_catalog_records_author ON {TABLE_NAME}(author)",
    f"CREATE INDEX IF NOT EXISTS idx_catalog_records_rating ON {TABLE_NAME}(rating)",
    f"CREATE INDEX IF NOT EXISTS idx_catalog_records_rank ON {TABLE_NAME}(sales_rank)",
    f"CREATE INDEX IF NOT EXISTS idx_catalog_records_date ON {TABLE_NAME}(ingestion_date)",
    f"CREATE INDEX IF NOT EXISTS idx_catalog_records_price ON {TABLE_NAME}(price)",
)

_KEY_MATCH = " AND ".join(f"t.{c} = s.{c}" for c in KEY_COLUMNS)
_COLUMN_LIST = ", ".join(LOAD_COLUMNS)

CREATE_STAGING_SQL = f"CREATE OR REPLACE TEMP TABLE {STAGING_TABLE_NAME} AS SELECT * FROM {TABLE_NAME} WHERE 1=0"

STAGE_ROW_SQL = (
    f"INSERT INTO {STAGING_TABLE_NAME} ({_COLUMN_LIST}) "
    f"VALUES ({', '.join('?' for _ in LOAD_COLUMNS)})"
)

COUNT_EXISTING_SQL = f"SELECT COUNT(*) FROM {STAGING_TABLE_NAME} s JOIN {TABLE_NAME} t ON {_KEY_MATCH}"

UPDATE_SQL = f"""
    UPDATE {TABLE_NAME} AS t SET
        {", ".join(f"{c} = s.{c}" for c in LOAD_COLUMNS if c not in KEY_COLUMNS)}
    FROM {STAGING_TABLE_NAME} AS s
    WHERE {_KEY_MATCH}
"""

INSERT_NEW_SQL = f"""
    INSERT INTO {TABLE_NAME} ({_COLUMN_LIST})
    SELECT {", ".join(f"s.{c}" for c in LOAD_COLUMNS)}
    FROM {STAGING_TABLE_NAME} AS s
    WHERE NOT EXISTS (
        SELECT 1 FROM {TABLE_NAME} AS t WHERE {_KEY_MATCH}
    )
"""

DROP_STAGING_SQL = f"DROP TABLE IF EXISTS {STAGING_TABLE_NAME}"

STATS_SQL = f"""
    SELECT
        COUNT(*) AS total_records,
        COUNT(DISTINCT category) AS unique_categories,
        COUNT(DISTINCT author) AS unique_authors,
        AVG(rating) AS avg_rating,
        AVG(price) AS avg_price,
        MIN(ingestion_date) AS earliest_date,
        MAX(ingestion_date) AS latest_date
    FROM {TABLE_NAME}
"""


class AnalyticalSink:
    """
    DuckDB-backed analytical store keyed by (ingestion_date, category, natural_key).

    Loading the same batch twice leaves the table unchanged apart from
    ``loaded_at``: the second load reports every row as updated.
    """

    name = SINK_NAME

    def __init__(self, database_path: str | Path):
        """
        Initialize analytical sink.

        Args:
            database_path: DuckDB database file (":memory:" for an in-process database)
        """
        self.database_path = str(database_path)
        self._connection: duckdb.DuckDBPyConnection | None = None

    def open(self) -> None:
        """
        Open the database and create the schema.

        Raises:
            SinkInitializationError: If the database cannot be opened or initialized
        """
        if self._connection is not None:
            return

        try:
            if self.database_path != ":memory:":
                Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

            connection = duckdb.connect(self.database_path)
            connection.execute(CREATE_TABLE_SQL)
            for statement in INDEX_SQL:
                connection.execute(statement)
        except (duckdb.Error, OSError) as e:
            raise SinkInitializationError(SINK_NAME, str(e)) from e

        self._connection = connection
        logger.info("Analytical sink initialized", extra={"database": self.database_path})

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            raise RuntimeError("Analytical sink is not open. Call open() first.")
        return self._connection

    def load(self, records: list[CleanRecord], batch_id: str) -> LoadResult:
        """
        Upsert a batch of records.

        Args:
            records: Deduplicated records of one source file
            batch_id: Batch identifier (the source filename), stored per row

        Returns:
            LoadResult with inserted and updated counts

        Raises:
            SinkWriteError: If the transaction fails; nothing from the batch is kept
        """
        if not records:
            return LoadResult()

        con = self.connection
        loaded_at = datetime.now(timezone.utc).replace(tzinfo=None)
        rows = [_to_row(record, batch_id, loaded_at) for record in records]

        con.begin()
        try:
            con.execute(CREATE_STAGING_SQL)
            con.executemany(STAGE_ROW_SQL, rows)

            updated = con.execute(COUNT_EXISTING_SQL).fetchone()[0]
            con.execute(UPDATE_SQL)
            con.execute(INSERT_NEW_SQL)
            con.execute(DROP_STAGING_SQL)
            con.commit()
        except duckdb.Error as e:
            con.rollback()
            logger.error(
                "Analytical load failed",
                extra={"batch_id": batch_id, "records": len(rows), "error": str(e)},
            )
            raise SinkWriteError(SINK_NAME, batch_id, str(e)) from e

        result = LoadResult(inserted=len(rows) - updated, updated=updated)
        logger.info(
            "Analytical load complete",
            extra={"batch_id": batch_id, "inserted": result.inserted, "updated": result.updated},
        )
        return result

    def table_stats(self) -> dict[str, Any]:
        """
        Summary statistics of the loaded table.

        Returns:
            Dictionary with record, category and author counts, average
            rating and price, and the ingestion date range
        """
        cursor = self.connection.execute(STATS_SQL)
        names = [column[0] for column in cursor.description]
        return dict(zip(names, cursor.fetchone()))


def _to_row(record: CleanRecord, batch_id: str, loaded_at: datetime) -> tuple:
    return tuple(getattr(record, column) for column in RECORD_COLUMNS) + (batch_id, loaded_at)
