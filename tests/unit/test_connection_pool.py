"""
Unit tests for database connection pool

Construction is tested without a database; pool behaviour is tested
against PostgreSQL using testcontainers.
"""
import pytest
from psycopg import OperationalError

from catalog_etl.warehouse.connection import DatabaseConnectionPool


@pytest.mark.unit
def test_password_required(monkeypatch):
    """Test that host-based settings without a password are rejected"""
    monkeypatch.delenv("DB_PASSWORD", raising=False)

    with pytest.raises(ValueError, match="password must be provided"):
        DatabaseConnectionPool(host="localhost", user="catalog")


@pytest.mark.unit
def test_settings_from_environment(monkeypatch):
    """Test that DB_* environment variables fill in missing settings"""
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "6543")
    monkeypatch.setenv("DB_NAME", "books")
    monkeypatch.setenv("DB_USER", "loader")
    monkeypatch.setenv("DB_PASSWORD", "secret")

    pool = DatabaseConnectionPool(timeout=10)

    assert pool.conninfo == (
        "host=db.internal port=6543 dbname=books user=loader password=secret connect_timeout=10"
    )


@pytest.mark.unit
def test_conninfo_passthrough(monkeypatch):
    """Test that a full connection string needs no other settings"""
    monkeypatch.delenv("DB_PASSWORD", raising=False)

    pool = DatabaseConnectionPool(conninfo="postgresql://catalog@localhost/catalog")

    assert pool.conninfo == "postgresql://catalog@localhost/catalog"
    assert not pool.is_open


@pytest.mark.unit
def test_use_before_open():
    """Test that connections cannot be taken from an unopened pool"""
    pool = DatabaseConnectionPool(conninfo="postgresql://catalog@localhost/catalog")

    with pytest.raises(RuntimeError, match="not open"):
        with pool.get_connection():
            pass


@pytest.mark.integration
def test_connection_pool_initialization(postgres_conninfo):
    """Test that connection pool initializes correctly"""
    pool = DatabaseConnectionPool(conninfo=postgres_conninfo, min_size=2, max_size=5)

    pool.open()

    assert pool.is_open
    assert pool._pool.min_size == 2
    assert pool._pool.max_size == 5

    pool.close()
    assert not pool.is_open


@pytest.mark.integration
def test_get_connection(postgres_conninfo):
    """Test getting a connection from the pool"""
    with DatabaseConnectionPool(conninfo=postgres_conninfo) as pool:
        with pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 as test")
                result = cur.fetchone()
                assert result["test"] == 1


@pytest.mark.integration
def test_execute_query(postgres_conninfo):
    """Test executing a query using the pool"""
    with DatabaseConnectionPool(conninfo=postgres_conninfo) as pool:
        result = pool.execute_query("SELECT 42 as answer")
        assert len(result) == 1
        assert result[0]["answer"] == 42


@pytest.mark.integration
def test_execute_command(postgres_conninfo):
    """Test executing DDL and DML commands using the pool"""
    with DatabaseConnectionPool(conninfo=postgres_conninfo) as pool:
        pool.execute_command("DROP TABLE IF EXISTS pool_probe")
        pool.execute_command("CREATE TABLE pool_probe (id INTEGER)")
        affected = pool.execute_command("INSERT INTO pool_probe VALUES (%s), (%s)", (1, 2))

        assert affected == 2
        assert pool.execute_query("SELECT COUNT(*) AS n FROM pool_probe")[0]["n"] == 2

        pool.execute_command("DROP TABLE pool_probe")


@pytest.mark.integration
@pytest.mark.slow
def test_open_retries_then_fails():
    """Test that an unreachable server raises after every retry"""
    pool = DatabaseConnectionPool(
        conninfo="host=127.0.0.1 port=1 dbname=x user=x password=x connect_timeout=1",
        timeout=1,
    )

    with pytest.raises(OperationalError, match="after 2 attempts"):
        pool.open(max_retries=2, retry_delay=0.1)

    assert not pool.is_open
