"""
Pytest configuration and fixtures for catalog-etl tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
from datetime import date
from typing import Generator

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

from catalog_etl.core.models import CleanRecord, SourceFileInfo
from catalog_etl.warehouse.connection import DatabaseConnectionPool


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DOMAIN FIXTURES
# =======================

@pytest.fixture
def file_info() -> SourceFileInfo:
    """Metadata for 20250811_fantasy_raw_data.xlsx"""
    return SourceFileInfo(
        ingestion_date=date(2025, 8, 11),
        category_key="_fantasy",
        category_name="Fantasy",
    )


@pytest.fixture
def raw_row():
    """
    Factory for raw spreadsheet rows with every required column filled

    Usage:
        row = raw_row(ASIN="B000000002", price="4.99")
    """
    def _make(**overrides):
        row = {
            "Title": "Dragon Reborn",
            "ASIN": "B000000001",
            "Author": "Jane Doe",
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def make_record():
    """
    Factory for clean records

    Usage:
        record = make_record(natural_key="B2", rating=4.5)
    """
    def _make(**overrides):
        fields = {
            "ingestion_date": date(2025, 8, 11),
            "category": "Fantasy",
            "natural_key": "B000000001",
            "title": "Dragon Reborn",
            "author": "Jane Doe",
        }
        fields.update(overrides)
        return CleanRecord(**fields)

    return _make


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_catalog",
        password="test_password",
        dbname="test_catalog",
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="session")
def postgres_conninfo(postgres_container) -> str:
    """libpq connection string for the test container"""
    return (
        f"host={postgres_container.get_container_host_ip()} "
        f"port={postgres_container.get_exposed_port(5432)} "
        f"dbname=test_catalog user=test_catalog password=test_password"
    )


@pytest.fixture(scope="function")
def document_pool(postgres_conninfo) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Connection pool on a clean document table

    Yields:
        Unopened DatabaseConnectionPool; the sink under test opens it
    """
    with psycopg.connect(postgres_conninfo) as conn:
        conn.execute("DROP TABLE IF EXISTS catalog_documents")
        conn.commit()

    pool = DatabaseConnectionPool(conninfo=postgres_conninfo)
    yield pool
    pool.close()
