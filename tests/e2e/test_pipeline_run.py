"""
End-to-end tests for a full pipeline run.

Tests the complete flow: raw files → validation → enrichment → media
verification → CSV export → DuckDB load → audit log. The document sink
is skipped; its behaviour is covered by the integration tests.
"""

import csv
import json
from datetime import date

import pytest
from openpyxl import Workbook

from catalog_etl.batch.media import MediaLinkVerifier
from catalog_etl.batch.pipeline import CatalogPipeline, PipelineState
from catalog_etl.core.config import PipelineConfig
from catalog_etl.core.errors import PipelineFatalError, SinkInitializationError
from catalog_etl.observability.metrics import REGISTRY, generate_metrics
from catalog_etl.warehouse.analytical_sink import TABLE_NAME, AnalyticalSink
from catalog_etl.warehouse.loader import DualSinkLoader

HEADERS = ["Title", "ASIN", "Author", "reviewAverage", "nReviews", "price", "coverImage", "topicTags"]

FANTASY_ROWS = [
    ["Dragon Reborn", "B000000001", "Jane Doe", "4.555", "156.7", "$4.99", "https://img.example.com/1.jpg", "dragons|magic"],
    ["Missing Key", "", "John Roe", "4.0", "10", "1.00", "", ""],
    ["Night Court", "B000000003", "Ann Lee", "3.2", "12", "2.50", "https://img.example.com/broken.jpg", ""],
]


def _write_csv(path, rows, headers=HEADERS):
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        writer.writerows(rows)


async def _fake_probe(url):
    return not url.endswith("broken.jpg")


@pytest.fixture
def workspace(tmp_path):
    input_dir = tmp_path / "data_raw"
    input_dir.mkdir()
    return tmp_path


@pytest.fixture
def make_pipeline(workspace):
    """
    Factory for pipelines over the workspace directories

    Usage:
        pipeline, sink = make_pipeline(files=["20250811_fantasy_raw_data.csv"])
    """
    def _make(**overrides):
        settings = {
            "input_dir": workspace / "data_raw",
            "output_dir": workspace / "data_cleaned",
            "log_dir": workspace / "logs",
            "analytical_db": workspace / "catalog.duckdb",
            "skip_documents": True,
        }
        settings.update(overrides)
        config = PipelineConfig(**settings)
        sink = AnalyticalSink(config.analytical_db)
        pipeline = CatalogPipeline(
            config=config,
            loader=DualSinkLoader(sink),
            verifier=MediaLinkVerifier(probe=_fake_probe, batch_delay=0),
        )
        return pipeline, sink

    return _make


def _stored_rows(workspace):
    sink = AnalyticalSink(workspace / "catalog.duckdb")
    sink.open()
    try:
        return sink.connection.execute(
            f"SELECT natural_key, rating, review_count, price, media_verified, topic_tags "
            f"FROM {TABLE_NAME} ORDER BY natural_key"
        ).fetchall()
    finally:
        sink.close()


@pytest.mark.e2e
def test_single_file_run(workspace, make_pipeline):
    """Test a 3-row file with one missing key: 2 loaded, 1 rejected, 67%"""
    _write_csv(workspace / "data_raw" / "20250811_fantasy_raw_data.csv", FANTASY_ROWS)
    pipeline, _ = make_pipeline()

    result = pipeline.run()

    assert pipeline.state == PipelineState.DONE
    assert result.exit_code == 0
    (file_result,) = result.file_results
    assert file_result.success
    assert file_result.rows_processed == 3
    assert file_result.valid_rows == 2
    assert file_result.rejected_rows == 1
    assert file_result.media_verified == 1
    assert file_result.file_info.category_name == "Fantasy"
    assert result.summary.success_rate == 67

    assert _stored_rows(workspace) == [
        ("B000000001", 4.6, 156, 4.99, True, ["dragons", "magic"]),
        ("B000000003", 3.2, 12, 2.5, False, None),
    ]

    log_text = (workspace / "logs" / "20250811_fantasy.log").read_text(encoding="utf-8")
    assert "Category: Fantasy" in log_text
    assert "Date: 2025-08-11" in log_text
    assert "Success rate: 67%" in log_text
    assert "line 3: natural_key is required" in log_text

    rejected = (workspace / "logs" / "20250811_fantasy.rejected.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(rejected[0])["raw_payload"]["Title"] == "Missing Key"

    with open(workspace / "data_cleaned" / "20250811_fantasy.csv", newline="", encoding="utf-8") as handle:
        exported = list(csv.DictReader(handle))
    assert [row["natural_key"] for row in exported] == ["B000000001", "B000000003"]
    assert exported[0]["media_verified"] == "true"


@pytest.mark.e2e
def test_run_updates_metrics(workspace, make_pipeline):
    """Test that row and file outcomes reach the metrics registry"""
    _write_csv(workspace / "data_raw" / "20250811_fantasy_raw_data.csv", FANTASY_ROWS)
    pipeline, _ = make_pipeline()
    labels = {"category": "Fantasy", "status": "rejected"}
    before = REGISTRY.get_sample_value("catalog_etl_rows_processed_total", labels) or 0

    pipeline.run()

    assert REGISTRY.get_sample_value("catalog_etl_rows_processed_total", labels) == before + 1
    exposition = generate_metrics().decode("utf-8")
    assert 'catalog_etl_rows_processed_total{category="Fantasy",status="valid"}' in exposition
    assert "catalog_etl_files_processed_total" in exposition


@pytest.mark.e2e
def test_rerun_is_idempotent(workspace, make_pipeline):
    """Test that processing the same file twice leaves the same rows"""
    _write_csv(workspace / "data_raw" / "20250811_fantasy_raw_data.csv", FANTASY_ROWS)

    first, _ = make_pipeline()
    first_result = first.run()
    rows_after_first = _stored_rows(workspace)

    second, _ = make_pipeline(force_reprocess=True)
    second_result = second.run()

    assert _stored_rows(workspace) == rows_after_first
    first_load = first_result.file_results[0].load_result.analytical
    second_load = second_result.file_results[0].load_result.analytical
    assert (first_load.inserted, first_load.updated) == (2, 0)
    assert (second_load.inserted, second_load.updated) == (0, 2)


@pytest.mark.e2e
def test_duplicate_keys_within_file(workspace, make_pipeline):
    """Test that the first occurrence of a key wins"""
    rows = [
        ["First", "B000000001", "Jane Doe", "", "", "", "", ""],
        ["Second", "B000000001", "Jane Doe", "", "", "", "", ""],
    ]
    _write_csv(workspace / "data_raw" / "20250811_fantasy_raw_data.csv", rows)
    pipeline, _ = make_pipeline()

    (file_result,) = pipeline.run().file_results

    assert file_result.valid_rows == 2
    assert file_result.duplicate_rows == 1
    assert file_result.load_result.analytical.inserted == 1


@pytest.mark.e2e
def test_failed_file_does_not_stop_run(workspace, make_pipeline):
    """Test that a bad filename and a corrupt workbook fail only themselves"""
    raw = workspace / "data_raw"
    _write_csv(raw / "20250811_fantasy_raw_data.csv", FANTASY_ROWS)
    _write_csv(raw / "20251345_fantasy_raw_data.csv", FANTASY_ROWS)
    (raw / "20250812_romance_raw_data.xlsx").write_text("not a workbook")
    (raw / "notes.txt").write_text("ignored")
    pipeline, _ = make_pipeline()

    result = pipeline.run()

    assert pipeline.state == PipelineState.DONE
    assert result.exit_code == 1
    assert result.summary.total_files == 3
    assert result.summary.successful_files == 1
    assert result.summary.failed_files == 2

    by_name = {r.file_path.rsplit("/", 1)[-1]: r for r in result.file_results}
    assert by_name["20250811_fantasy_raw_data.csv"].success
    bad_date = by_name["20251345_fantasy_raw_data.csv"]
    assert not bad_date.success
    assert bad_date.rows_processed == 0
    assert bad_date.file_info is None
    assert not by_name["20250812_romance_raw_data.xlsx"].success
    assert len(_stored_rows(workspace)) == 2


@pytest.mark.e2e
def test_files_processed_in_name_order(workspace, make_pipeline):
    raw = workspace / "data_raw"
    _write_csv(raw / "20250812_romance_raw_data.csv", FANTASY_ROWS[:1])
    _write_csv(raw / "20250811_fantasy_raw_data.csv", FANTASY_ROWS[:1])
    pipeline, _ = make_pipeline()

    result = pipeline.run()

    names = [r.file_path.rsplit("/", 1)[-1] for r in result.file_results]
    assert names == ["20250811_fantasy_raw_data.csv", "20250812_romance_raw_data.csv"]


@pytest.mark.e2e
def test_xlsx_with_author_hyperlink(workspace, make_pipeline):
    """Test that an author hyperlink in a workbook becomes author_url"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Title", "ASIN", "Author", "releaseDate"])
    sheet.append(["Dragon Reborn", "B000000001", "Jane Doe", date(2023, 5, 1)])
    sheet["C2"].hyperlink = "https://www.example.com/author/jane"
    workbook.save(workspace / "data_raw" / "20250811_fantasy_raw_data.xlsx")
    pipeline, sink = make_pipeline()

    result = pipeline.run()

    assert result.exit_code == 0
    sink.open()
    try:
        row = sink.connection.execute(f"SELECT author, author_url, release_date FROM {TABLE_NAME}").fetchone()
    finally:
        sink.close()
    assert row == ("Jane Doe", "https://www.example.com/author/jane", date(2023, 5, 1))


@pytest.mark.e2e
def test_explicit_file_list(workspace, make_pipeline):
    """Test that an explicit list bypasses discovery"""
    raw = workspace / "data_raw"
    _write_csv(raw / "20250811_fantasy_raw_data.csv", FANTASY_ROWS)
    _write_csv(raw / "20250812_romance_raw_data.csv", FANTASY_ROWS)
    pipeline, _ = make_pipeline(files=["20250812_romance_raw_data.csv"])

    result = pipeline.run()

    assert [r.file_info.category_name for r in result.file_results] == ["Romance"]


@pytest.mark.e2e
def test_explicit_missing_file_fails_that_file(workspace, make_pipeline):
    pipeline, _ = make_pipeline(files=["20250811_fantasy_raw_data.csv"])

    result = pipeline.run()

    assert result.summary.failed_files == 1
    assert result.exit_code == 1


@pytest.mark.e2e
def test_empty_input_directory(make_pipeline):
    pipeline, _ = make_pipeline()

    result = pipeline.run()

    assert result.exit_code == 0
    assert result.summary.total_files == 0


@pytest.mark.e2e
def test_missing_input_directory_is_fatal(workspace, make_pipeline):
    closed = []
    pipeline, sink = make_pipeline(input_dir=workspace / "nowhere")
    original_close = sink.close
    sink.close = lambda: (closed.append(True), original_close())

    with pytest.raises(PipelineFatalError, match="Failed to discover files"):
        pipeline.run()

    assert pipeline.state == PipelineState.FAILED
    assert closed


@pytest.mark.e2e
def test_sink_initialization_failure_is_fatal(workspace):
    class BrokenLoader:
        closed = False

        def open(self):
            raise SinkInitializationError("document", "connection refused")

        def close(self):
            self.closed = True

    loader = BrokenLoader()
    pipeline = CatalogPipeline(
        config=PipelineConfig(input_dir=workspace / "data_raw", log_dir=workspace / "logs"),
        loader=loader,
    )

    with pytest.raises(PipelineFatalError, match="document sink"):
        pipeline.run()

    assert pipeline.state == PipelineState.FAILED
    assert loader.closed
