"""
Integration tests for SoulBench against a real Postgres-compatible endpoint.

These tests verify that:
1. SqlOperation can connect lazily, run a query, and fetch every row
2. The orchestrator produces a complete report for two SQL operations
3. A failing query is counted as an error without aborting the scenario

Run with: RUN_INTEGRATION_TESTS=1 SOULBENCH_TEST_DSN=postgresql://... pytest tests/integration/
"""

from __future__ import annotations

import os

import pytest

from soulbench.orchestrator import RunConfig, run_scenarios
from soulbench.scenarios import ComparisonScenario, SqlOperation

ITERATIONS = 5
SERIES_ROWS = 100

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


class TestSqlOperation:
    def test_returns_row_count_and_reuses_connection(self, require_db, test_dsn: str):
        op = SqlOperation("pg", test_dsn, "SELECT generate_series(1, %s)", params=[SERIES_ROWS])
        try:
            assert op() == SERIES_ROWS
            first_conn = op._conn
            assert op() == SERIES_ROWS
            assert op._conn is first_conn
        finally:
            op.close()
        assert op._conn is None

    def test_statement_timeout_is_applied(self, require_db, test_dsn: str):
        op = SqlOperation("pg", test_dsn, "SELECT pg_sleep(1)", statement_timeout_ms=50)
        try:
            with pytest.raises(Exception):
                op()
        finally:
            op.close()


class TestOrchestratorIntegration:
    def test_two_sql_backends_produce_a_report(self, require_db, test_dsn: str, tmp_path):
        scenario = ComparisonScenario(
            "point_vs_series",
            SqlOperation("point", test_dsn, "SELECT 1"),
            SqlOperation("series", test_dsn, "SELECT generate_series(1, 5000)"),
            expected_winner="point",
        )

        result = run_scenarios(
            [scenario],
            RunConfig(iterations=ITERATIONS, warmup_iterations=1, persist=False, results_dir=tmp_path),
        )

        report = result.reports[0]
        assert report.error is None
        assert report.stats["point"].count == ITERATIONS
        assert report.stats["series"].count == ITERATIONS
        assert report.stats["point"].mean > 0

    def test_failing_query_is_counted(self, require_db, test_dsn: str, tmp_path):
        scenario = ComparisonScenario(
            "bad_table",
            SqlOperation("ok", test_dsn, "SELECT 1"),
            SqlOperation("broken", test_dsn, "SELECT * FROM table_that_does_not_exist"),
        )

        report = run_scenarios(
            [scenario],
            RunConfig(iterations=ITERATIONS, warmup_iterations=0, persist=False, results_dir=tmp_path),
        ).reports[0]

        assert report.errors["broken"] == ITERATIONS
        assert report.stats["broken"].count == 0
        assert report.stats["ok"].count == ITERATIONS
