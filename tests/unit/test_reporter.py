from __future__ import annotations

from rich.console import Console

from soulbench.orchestrator import RunResult, analyze_samples
from soulbench.reporter import format_effect_size, format_stats_line, print_report
from soulbench.stats import compare_samples, compute_stats


def _console() -> Console:
    return Console(record=True, width=220, color_system=None)


def test_format_stats_line():
    line = format_stats_line(compute_stats([10, 20, 30, 40, 50]))

    assert line == "30.0ms ± 13.9ms, P50=30.0ms, P95=50.0ms, P99=50.0ms, CV=52.7% (Variable)"


def test_format_effect_size_special_cases_infinite():
    assert format_effect_size(compare_samples([100, 100, 100], [10, 10, 10])) == "∞"
    assert format_effect_size(compare_samples([10, 12, 14], [20, 22, 24])) == "5.00"


def test_print_report_renders_tables_and_summary(raw_samples):
    console = _console()

    print_report(analyze_samples(raw_samples), console=console)

    text = console.export_text()
    assert "user_profile" in text
    assert "dynamodb" in text
    assert "CONFIRMED" in text
    assert "OVERALL ANALYSIS" in text
    assert "Hypotheses confirmed: 1/1 (100%)" in text


def test_print_report_empty():
    console = _console()

    print_report(RunResult(timestamp="now"), console=console)

    assert "No results to display." in console.export_text()
