from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from soulbench import stats
from soulbench.domain.models import ComparisonResult, DescriptiveStats, LoadReport, ScenarioReport
from soulbench.orchestrator import RunResult


def format_stats_line(s: DescriptiveStats) -> str:
    """
    One-line summary, e.g. ``12.3ms ± 0.8ms, P50=12.0ms, P95=14.1ms, P99=15.0ms, CV=9.7% (Excellent)``.
    """
    return (
        f"{s.mean:.1f}ms ± {s.ci95:.1f}ms, "
        f"P50={s.p50:.1f}ms, P95={s.p95:.1f}ms, P99={s.p99:.1f}ms, "
        f"CV={s.cv:.1f}% ({stats.interpret_consistency(s.cv)})"
    )


def format_effect_size(comparison: ComparisonResult) -> str:
    if comparison.effect_size_infinite:
        return "∞"
    return f"{comparison.effect_size:.2f}"


def format_p_value(comparison: ComparisonResult) -> str:
    if comparison.p_value_method == "exact" and comparison.p_value < 0.0001:
        return "<0.0001"
    return f"{comparison.p_value:.4f}"


def _verdict(report: ScenarioReport) -> str:
    if report.error:
        return "[red]FAILED[/red]"
    if report.confirmed is None:
        return "[dim]-[/dim]"
    return "[green]✅ CONFIRMED[/green]" if report.confirmed else "[red]❌ REJECTED[/red]"


def _latency_table(result: RunResult) -> Table:
    table = Table(
        title=f"SoulBench Latency (n={result.iterations or 'recorded'} per backend)",
        box=box.ROUNDED,
    )
    table.add_column("Scenario", style="cyan", no_wrap=True)
    table.add_column("Backend", style="magenta")
    table.add_column("n", justify="right", style="blue")
    table.add_column("Mean ± CI95 (ms)", justify="right", style="bold green")
    table.add_column("P50 (ms)", justify="right", style="green")
    table.add_column("P95 (ms)", justify="right", style="yellow")
    table.add_column("P99 (ms)", justify="right", style="yellow")
    table.add_column("CV %", justify="right", style="red")
    table.add_column("Errors", justify="right", style="red")

    for report in result.reports:
        for index, label in enumerate(report.backends):
            s = report.stats.get(label, DescriptiveStats())
            table.add_row(
                report.name if index == 0 else "",
                label or "[dim]n/a[/dim]",
                str(s.count),
                f"{s.mean:.1f} ± {s.ci95:.1f}",
                f"{s.p50:.1f}",
                f"{s.p95:.1f}",
                f"{s.p99:.1f}",
                f"{s.cv:.1f} ({stats.interpret_consistency(s.cv)})",
                str(report.errors.get(label, 0)),
            )
        table.add_section()
    return table


def _comparison_table(result: RunResult) -> Table:
    table = Table(
        title=f"Comparison (p-values: {result.p_value_method})",
        box=box.ROUNDED,
        caption="Winner = lower mean latency",
    )
    table.add_column("Scenario", style="cyan", no_wrap=True)
    table.add_column("Expected", style="magenta")
    table.add_column("Actual", style="bold magenta")
    table.add_column("Advantage", justify="right", style="green")
    table.add_column("Ratio", justify="right", style="green")
    table.add_column("p-value", justify="right")
    table.add_column("Significant", justify="center")
    table.add_column("Effect size", justify="right")
    table.add_column("Confidence", justify="center", style="blue")
    table.add_column("Verdict")

    for report in result.reports:
        comparison = report.comparison
        n = min((s.count for s in report.stats.values()), default=0)
        effect_label = stats.interpret_effect_size(
            comparison.effect_size, comparison.effect_size_infinite
        )
        table.add_row(
            report.name,
            report.expected_winner or "-",
            report.actual_winner or "-",
            f"{report.advantage_percent:.1f}%",
            f"{report.performance_ratio:.2f}x",
            format_p_value(comparison),
            "YES" if comparison.significant else "NO",
            f"{format_effect_size(comparison)} ({effect_label})",
            stats.confidence_level(n),
            _verdict(report),
        )
    return table


def print_report(result: RunResult, console: Optional[Console] = None) -> None:
    """
    Render a run as rich tables followed by the hypothesis summary.
    """
    console = console or Console()

    if not result.reports:
        console.print("[yellow]No results to display.[/yellow]")
        return

    console.print(_latency_table(result))
    console.print(_comparison_table(result))

    for report in result.reports:
        if report.error:
            console.print(f"[red]✗ {report.name}: {report.error}[/red]")
        elif report.note:
            console.print(f"[dim]📝 {report.name}: {report.note}[/dim]")

    summary = result.summary
    wins = ", ".join(f"{label}={count}" for label, count in sorted(summary.wins.items()))
    console.print(
        "\n[bold]📊 OVERALL ANALYSIS[/bold]\n"
        f"   Scenarios tested: {summary.total_scenarios}\n"
        f"   Hypotheses confirmed: {summary.confirmed_hypotheses}"
        f"/{summary.scenarios_with_expectation} ({summary.confirmation_rate})\n"
        f"   Wins: {wins or 'none'}\n"
        f"   Conclusion: {summary.conclusion}"
    )


def print_load_report(reports: Sequence[LoadReport], console: Optional[Console] = None) -> None:
    """
    Render concurrent load-test results, one row per scenario backend.
    """
    console = console or Console()

    if not reports:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(title="SoulBench Load Test", box=box.ROUNDED)
    table.add_column("Scenario", style="cyan", no_wrap=True)
    table.add_column("Backend", style="magenta")
    table.add_column("Workers", justify="right", style="blue")
    table.add_column("Duration (s)", justify="right")
    table.add_column("Success", justify="right", style="green")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Avg (ms)", justify="right", style="bold green")
    table.add_column("P95 (ms)", justify="right", style="yellow")
    table.add_column("P99 (ms)", justify="right", style="yellow")
    table.add_column("Throughput (ops/s)", justify="right", style="bold magenta")

    for report in reports:
        if report.error:
            table.add_row(report.scenario, "[red]FAILED[/red]", *[""] * 8)
            continue
        table.add_row(
            report.scenario,
            report.backend,
            str(report.concurrency),
            f"{report.duration_s:g}",
            str(report.success),
            str(report.errors),
            f"{report.stats.mean:.2f}",
            f"{report.stats.p95:.2f}",
            f"{report.stats.p99:.2f}",
            f"{report.throughput:.2f}",
        )

    console.print(table)
    for report in reports:
        if report.error:
            console.print(f"[red]✗ {report.scenario}: {report.error}[/red]")


__all__ = [
    "format_effect_size",
    "format_p_value",
    "format_stats_line",
    "print_load_report",
    "print_report",
]
