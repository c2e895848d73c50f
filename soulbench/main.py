from __future__ import annotations

import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from soulbench.config import get_settings
from soulbench.errors import SoulBenchError
from soulbench.orchestrator import RunConfig, load_samples_file, run_load_scenarios, run_scenarios
from soulbench.reporter import print_load_report, print_report
from soulbench.scenarios.loader import load_scenario_file
from soulbench.utils.logging import configure_logging

app = typer.Typer(help="SoulBench: key-value vs relational latency comparison CLI.")


def _fail(exc: SoulBenchError) -> NoReturn:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"env={settings.app_env} | iterations={settings.benchmark_iterations} "
        f"warmup={settings.benchmark_warmup_iterations} "
        f"p_values={settings.benchmark_p_value_method} | results_dir={settings.results_dir} | "
        f"load=x{settings.load_concurrency}/{settings.load_duration_s}s | "
        f"statement_timeout={settings.db_statement_timeout_ms}ms"
    )


@app.command()
def run(
    scenario_file: Path = typer.Argument(..., help="JSON file with backends and scenarios."),
    iterations: Optional[int] = typer.Option(
        None,
        "--iterations",
        "-n",
        min=1,
        help="Timed calls per backend per scenario (default from settings).",
    ),
    warmup: Optional[int] = typer.Option(
        None,
        "--warmup",
        "-w",
        min=0,
        help="Untimed warmup calls per backend (default from settings).",
    ),
    scenario: Optional[List[str]] = typer.Option(
        None,
        "--scenario",
        "-s",
        help="Only run the named scenario(s). Repeatable.",
    ),
    exact_p: bool = typer.Option(
        False, "--exact-p", help="Use Student's t p-values instead of the bucketed table."
    ),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Write results JSON."),
) -> None:
    """
    Run the scenarios in SCENARIO_FILE against both backends and report.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        scenarios = load_scenario_file(scenario_file)
    except SoulBenchError as exc:
        _fail(exc)

    config = RunConfig(
        iterations=iterations,
        warmup_iterations=warmup,
        p_value_method="exact" if exact_p else None,
        persist=persist,
        scenario_names=scenario or None,
    )
    resolved = config.resolved()
    typer.echo(
        f"Running {len(scenarios)} scenario(s) from '{scenario_file}' "
        f"(iterations={resolved.iterations}, warmup={resolved.warmup_iterations})."
    )
    result = run_scenarios(scenarios, config)
    print_report(result)


@app.command()
def analyze(
    samples_file: Path = typer.Argument(
        ..., help="Raw samples JSON, or a results file written by `run`."
    ),
    exact_p: bool = typer.Option(
        False, "--exact-p", help="Use Student's t p-values instead of the bucketed table."
    ),
) -> None:
    """
    Recompute statistics from recorded samples without touching any database.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        result = load_samples_file(samples_file, p_value_method="exact" if exact_p else "bucketed")
    except SoulBenchError as exc:
        _fail(exc)
    print_report(result)


@app.command()
def load(
    scenario_file: Path = typer.Argument(..., help="JSON file with backends and scenarios."),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        min=1,
        help="Concurrent workers per backend (default from settings).",
    ),
    duration: Optional[float] = typer.Option(
        None,
        "--duration",
        "-d",
        min=0.001,
        help="Seconds to keep each backend under load (default from settings).",
    ),
    pause_ms: Optional[int] = typer.Option(
        None, "--pause-ms", min=0, help="Sleep between calls inside each worker."
    ),
    scenario: Optional[List[str]] = typer.Option(
        None,
        "--scenario",
        "-s",
        help="Only load-test the named scenario(s). Repeatable.",
    ),
) -> None:
    """
    Put each backend of SCENARIO_FILE under concurrent load and report throughput.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        scenarios = load_scenario_file(scenario_file)
    except SoulBenchError as exc:
        _fail(exc)

    typer.echo(
        f"Load testing {len(scenarios)} scenario(s) from '{scenario_file}' "
        f"(concurrency={concurrency or settings.load_concurrency}, "
        f"duration={duration or settings.load_duration_s}s)."
    )
    reports = run_load_scenarios(
        scenarios,
        concurrency=concurrency,
        duration_s=duration,
        pause_ms=pause_ms,
        scenario_names=scenario or None,
    )
    print_load_report(reports)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
