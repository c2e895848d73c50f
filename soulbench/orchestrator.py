"""
Orchestrator for running benchmark scenarios, analyzing samples, and persisting results.

Usage (example from CLI):
    from soulbench.orchestrator import RunConfig, run_scenarios
    from soulbench.scenarios import load_scenario_file

    result = run_scenarios(load_scenario_file("scenarios.json"), RunConfig(iterations=100))
    print(result.summary)

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)

Both files carry the raw samples, so `analyze_samples` can rebuild the report
later without touching a database.

`run_load` is the concurrent mode: N worker threads call one operation for a
fixed duration and the merged samples are reported with throughput.
"""

from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, ValidationError

from soulbench import stats
from soulbench.config import get_settings
from soulbench.domain.models import (
    ComparisonResult,
    DescriptiveStats,
    LoadReport,
    PValueMethod,
    RunSummary,
    SampleSet,
    ScenarioReport,
)
from soulbench.errors import SampleFileError
from soulbench.scenarios.abstract import Operation, Scenario
from soulbench.utils.logging import get_logger
from soulbench.utils.timer import progress_step, timed

log = get_logger(__name__)

SUPPORTED_THRESHOLD = 0.75


@dataclass
class RunConfig:
    """
    Knobs for one benchmark run. Unset values fall back to settings.
    """

    iterations: Optional[int] = None
    warmup_iterations: Optional[int] = None
    p_value_method: Optional[PValueMethod] = None
    results_dir: Path | str | None = None
    persist: bool = True
    scenario_names: Optional[List[str]] = field(default=None)

    def resolved(self) -> "RunConfig":
        settings = get_settings()
        return RunConfig(
            iterations=(
                self.iterations
                if self.iterations is not None
                else settings.benchmark_iterations
            ),
            warmup_iterations=(
                self.warmup_iterations
                if self.warmup_iterations is not None
                else settings.benchmark_warmup_iterations
            ),
            p_value_method=self.p_value_method or settings.benchmark_p_value_method,
            results_dir=self.results_dir or settings.results_dir,
            persist=self.persist,
            scenario_names=self.scenario_names,
        )


class RunResult(BaseModel):
    """
    Full output of a run: per-scenario reports plus the hypothesis summary.
    """

    timestamp: str
    iterations: Optional[int] = None
    p_value_method: PValueMethod = "bucketed"
    reports: List[ScenarioReport] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)


def _pick_lower(backends: Tuple[str, str], value_a: float, value_b: float) -> Optional[str]:
    if value_a < value_b:
        return backends[0]
    if value_b < value_a:
        return backends[1]
    return None


def build_report(
    name: str,
    backends: Tuple[str, str],
    samples_a: Sequence[float],
    samples_b: Sequence[float],
    description: str = "",
    expected_winner: Optional[str] = None,
    note: Optional[str] = None,
    errors: Optional[Mapping[str, int]] = None,
    p_value_method: PValueMethod = "bucketed",
) -> ScenarioReport:
    """
    Derive statistics, comparison, and verdicts for one scenario's samples.

    Winners are only declared when both backends produced samples; equal means
    (or equal CVs) produce no winner.
    """
    stats_a = stats.compute_stats(samples_a)
    stats_b = stats.compute_stats(samples_b)
    comparison = stats.compare_samples(samples_a, samples_b, p_value_method=p_value_method)

    actual_winner: Optional[str] = None
    consistency_winner: Optional[str] = None
    advantage = 0.0
    ratio = 0.0
    if stats_a.count and stats_b.count:
        actual_winner = _pick_lower(backends, stats_a.mean, stats_b.mean)
        consistency_winner = _pick_lower(backends, stats_a.cv, stats_b.cv)
        advantage = stats.advantage_percent(stats_a.mean, stats_b.mean)
        ratio = stats.performance_ratio(
            max(stats_a.mean, stats_b.mean), min(stats_a.mean, stats_b.mean)
        )

    confirmed = None if expected_winner is None else actual_winner == expected_winner

    return ScenarioReport(
        name=name,
        description=description,
        backends=backends,
        expected_winner=expected_winner,
        stats={backends[0]: stats_a, backends[1]: stats_b},
        comparison=comparison,
        actual_winner=actual_winner,
        advantage_percent=advantage,
        performance_ratio=ratio,
        confirmed=confirmed,
        consistency_winner=consistency_winner,
        errors={backends[0]: 0, backends[1]: 0, **dict(errors or {})},
        samples={backends[0]: list(samples_a), backends[1]: list(samples_b)},
        note=note,
    )


def _failed_report(scenario: Scenario, backends: Tuple[str, str], error: str) -> ScenarioReport:
    expected_winner = getattr(scenario, "expected_winner", None)
    return ScenarioReport(
        name=scenario.name,
        description=getattr(scenario, "description", ""),
        backends=backends,
        expected_winner=expected_winner,
        stats={label: DescriptiveStats() for label in backends},
        comparison=ComparisonResult(),
        confirmed=None if expected_winner is None else False,
        errors={label: 0 for label in backends},
        samples={label: [] for label in backends},
        note=getattr(scenario, "note", None),
        error=error,
    )


def analyze_reports(reports: Iterable[ScenarioReport]) -> RunSummary:
    """
    Tally hypothesis confirmations and wins across scenario reports.
    """
    report_list = list(reports)
    with_expectation = [r for r in report_list if r.confirmed is not None]
    confirmed = sum(1 for r in with_expectation if r.confirmed)

    wins: Dict[str, int] = {}
    for report in report_list:
        for label in report.backends:
            if label:
                wins.setdefault(label, 0)
        if report.actual_winner is not None:
            wins[report.actual_winner] += 1

    if with_expectation:
        rate = confirmed / len(with_expectation)
        confirmation_rate = f"{round(rate * 100)}%"
        conclusion = (
            "Design philosophy claims are empirically supported"
            if rate >= SUPPORTED_THRESHOLD
            else "Design philosophy claims need refinement"
        )
    else:
        confirmation_rate = "0%"
        conclusion = "No expected winners stated; nothing to confirm"

    return RunSummary(
        total_scenarios=len(report_list),
        scenarios_with_expectation=len(with_expectation),
        confirmed_hypotheses=confirmed,
        confirmation_rate=confirmation_rate,
        wins=wins,
        conclusion=conclusion,
    )


def _warmup(scenario_name: str, operations: Sequence[Operation], iterations: int) -> None:
    if iterations <= 0:
        return
    log.info(f"[WARMUP] {scenario_name} x{iterations}", extra={"scenario": scenario_name})
    for operation in operations:
        for _ in range(iterations):
            try:
                operation()
            except Exception as exc:  # noqa: BLE001 - warmup failures must not stop the run
                log.warning(
                    f"[WARMUP] {operation.backend} call failed",
                    extra={"scenario": scenario_name, "backend": operation.backend, "error": str(exc)},
                )


def _measure(
    scenario_name: str,
    operations: Sequence[Operation],
    iterations: int,
) -> Tuple[List[SampleSet], Dict[str, int]]:
    """
    Time every operation once per iteration, interleaving the backends.

    A failed call is logged and counted; its sample is omitted.
    """
    sample_sets = [SampleSet(op.backend) for op in operations]
    errors = {op.backend: 0 for op in operations}
    step = progress_step(iterations)

    for i in range(1, iterations + 1):
        for operation, samples in zip(operations, sample_sets):
            try:
                with timed(samples):
                    operation()
            except Exception as exc:  # noqa: BLE001 - a failed call only drops its sample
                errors[operation.backend] += 1
                log.warning(
                    f"[CALL FAILED] {scenario_name}/{operation.backend} iteration {i}",
                    extra={
                        "scenario": scenario_name,
                        "backend": operation.backend,
                        "iteration": i,
                        "error": str(exc),
                    },
                )
        if step and i % step == 0:
            log.info(
                f"[PROGRESS] {scenario_name} {i}/{iterations}",
                extra={"scenario": scenario_name, "iteration": i, "iterations": iterations},
            )

    return sample_sets, errors


def _close_all(operations: Sequence[Operation]) -> None:
    for operation in operations:
        try:
            operation.close()
        except Exception:  # noqa: BLE001 - best-effort cleanup
            log.warning(
                f"[CLEANUP] Failed to close {operation.backend}",
                extra={"backend": operation.backend},
                exc_info=True,
            )


def run_scenario(scenario: Scenario, config: RunConfig) -> ScenarioReport:
    """
    Warm up, measure, and analyze one scenario. Never raises.
    """
    cfg = config.resolved()
    operations: Tuple[Operation, ...] = ()
    try:
        operations = tuple(scenario.operations())
        backends = (operations[0].backend, operations[1].backend)
    except Exception as exc:  # noqa: BLE001 - record the failure, keep the run going
        log.exception(f"[SCENARIO FAILED] {scenario.name}", extra={"scenario": scenario.name})
        _close_all(operations)
        return _failed_report(scenario, ("", ""), str(exc))

    log.info(f"{'=' * 60}")
    log.info(
        f"[SCENARIO] {scenario.name.upper()}",
        extra={"scenario": scenario.name, "backends": list(backends)},
    )
    log.info(f"{'=' * 60}")

    try:
        _warmup(scenario.name, operations, cfg.warmup_iterations or 0)
        sample_sets, errors = _measure(scenario.name, operations, cfg.iterations or 0)
    except Exception as exc:  # noqa: BLE001 - record the failure, keep the run going
        log.exception(f"[SCENARIO FAILED] {scenario.name}", extra={"scenario": scenario.name})
        return _failed_report(scenario, backends, str(exc))
    finally:
        _close_all(operations)

    report = build_report(
        name=scenario.name,
        backends=backends,
        samples_a=sample_sets[0].values,
        samples_b=sample_sets[1].values,
        description=scenario.description,
        expected_winner=scenario.expected_winner,
        note=scenario.note,
        errors=errors,
        p_value_method=cfg.p_value_method or "bucketed",
    )
    log.info(
        f"[SCENARIO COMPLETE] {scenario.name}",
        extra={
            "scenario": scenario.name,
            "winner": report.actual_winner,
            "advantage_percent": round(report.advantage_percent, 1),
            "significant": report.comparison.significant,
            "errors": report.errors,
        },
    )
    return report


def _persist_results(result: RunResult, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    payload = result.model_dump(mode="json")
    with latest_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    with archive_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_scenarios(
    scenarios: Iterable[Scenario],
    config: Optional[RunConfig] = None,
) -> RunResult:
    """
    Run scenarios in order and optionally persist the results.

    Parameters
    ----------
    scenarios : iterable[Scenario]
        Scenarios to execute.
    config : RunConfig | None
        Iterations, warmup, p-value method, and persistence options.

    Returns
    -------
    RunResult
        One report per scenario (failed scenarios included) and the summary.
    """
    cfg = (config or RunConfig()).resolved()
    selected = list(scenarios)
    if cfg.scenario_names:
        wanted = set(cfg.scenario_names)
        selected = [s for s in selected if s.name in wanted]

    reports = [run_scenario(scenario, cfg) for scenario in selected]
    result = RunResult(
        timestamp=datetime.now(timezone.utc).isoformat(),
        iterations=cfg.iterations,
        p_value_method=cfg.p_value_method or "bucketed",
        reports=reports,
        summary=analyze_reports(reports),
    )

    if cfg.persist:
        _persist_results(result, Path(cfg.results_dir or "results"))

    log.info(
        f"[ORCHESTRATOR COMPLETE] {len(reports)} scenario(s) executed",
        extra={"scenarios": [r.name for r in reports], "summary": result.summary.model_dump()},
    )
    return result


def _load_worker(operation: Operation, deadline: float, pause_s: float) -> Tuple[SampleSet, int]:
    """
    Call `operation` back to back until `deadline` (monotonic seconds).

    Each worker keeps its own SampleSet; the caller merges them after join.
    """
    samples = SampleSet(operation.backend)
    errors = 0
    while time.monotonic() < deadline:
        try:
            with timed(samples):
                operation()
        except Exception as exc:  # noqa: BLE001 - a failed call only drops its sample
            errors += 1
            log.debug(
                f"[LOAD CALL FAILED] {operation.backend}",
                extra={"backend": operation.backend, "error": str(exc)},
            )
        if pause_s:
            time.sleep(pause_s)
    return samples, errors


def _resolve_load_args(
    concurrency: Optional[int], duration_s: Optional[float], pause_ms: Optional[int]
) -> Tuple[int, float, int]:
    settings = get_settings()
    workers = concurrency if concurrency is not None else settings.load_concurrency
    duration = duration_s if duration_s is not None else settings.load_duration_s
    pause = pause_ms if pause_ms is not None else settings.load_pause_ms
    if workers < 1:
        raise ValueError(f"concurrency must be >= 1, got {workers}")
    if duration <= 0:
        raise ValueError(f"duration_s must be > 0, got {duration}")
    if pause < 0:
        raise ValueError(f"pause_ms must be >= 0, got {pause}")
    return workers, duration, pause


def run_load(
    operation: Operation,
    concurrency: Optional[int] = None,
    duration_s: Optional[float] = None,
    pause_ms: Optional[int] = None,
    scenario: str = "",
) -> LoadReport:
    """
    Hammer one operation from `concurrency` threads for `duration_s` seconds.

    Parameters
    ----------
    operation : Operation
        Shared by every worker, so it must tolerate concurrent calls.
    concurrency : int | None
        Number of worker threads (default from settings).
    duration_s : float | None
        Wall-clock length of the test (default from settings).
    pause_ms : int | None
        Sleep between calls inside each worker (default from settings).

    Returns
    -------
    LoadReport
        Success/error counts, latency stats over all successful calls, and
        throughput as successful calls per second of `duration_s`.
    """
    workers, duration, pause = _resolve_load_args(concurrency, duration_s, pause_ms)
    log.info(
        f"[LOAD] {scenario or '-'}/{operation.backend} x{workers} for {duration}s",
        extra={"scenario": scenario, "backend": operation.backend, "concurrency": workers},
    )
    deadline = time.monotonic() + duration
    merged = SampleSet(operation.backend)
    errors = 0
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_load_worker, operation, deadline, pause / 1000)
            for _ in range(workers)
        ]
        for future in futures:
            samples, worker_errors = future.result()
            merged.extend(samples.values)
            errors += worker_errors

    report = LoadReport(
        scenario=scenario,
        backend=operation.backend,
        concurrency=workers,
        duration_s=duration,
        success=len(merged),
        errors=errors,
        stats=stats.compute_stats(merged.values),
        throughput=len(merged) / duration,
    )
    log.info(
        f"[LOAD COMPLETE] {scenario or '-'}/{operation.backend}",
        extra={
            "scenario": scenario,
            "backend": operation.backend,
            "success": report.success,
            "errors": report.errors,
            "throughput": round(report.throughput, 2),
        },
    )
    return report


def run_load_scenarios(
    scenarios: Iterable[Scenario],
    concurrency: Optional[int] = None,
    duration_s: Optional[float] = None,
    pause_ms: Optional[int] = None,
    scenario_names: Optional[List[str]] = None,
) -> List[LoadReport]:
    """
    Load-test both backends of every scenario, one backend at a time.

    A scenario whose operations cannot be built yields a single report with
    `error` set; the remaining scenarios still run.
    """
    selected = list(scenarios)
    if scenario_names:
        wanted = set(scenario_names)
        selected = [s for s in selected if s.name in wanted]

    concurrency, duration_s, pause_ms = _resolve_load_args(concurrency, duration_s, pause_ms)
    reports: List[LoadReport] = []
    for scenario in selected:
        operations: Tuple[Operation, ...] = ()
        try:
            operations = tuple(scenario.operations())
            for operation in operations:
                reports.append(
                    run_load(
                        operation,
                        concurrency=concurrency,
                        duration_s=duration_s,
                        pause_ms=pause_ms,
                        scenario=scenario.name,
                    )
                )
        except Exception as exc:  # noqa: BLE001 - record the failure, keep the run going
            log.exception(f"[LOAD FAILED] {scenario.name}", extra={"scenario": scenario.name})
            reports.append(LoadReport(scenario=scenario.name, backend="", error=str(exc)))
        finally:
            _close_all(operations)
    return reports


class _RawScenario(BaseModel):
    samples: Dict[str, List[float]]
    description: str = ""
    expected_winner: Optional[str] = None
    note: Optional[str] = None


class _RawSamplesFile(BaseModel):
    scenarios: Dict[str, _RawScenario]


class _PersistedReport(BaseModel):
    name: str
    backends: List[str] = Field(default_factory=list)
    samples: Dict[str, List[float]] = Field(default_factory=dict)
    description: str = ""
    expected_winner: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None


class _PersistedRun(BaseModel):
    reports: List[_PersistedReport]


def _raw_from_run(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a persisted RunResult payload into the raw-samples shape."""
    try:
        run = _PersistedRun.model_validate(data)
    except ValidationError as exc:
        raise SampleFileError(f"Invalid results document: {exc}") from exc

    scenarios: Dict[str, Any] = {}
    for report in run.reports:
        if report.error:
            continue
        labels = report.backends or list(report.samples)
        scenarios[report.name] = {
            "samples": {label: report.samples.get(label, []) for label in labels},
            "description": report.description,
            "expected_winner": report.expected_winner,
            "note": report.note,
        }
    return {"scenarios": scenarios}


def analyze_samples(
    raw: Mapping[str, Any],
    p_value_method: PValueMethod = "bucketed",
) -> RunResult:
    """
    Rebuild reports from recorded samples, without any database access.

    Accepts either ``{"scenarios": {name: {"samples": {label: [...], label: [...]},
    "expected_winner": ...}}}`` or a persisted run payload (``{"reports": [...]}``).

    Raises
    ------
    SampleFileError
        If the document does not have one of those shapes or a scenario does not
        have exactly two sample lists.
    """
    data = _raw_from_run(raw) if "reports" in raw else raw
    try:
        document = _RawSamplesFile.model_validate(data)
    except ValidationError as exc:
        raise SampleFileError(f"Invalid samples document: {exc}") from exc

    reports: List[ScenarioReport] = []
    for name, entry in document.scenarios.items():
        if len(entry.samples) != 2:
            raise SampleFileError(
                f"Scenario '{name}' must have samples for exactly 2 backends, "
                f"got {len(entry.samples)}"
            )
        (label_a, samples_a), (label_b, samples_b) = entry.samples.items()
        if entry.expected_winner is not None and entry.expected_winner not in (label_a, label_b):
            raise SampleFileError(
                f"Scenario '{name}' expects unknown winner '{entry.expected_winner}'"
            )
        reports.append(
            build_report(
                name=name,
                backends=(label_a, label_b),
                samples_a=samples_a,
                samples_b=samples_b,
                description=entry.description,
                expected_winner=entry.expected_winner,
                note=entry.note,
                p_value_method=p_value_method,
            )
        )

    return RunResult(
        timestamp=datetime.now(timezone.utc).isoformat(),
        p_value_method=p_value_method,
        reports=reports,
        summary=analyze_reports(reports),
    )


def load_samples_file(path: Path | str, p_value_method: PValueMethod = "bucketed") -> RunResult:
    """
    Read a samples/results JSON file and analyze it.
    """
    file_path = Path(path)
    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise SampleFileError(f"Samples file not found: {file_path}") from exc
    except json.JSONDecodeError as exc:
        raise SampleFileError(f"Samples file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SampleFileError("Samples file must contain a JSON object")
    return analyze_samples(data, p_value_method=p_value_method)


__all__ = [
    "RunConfig",
    "RunResult",
    "analyze_reports",
    "analyze_samples",
    "build_report",
    "load_samples_file",
    "run_load",
    "run_load_scenarios",
    "run_scenario",
    "run_scenarios",
]
