"""
SoulBench - latency comparison harness for a key-value store vs a relational engine.

Times the same logical workload (soul contract lookups, batch reads,
analytics rollups) against two database backends and reports:

- Descriptive latency statistics (mean, spread, CV, nearest-rank percentiles)
- A pooled two-sample t-test with a p-value and Cohen's d effect size
- Per-scenario winners and a tally of which design hypotheses held up

The statistics live in `soulbench.stats` and are pure functions usable without
any database; the orchestrator, scenario loader, and CLI wrap them.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from soulbench.config import Settings, get_settings
from soulbench.domain.models import (
    ComparisonResult,
    DescriptiveStats,
    LoadReport,
    RunSummary,
    SampleSet,
    ScenarioReport,
)
from soulbench.orchestrator import (
    RunConfig,
    RunResult,
    analyze_samples,
    run_load,
    run_load_scenarios,
    run_scenarios,
)
from soulbench.scenarios.abstract import (
    AbstractScenario,
    CallableOperation,
    ComparisonScenario,
    Operation,
    Scenario,
)
from soulbench.stats import compare_samples, compute_stats
from soulbench.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Statistics
    "compute_stats",
    "compare_samples",
    "SampleSet",
    "DescriptiveStats",
    "ComparisonResult",
    # Orchestration
    "RunConfig",
    "RunResult",
    "ScenarioReport",
    "RunSummary",
    "analyze_samples",
    "run_scenarios",
    # Load testing
    "LoadReport",
    "run_load",
    "run_load_scenarios",
    # Scenario abstractions
    "Operation",
    "Scenario",
    "AbstractScenario",
    "CallableOperation",
    "ComparisonScenario",
    # Logging
    "configure_logging",
    "get_logger",
]
