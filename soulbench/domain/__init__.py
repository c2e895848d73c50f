"""
Domain package for SoulBench.

Exports the sample container and the result records produced by the
statistics module and the orchestrator. Keep this package focused on data
definitions; arithmetic lives in `soulbench.stats`.
"""

from soulbench.domain.models import (
    ComparisonResult,
    DescriptiveStats,
    LoadReport,
    PValueMethod,
    RunSummary,
    SampleSet,
    ScenarioReport,
)

__all__ = [
    "ComparisonResult",
    "DescriptiveStats",
    "LoadReport",
    "PValueMethod",
    "RunSummary",
    "SampleSet",
    "ScenarioReport",
]
