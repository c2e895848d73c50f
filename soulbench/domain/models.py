"""
Domain models for SoulBench.

`SampleSet` is the only mutable type: an append-only list of latency
measurements for one operation under one backend. Everything derived from it
(descriptive statistics, two-sample comparisons, scenario reports, the run
summary) is a frozen Pydantic model so results can be serialized straight to
JSON. None of these models ever holds IEEE infinity or NaN.
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

PValueMethod = Literal["bucketed", "exact"]


class SampleSet:
    """
    Ordered latency measurements (milliseconds) for one labelled operation.

    Only appends are allowed; the insertion order is kept for reporting and
    consumers take a sorted copy when they need order statistics.
    """

    __slots__ = ("label", "_values")

    def __init__(self, label: str = "", values: Iterable[float] = ()) -> None:
        self.label = label
        self._values: List[float] = []
        self.extend(values)

    def append(self, value_ms: float) -> None:
        self._values.append(float(value_ms))

    def extend(self, values_ms: Iterable[float]) -> None:
        for value in values_ms:
            self.append(value)

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[float]:
        return iter(tuple(self._values))

    def __bool__(self) -> bool:
        return bool(self._values)

    def __repr__(self) -> str:
        return f"SampleSet(label={self.label!r}, n={len(self._values)})"


class DescriptiveStats(BaseModel):
    """
    Summary statistics of a SampleSet. All-zero for an empty sample.
    """

    count: int = Field(0, description="Number of samples.")
    mean: float = Field(0.0, description="Arithmetic mean (ms).")
    min: float = Field(0.0, description="Smallest sample (ms).")
    max: float = Field(0.0, description="Largest sample (ms).")
    std_dev: float = Field(0.0, description="Sample standard deviation, n-1 divisor (ms).")
    cv: float = Field(0.0, description="Coefficient of variation, percent.")
    ci95: float = Field(0.0, description="95% confidence half-width, z=1.96 (ms).")
    p50: float = Field(0.0, description="Nearest-rank median (ms).")
    p95: float = Field(0.0, description="Nearest-rank 95th percentile (ms).")
    p99: float = Field(0.0, description="Nearest-rank 99th percentile (ms).")

    model_config = {"frozen": True}


class ComparisonResult(BaseModel):
    """
    Two-sample comparison: pooled t-statistic, p-value, and Cohen's d.

    When both samples have zero spread but different means, `t_stat` and
    `effect_size` carry a large finite cap and `effect_size_infinite` is set;
    display code should special-case that tag instead of printing the cap.
    """

    mean_a: float = 0.0
    mean_b: float = 0.0
    pooled_std_dev: float = 0.0
    t_stat: float = 0.0
    p_value: float = 0.2
    significant: bool = False
    effect_size: float = 0.0
    effect_size_infinite: bool = False
    p_value_method: PValueMethod = "bucketed"

    model_config = {"frozen": True}


class ScenarioReport(BaseModel):
    """
    Everything measured and derived for one benchmark scenario.
    """

    name: str
    description: str = ""
    backends: Tuple[str, str]
    expected_winner: Optional[str] = None
    stats: Dict[str, DescriptiveStats]
    comparison: ComparisonResult
    actual_winner: Optional[str] = None
    advantage_percent: float = 0.0
    performance_ratio: float = 0.0
    confirmed: Optional[bool] = None
    consistency_winner: Optional[str] = None
    errors: Dict[str, int] = Field(default_factory=dict)
    samples: Dict[str, List[float]] = Field(default_factory=dict)
    note: Optional[str] = None
    error: Optional[str] = None

    model_config = {"frozen": True}


class RunSummary(BaseModel):
    """
    Hypothesis tally across all scenarios of a run.
    """

    total_scenarios: int = 0
    scenarios_with_expectation: int = 0
    confirmed_hypotheses: int = 0
    confirmation_rate: str = "0%"
    wins: Dict[str, int] = Field(default_factory=dict)
    conclusion: str = ""

    model_config = {"frozen": True}


class LoadReport(BaseModel):
    """
    Outcome of a fixed-duration concurrent load test against one backend.

    `throughput` is successful calls per second over the configured duration.
    """

    scenario: str
    backend: str
    concurrency: int = 0
    duration_s: float = 0.0
    success: int = 0
    errors: int = 0
    stats: DescriptiveStats = Field(default_factory=DescriptiveStats)
    throughput: float = 0.0
    error: Optional[str] = None

    model_config = {"frozen": True}


__all__ = [
    "PValueMethod",
    "SampleSet",
    "DescriptiveStats",
    "ComparisonResult",
    "ScenarioReport",
    "RunSummary",
    "LoadReport",
]
