"""
Latency statistics and significance comparison.

Turns raw timing samples (milliseconds) into reportable statistics and gives a
coarse significance judgment between two backends measured on the same
scenario. Every function here is pure and synchronous: no I/O, no shared
state, safe to call from any thread that owns its own input.

Conventions (applied everywhere, no per-call variations):
- variance uses the n-1 divisor and is 0 for fewer than two samples;
- percentiles are nearest-rank on an ascending sorted copy, with index
  ``floor(n * q)`` clamped to ``[0, n - 1]`` (so p99 of 100 samples is the
  last element);
- the 95% confidence half-width uses z = 1.96, not a t quantile.

Degenerate input never raises. Empty samples give zeroed statistics, a zero
mean gives CV 0, and zero pooled spread with different means gives a capped
t-statistic/effect size tagged as infinite.

Usage:
    from soulbench.stats import compare_samples, compute_stats

    stats = compute_stats([12.1, 11.8, 13.0])
    result = compare_samples(dynamo_ms, dsql_ms)
    if result.significant:
        ...
"""

from __future__ import annotations

import math
import statistics
from typing import Iterable, List, Sequence

from scipy import stats as scipy_stats

from soulbench.domain.models import ComparisonResult, DescriptiveStats, PValueMethod

Z_95 = 1.96
SIGNIFICANCE_LEVEL = 0.05

# Stand-in for +infinity when both samples have zero spread but different means.
SENTINEL_CAP = 1.0e9

# (t threshold, p-value), checked in order; below the last threshold p = 0.2.
_P_VALUE_BUCKETS = (
    (3.0, 0.001),
    (2.5, 0.01),
    (2.0, 0.05),
    (1.5, 0.1),
)
_P_VALUE_FLOOR = 0.2


def _as_list(samples: Iterable[float]) -> List[float]:
    return [float(v) for v in samples]


def _mean(values: Sequence[float]) -> float:
    return statistics.fmean(values) if values else 0.0


def _variance(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return statistics.variance(values)


def _nearest_rank(sorted_values: Sequence[float], q: float) -> float:
    n = len(sorted_values)
    index = min(max(int(math.floor(n * q)), 0), n - 1)
    return sorted_values[index]


def compute_stats(samples: Iterable[float]) -> DescriptiveStats:
    """
    Compute descriptive statistics for one sample of latencies.

    Parameters
    ----------
    samples : iterable of float
        Elapsed times in milliseconds, in measurement order. A SampleSet works
        as is; it is never reordered.

    Returns
    -------
    DescriptiveStats
        All fields zero when `samples` is empty.
    """
    values = _as_list(samples)
    n = len(values)
    if n == 0:
        return DescriptiveStats()

    ordered = sorted(values)
    mean = _mean(values)
    std_dev = math.sqrt(_variance(values))
    cv = (std_dev / mean) * 100 if mean != 0 else 0.0

    return DescriptiveStats(
        count=n,
        mean=mean,
        min=ordered[0],
        max=ordered[-1],
        std_dev=std_dev,
        cv=cv,
        ci95=Z_95 * std_dev / math.sqrt(n),
        p50=_nearest_rank(ordered, 0.5),
        p95=_nearest_rank(ordered, 0.95),
        p99=_nearest_rank(ordered, 0.99),
    )


def bucketed_p_value(t_stat: float) -> float:
    """
    Coarse p-value lookup kept for parity with historical reports.

    Not a Student's t CDF: the thresholds ignore degrees of freedom.
    """
    for threshold, p_value in _P_VALUE_BUCKETS:
        if t_stat > threshold:
            return p_value
    return _P_VALUE_FLOOR


def exact_p_value(t_stat: float, df: int) -> float:
    """Two-sided p-value from Student's t distribution with `df` degrees of freedom."""
    if t_stat == 0:
        return 1.0
    if df < 1:
        return bucketed_p_value(t_stat)
    return float(min(1.0, 2.0 * scipy_stats.t.sf(abs(t_stat), df)))


def compare_samples(
    a: Iterable[float],
    b: Iterable[float],
    p_value_method: PValueMethod = "bucketed",
) -> ComparisonResult:
    """
    Compare two latency samples with a pooled-variance t-test and Cohen's d.

    Parameters
    ----------
    a, b : iterable of float
        Elapsed times in milliseconds for the two backends.
    p_value_method : {"bucketed", "exact"}
        "bucketed" reproduces the fixed threshold table; "exact" uses the
        Student's t survival function with ``nA + nB - 2`` degrees of freedom.

    Returns
    -------
    ComparisonResult
        Zeroed and not significant when either side is empty.
    """
    values_a = _as_list(a)
    values_b = _as_list(b)
    n_a, n_b = len(values_a), len(values_b)
    mean_a, mean_b = _mean(values_a), _mean(values_b)

    def p_for(t_stat: float) -> float:
        if p_value_method == "exact":
            return exact_p_value(t_stat, n_a + n_b - 2)
        return bucketed_p_value(t_stat)

    if n_a == 0 or n_b == 0:
        p_value = p_for(0.0)
        return ComparisonResult(
            mean_a=mean_a,
            mean_b=mean_b,
            p_value=p_value,
            significant=p_value < SIGNIFICANCE_LEVEL,
            p_value_method=p_value_method,
        )

    divisor = (n_a + n_b - 2) or 1
    pooled_variance = ((n_a - 1) * _variance(values_a) + (n_b - 1) * _variance(values_b)) / divisor
    pooled_std_dev = math.sqrt(pooled_variance)
    diff = abs(mean_a - mean_b)

    infinite = False
    if pooled_std_dev == 0:
        if diff == 0:
            t_stat = 0.0
            effect_size = 0.0
        else:
            t_stat = SENTINEL_CAP
            effect_size = SENTINEL_CAP
            infinite = True
    else:
        t_stat = min(diff / (pooled_std_dev * math.sqrt(1 / n_a + 1 / n_b)), SENTINEL_CAP)
        effect_size = min(diff / pooled_std_dev, SENTINEL_CAP)

    p_value = p_for(t_stat)
    return ComparisonResult(
        mean_a=mean_a,
        mean_b=mean_b,
        pooled_std_dev=pooled_std_dev,
        t_stat=t_stat,
        p_value=p_value,
        significant=p_value < SIGNIFICANCE_LEVEL,
        effect_size=effect_size,
        effect_size_infinite=infinite,
        p_value_method=p_value_method,
    )


def interpret_effect_size(effect_size: float, infinite: bool = False) -> str:
    """Human-readable label for Cohen's d. Display only."""
    if infinite:
        return "undefined"
    if effect_size < 0.2:
        return "negligible"
    if effect_size < 0.5:
        return "small"
    if effect_size < 0.8:
        return "medium"
    return "large"


def interpret_consistency(cv: float) -> str:
    """Label latency consistency from the coefficient of variation (percent)."""
    if cv < 20:
        return "Excellent"
    if cv < 40:
        return "Good"
    if cv < 60:
        return "Variable"
    return "Highly Variable"


def confidence_level(n: int) -> str:
    """Rough confidence in a result given the number of samples per backend."""
    if n >= 100:
        return "HIGH"
    if n >= 50:
        return "MEDIUM"
    return "LOW"


def advantage_percent(mean_a: float, mean_b: float) -> float:
    """Relative gap between two means, as a percentage of the slower one."""
    slower = max(mean_a, mean_b)
    if slower <= 0:
        return 0.0
    return abs(mean_a - mean_b) / slower * 100


def performance_ratio(slow_mean: float, fast_mean: float) -> float:
    """How many times slower `slow_mean` is than `fast_mean`; 0 if undefined."""
    if fast_mean <= 0:
        return 0.0
    return slow_mean / fast_mean


__all__ = [
    "SENTINEL_CAP",
    "SIGNIFICANCE_LEVEL",
    "Z_95",
    "advantage_percent",
    "bucketed_p_value",
    "compare_samples",
    "compute_stats",
    "confidence_level",
    "exact_p_value",
    "interpret_consistency",
    "interpret_effect_size",
    "performance_ratio",
]
