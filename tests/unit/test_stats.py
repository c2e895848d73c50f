from __future__ import annotations

import json
import math
import random

import pytest
from scipy import stats as scipy_stats

from soulbench.domain.models import DescriptiveStats, SampleSet
from soulbench.stats import (
    SENTINEL_CAP,
    advantage_percent,
    bucketed_p_value,
    compare_samples,
    compute_stats,
    confidence_level,
    exact_p_value,
    interpret_consistency,
    interpret_effect_size,
    performance_ratio,
)

FIVE_SAMPLES = [10.0, 20.0, 30.0, 40.0, 50.0]
FIVE_SAMPLES_STD = math.sqrt(250.0)
OUTLIER_SAMPLES = [5.0] * 9 + [100.0]


class TestComputeStats:
    def test_five_evenly_spaced_samples(self):
        result = compute_stats(FIVE_SAMPLES)

        assert result.count == 5
        assert result.mean == 30.0
        assert result.min == 10.0
        assert result.max == 50.0
        assert result.p50 == 30.0
        assert result.p95 == 50.0
        assert result.p99 == 50.0
        assert result.std_dev == pytest.approx(FIVE_SAMPLES_STD)
        assert result.cv == pytest.approx(FIVE_SAMPLES_STD / 30.0 * 100)
        assert result.ci95 == pytest.approx(1.96 * FIVE_SAMPLES_STD / math.sqrt(5))

    def test_single_sample_has_no_spread(self):
        result = compute_stats([7.25])

        assert result.mean == 7.25
        assert result.min == result.max == 7.25
        assert result.p50 == result.p95 == result.p99 == 7.25
        assert result.std_dev == 0.0
        assert result.cv == 0.0
        assert result.ci95 == 0.0

    def test_empty_sample_is_all_zero(self):
        result = compute_stats([])

        assert result == DescriptiveStats()
        assert result.count == 0
        assert result.mean == 0.0
        assert result.p99 == 0.0

    def test_zero_mean_gives_zero_cv(self):
        result = compute_stats([0.0, 0.0, 0.0])

        assert result.cv == 0.0
        assert not math.isnan(result.cv)

    def test_outlier_only_moves_high_percentiles(self):
        result = compute_stats(OUTLIER_SAMPLES)

        assert result.p50 == 5.0
        assert result.p99 == 100.0
        assert result.max == 100.0

    def test_p99_of_hundred_samples_is_last_element(self):
        samples = [float(i) for i in range(1, 101)]

        result = compute_stats(samples)

        assert result.p99 == 100.0
        assert result.p50 == 51.0
        assert result.p95 == 96.0

    def test_input_order_is_preserved(self):
        samples = SampleSet("dsql", [3.0, 1.0, 2.0])

        compute_stats(samples)

        assert samples.values == (3.0, 1.0, 2.0)

    def test_percentiles_are_ordered_for_random_samples(self):
        rng = random.Random(7)
        for size in (1, 2, 3, 10, 57, 200):
            samples = [rng.uniform(0.1, 500.0) for _ in range(size)]
            result = compute_stats(samples)
            assert result.min <= result.p50 <= result.p95 <= result.p99 <= result.max

    def test_is_deterministic(self):
        samples = [12.5, 9.75, 33.0, 10.0, 11.25]

        assert compute_stats(samples) == compute_stats(samples)


class TestCompareSamples:
    def test_identical_constant_samples(self):
        result = compare_samples([10, 10, 10], [10, 10, 10])

        assert result.t_stat == 0.0
        assert result.p_value == 0.2
        assert result.significant is False
        assert result.effect_size == 0.0
        assert result.effect_size_infinite is False

    def test_zero_variance_with_different_means_is_tagged_infinite(self):
        result = compare_samples([100, 100, 100], [10, 10, 10])

        assert result.t_stat == SENTINEL_CAP
        assert result.p_value == 0.001
        assert result.significant is True
        assert result.effect_size == SENTINEL_CAP
        assert result.effect_size_infinite is True
        assert interpret_effect_size(result.effect_size, result.effect_size_infinite) == "undefined"

    def test_result_serializes_without_inf_or_nan(self):
        result = compare_samples([100, 100, 100], [10, 10, 10])

        json.dumps(result.model_dump(), allow_nan=False)

    def test_pooled_t_statistic(self):
        a = [10.0, 12.0, 14.0]
        b = [20.0, 22.0, 24.0]

        result = compare_samples(a, b)

        # both variances are 4 -> pooled sd 2; t = 10 / (2 * sqrt(2/3))
        assert result.pooled_std_dev == pytest.approx(2.0)
        assert result.t_stat == pytest.approx(10.0 / (2.0 * math.sqrt(2.0 / 3.0)))
        assert result.effect_size == pytest.approx(5.0)
        assert result.p_value == 0.001
        assert result.significant is True

    def test_effect_size_is_symmetric(self):
        a = [10.0, 13.0, 11.5, 12.0]
        b = [15.0, 14.0, 18.0, 16.5, 17.0]

        assert compare_samples(a, b).effect_size == compare_samples(b, a).effect_size
        assert compare_samples(a, b).t_stat == compare_samples(b, a).t_stat

    def test_larger_mean_gap_is_never_less_significant(self):
        base = [10.0, 11.0, 12.0, 13.0, 14.0]
        previous_t = -1.0
        previous_p = 1.0
        for delta in (0.0, 0.5, 1.0, 2.0, 3.0, 5.0, 8.0):
            result = compare_samples(base, [x + delta for x in base])
            assert result.t_stat >= previous_t
            assert result.p_value <= previous_p
            previous_t, previous_p = result.t_stat, result.p_value

    def test_single_sample_each_side(self):
        same = compare_samples([5.0], [5.0])
        different = compare_samples([5.0], [6.0])

        assert same.t_stat == 0.0
        assert same.significant is False
        assert different.effect_size_infinite is True
        assert different.significant is True

    def test_empty_side_does_not_raise(self):
        result = compare_samples([], [10.0, 11.0])

        assert result.significant is False
        assert result.t_stat == 0.0
        assert result.mean_b == pytest.approx(10.5)

    @pytest.mark.parametrize("other", [[10.0], [10.0, 11.0]])
    def test_empty_side_exact_p_value_is_one(self, other):
        result = compare_samples([], other, p_value_method="exact")

        assert result.p_value == 1.0
        assert result.significant is False

    def test_exact_p_value_matches_student_t(self):
        a = [10.0, 11.5, 9.5, 12.0, 10.5, 11.0]
        b = [11.0, 12.5, 11.5, 13.0, 12.0, 10.5]

        result = compare_samples(a, b, p_value_method="exact")

        expected = 2 * scipy_stats.t.sf(result.t_stat, len(a) + len(b) - 2)
        assert result.p_value == pytest.approx(expected)
        assert result.p_value_method == "exact"
        assert result.significant is bool(expected < 0.05)

    def test_exact_p_value_for_infinite_case_is_significant(self):
        result = compare_samples([100, 100, 100], [10, 10, 10], p_value_method="exact")

        assert result.significant is True
        assert result.p_value < 0.001


@pytest.mark.parametrize(
    "t_stat, expected",
    [
        (10.0, 0.001),
        (3.01, 0.001),
        (3.0, 0.01),
        (2.6, 0.01),
        (2.5, 0.05),
        (2.1, 0.05),
        (2.0, 0.1),
        (1.6, 0.1),
        (1.5, 0.2),
        (0.0, 0.2),
    ],
)
def test_bucketed_p_value_thresholds(t_stat, expected):
    assert bucketed_p_value(t_stat) == expected


def test_exact_p_value_of_zero_t_is_one():
    assert exact_p_value(0.0, 10) == pytest.approx(1.0)


def test_exact_p_value_without_degrees_of_freedom_falls_back_to_buckets():
    assert exact_p_value(2.2, 0) == 0.05
    assert exact_p_value(0.0, -1) == 1.0


@pytest.mark.parametrize(
    "d, label",
    [(0.0, "negligible"), (0.19, "negligible"), (0.2, "small"), (0.5, "medium"), (0.8, "large")],
)
def test_interpret_effect_size(d, label):
    assert interpret_effect_size(d) == label


@pytest.mark.parametrize(
    "cv, label",
    [(5.0, "Excellent"), (20.0, "Good"), (45.0, "Variable"), (60.0, "Highly Variable")],
)
def test_interpret_consistency(cv, label):
    assert interpret_consistency(cv) == label


def test_confidence_level():
    assert confidence_level(100) == "HIGH"
    assert confidence_level(50) == "MEDIUM"
    assert confidence_level(49) == "LOW"


def test_advantage_and_ratio():
    assert advantage_percent(10.0, 20.0) == pytest.approx(50.0)
    assert advantage_percent(20.0, 10.0) == pytest.approx(50.0)
    assert advantage_percent(0.0, 0.0) == 0.0
    assert performance_ratio(20.0, 10.0) == pytest.approx(2.0)
    assert performance_ratio(5.0, 0.0) == 0.0
