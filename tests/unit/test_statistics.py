"""Tests for quantiles and moments over values with implicit zeros."""

import math

import numpy as np
import pytest

from sparse_covariates.aggregation.statistics import summarize_values, type7_quantile
from sparse_covariates.aggregation.strategies import MissingValueStrategy
from sparse_covariates.shared.constants import QUANTILES


def _dense(values, zeros):
    return np.concatenate([np.asarray(values, dtype=float), np.zeros(zeros)])


class TestType7Quantile:
    @pytest.mark.parametrize(
        "values,zeros",
        [
            ([2.0, 4.0, 6.0], 0),
            ([2.0, 4.0, 6.0], 7),
            ([-3.0, -1.0, 2.5, 8.0], 5),
            ([-4.0, -2.0], 3),
            ([1.5], 99),
        ],
    )
    def test_matches_numpy_linear(self, values, zeros):
        dense = _dense(values, zeros)
        observed = np.sort(np.asarray(values, dtype=float))
        for q in QUANTILES.values():
            assert type7_quantile(observed, q, zeros) == pytest.approx(
                np.percentile(dense, q * 100, method="linear")
            )

    def test_observed_only_example(self):
        values = np.array([2.0, 4.0, 6.0])
        assert type7_quantile(values, 0.5) == 4.0
        assert type7_quantile(values, 0.1) == pytest.approx(2.4)
        assert type7_quantile(values, 0.9) == pytest.approx(5.6)

    def test_empty_is_nan(self):
        assert math.isnan(type7_quantile(np.array([]), 0.5))


class TestSummarizeValues:
    def test_observed_only(self):
        stats = summarize_values(np.array([6.0, 2.0, 4.0]))
        assert stats["count_value"] == 3
        assert stats["min_value"] == 2.0
        assert stats["max_value"] == 6.0
        assert stats["average_value"] == pytest.approx(4.0)
        assert stats["standard_deviation"] == pytest.approx(2.0)
        assert stats["median_value"] == 4.0

    def test_zero_filled_matches_dense_vector(self):
        stats = summarize_values(np.array([2.0, 4.0, 6.0]), implicit_zeros=7)
        dense = _dense([2.0, 4.0, 6.0], 7)
        assert stats["count_value"] == 10
        assert stats["min_value"] == 0.0
        assert stats["max_value"] == 6.0
        assert stats["average_value"] == pytest.approx(1.2)
        assert stats["standard_deviation"] == pytest.approx(np.std(dense, ddof=1))
        assert stats["median_value"] == 0.0
        assert stats["p75_value"] == pytest.approx(1.5)
        assert stats["p90_value"] == pytest.approx(4.2)

    def test_negative_values_with_zeros(self):
        values = [-5.0, -1.0, 3.0]
        stats = summarize_values(np.array(values), implicit_zeros=2)
        dense = _dense(values, 2)
        assert stats["min_value"] == -5.0
        assert stats["max_value"] == 3.0
        assert stats["average_value"] == pytest.approx(dense.mean())
        assert stats["standard_deviation"] == pytest.approx(np.std(dense, ddof=1))

    def test_all_negative_values_report_zero_maximum(self):
        stats = summarize_values(np.array([-2.0, -1.0]), implicit_zeros=1)
        assert stats["max_value"] == 0.0

    def test_single_value_has_zero_sd(self):
        stats = summarize_values(np.array([3.0]))
        assert stats["count_value"] == 1
        assert stats["standard_deviation"] == 0.0
        assert stats["p10_value"] == stats["p90_value"] == 3.0

    def test_only_implicit_zeros(self):
        stats = summarize_values(np.array([]), implicit_zeros=4)
        assert stats["count_value"] == 4
        assert stats["average_value"] == 0.0
        assert stats["standard_deviation"] == 0.0

    def test_empty_distribution_is_rejected(self):
        with pytest.raises(ValueError):
            summarize_values(np.array([]))


class TestMissingValueStrategy:
    def test_from_flag(self):
        assert MissingValueStrategy.from_flag(True) is MissingValueStrategy.ZERO_FILLED
        assert MissingValueStrategy.from_flag(False) is MissingValueStrategy.OBSERVED_ONLY

    def test_implicit_zeros(self):
        assert MissingValueStrategy.ZERO_FILLED.implicit_zeros(3, 10) == 7
        assert MissingValueStrategy.OBSERVED_ONLY.implicit_zeros(3, 10) == 0

    def test_strategies_differ_only_in_absent_entries(self):
        values = np.array([2.0, 4.0, 6.0])
        observed = MissingValueStrategy.OBSERVED_ONLY.summarize(values, 3)
        filled = MissingValueStrategy.ZERO_FILLED.summarize(values, 3)
        assert observed == filled
