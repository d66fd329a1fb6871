"""Tests for the normalizer."""

import polars as pl
import pytest

from conftest import CONDITION, MEASUREMENT, VISIT_COUNT, make_data
from sparse_covariates.errors import ConfigurationError, DataQualityWarning
from sparse_covariates.tidy.normalize import covariate_maxima, normalize_covariates


@pytest.fixture
def continuous_data():
    rows = [
        (1, 3001, 2.0), (2, 3001, 4.0), (3, 3001, 8.0),
        (1, 4001, 0.5), (2, 4001, 0.25),
        (1, 2001, 1.0),
    ]
    return make_data(rows, {3001: MEASUREMENT, 4001: VISIT_COUNT, 2001: CONDITION}, 10)


def _values(data, covariate_id):
    df = data.collect().filter(pl.col("covariate_id") == covariate_id).sort("row_id")
    return df["covariate_value"].to_list()


class TestNormalizer:
    def test_scales_by_maximum(self, continuous_data):
        normalized = normalize_covariates(continuous_data)
        assert _values(normalized, 3001) == [0.25, 0.5, 1.0]
        assert _values(normalized, 4001) == [1.0, 0.5]
        assert _values(normalized, 2001) == [1.0]
        assert normalized.metadata.normalized is True

    def test_values_within_unit_interval(self, continuous_data):
        df = normalize_covariates(continuous_data).collect()
        assert df["covariate_value"].max() <= 1.0
        assert df["covariate_value"].min() >= 0.0

    def test_idempotent(self, continuous_data):
        once = normalize_covariates(continuous_data)
        twice = normalize_covariates(once)
        assert once.collect().equals(twice.collect())

    def test_original_snapshot_unchanged(self, continuous_data):
        normalize_covariates(continuous_data)
        assert _values(continuous_data, 3001) == [2.0, 4.0, 8.0]

    def test_non_positive_covariate_is_skipped_with_warning(self):
        rows = [(1, 3001, -2.0), (2, 3001, -1.0), (1, 3002, 5.0)]
        data = make_data(rows, {3001: MEASUREMENT, 3002: MEASUREMENT}, 4)
        with pytest.warns(DataQualityWarning):
            normalized = normalize_covariates(data)
        assert _values(normalized, 3001) == [-2.0, -1.0]
        assert _values(normalized, 3002) == [1.0]
        assert normalized.metadata.skipped_normalization_ids == [3001]

    def test_maxima_ignore_non_positive_values(self):
        rows = [(1, 3001, -5.0), (2, 3001, 3.0), (3, 3001, 0.0)]
        data = make_data(rows, {3001: MEASUREMENT}, 3)
        assert covariate_maxima(data)["max_value"].to_list() == [3.0]

    def test_empty_population(self):
        data = make_data([], {2001: CONDITION}, 0)
        with pytest.raises(ConfigurationError):
            normalize_covariates(data)
