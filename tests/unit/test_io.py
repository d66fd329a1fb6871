"""Tests for reading and writing stores and aggregates."""

import polars as pl
import pytest

from sparse_covariates.aggregation.aggregator import aggregate_covariates
from sparse_covariates.io import (
    load_aggregated,
    load_covariate_data,
    load_covariate_dir,
    save_aggregated,
    save_covariate_data,
    scan_table,
)
from sparse_covariates.tidy.pipeline import tidy_covariate_data


class TestStoreIO:
    def test_round_trip_keeps_metadata(self, age_group_data, tmp_path):
        tidy = tidy_covariate_data(age_group_data)
        save_covariate_data(tidy, tmp_path / "store")
        loaded = load_covariate_dir(tmp_path / "store")
        assert loaded.metadata == tidy.metadata
        assert loaded.collect().equals(tidy.collect())
        assert loaded.covariate_ref.equals(tidy.covariate_ref)

    def test_load_from_csv_tables(self, mixed_data, tmp_path):
        mixed_data.collect().write_csv(tmp_path / "rows.csv")
        mixed_data.covariate_ref.write_csv(tmp_path / "covariate_ref.csv")
        mixed_data.analysis_ref.write_csv(tmp_path / "analysis_ref.csv")
        loaded = load_covariate_data(
            tmp_path / "rows.csv", tmp_path / "covariate_ref.csv", tmp_path / "analysis_ref.csv", 10
        )
        assert loaded.collect().equals(mixed_data.collect())
        assert loaded.analysis_ref.equals(mixed_data.analysis_ref)

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError):
            scan_table(tmp_path / "rows.xlsx")


class TestAggregateIO:
    def test_round_trip(self, mixed_data, tmp_path):
        agg = aggregate_covariates(mixed_data)
        save_aggregated(agg, tmp_path / "agg")
        loaded = load_aggregated(tmp_path / "agg")
        assert loaded.population_size == 10
        assert loaded.is_temporal is False
        assert loaded.binary.equals(agg.binary)
        assert loaded.continuous.equals(agg.continuous)

    def test_store_directory_is_not_an_aggregate(self, mixed_data, tmp_path):
        save_covariate_data(mixed_data, tmp_path / "store")
        with pytest.raises(ValueError, match="aggregated"):
            load_aggregated(tmp_path / "store")

    def test_binary_table_schema(self, mixed_data, tmp_path):
        save_aggregated(aggregate_covariates(mixed_data), tmp_path / "agg")
        binary = pl.read_parquet(tmp_path / "agg" / "covariates.parquet")
        assert dict(binary.schema) == {
            "covariate_id": pl.Int64,
            "sum_value": pl.Int64,
            "average_value": pl.Float64,
        }
