"""Cohort comparator: standardized mean difference per covariate.

std_diff = (mean1 - mean2) / sqrt((var1 + var2) / 2)

Binary covariates use var = p * (1 - p) from their average value, continuous
ones the square of their reported standard deviation. A covariate absent from
one cohort counts as always 0 there, except for a continuous covariate whose
analysis treats absence as missing: it cannot be compared and is reported
separately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

import polars as pl
from loguru import logger

from ..aggregation.aggregator import AggregatedCovariateData
from ..errors import ConfigurationError
from ..shared.constants import ANALYSIS_ID, COVARIATE_ID, STD_DIFF_SCHEMA, TIME_ID
from ..types.schemas.models import StandardizedDifference


@dataclass(frozen=True, eq=False)
class StandardizedDifferenceResult:
    table: pl.DataFrame
    non_comparable_covariate_ids: List[int] = field(default_factory=list)

    def to_records(self) -> Iterator[StandardizedDifference]:
        for row in self.table.iter_rows(named=True):
            row.pop(TIME_ID, None)
            yield StandardizedDifference(**row)


def cohort_moments(agg: AggregatedCovariateData) -> pl.DataFrame:
    """Mean and variance per covariate of one aggregated cohort."""
    keys = agg.key_columns
    binary = agg.binary.select(
        *keys,
        pl.col("average_value").alias("mean"),
        (pl.col("average_value") * (1 - pl.col("average_value"))).alias("var"),
    )
    continuous = agg.continuous.select(
        *keys,
        pl.col("average_value").alias("mean"),
        (pl.col("standard_deviation") ** 2).alias("var"),
    )
    return pl.concat([binary, continuous], how="vertical_relaxed")


def _catalog(agg1: AggregatedCovariateData, agg2: AggregatedCovariateData) -> pl.DataFrame:
    """Covariate names and missing-value flags from both cohorts' catalogs."""
    covariate_ref = pl.concat([agg1.covariate_ref, agg2.covariate_ref]).unique(
        subset=COVARIATE_ID, keep="first", maintain_order=True
    )
    analysis_ref = pl.concat([agg1.analysis_ref, agg2.analysis_ref]).unique(
        subset=ANALYSIS_ID, keep="first", maintain_order=True
    )
    return covariate_ref.join(
        analysis_ref.select(ANALYSIS_ID, "is_binary", "missing_means_zero"),
        on=ANALYSIS_ID,
        how="left",
    ).select(
        COVARIATE_ID,
        "covariate_name",
        pl.col("is_binary").fill_null(True),
        pl.col("missing_means_zero").fill_null(True),
    )


def compute_standardized_difference(
    agg1: AggregatedCovariateData, agg2: AggregatedCovariateData
) -> StandardizedDifferenceResult:
    """Standardized difference of every covariate in either cohort.

    Sorted by absolute standardized difference, largest first, ties by
    covariate id. A pooled variance of 0 gives a difference of 0.
    """
    if agg1.is_temporal != agg2.is_temporal:
        raise ConfigurationError("cannot compare a temporal with a non-temporal aggregate")
    keys = agg1.key_columns

    m1 = cohort_moments(agg1).rename({"mean": "mean1", "var": "var1"})
    m2 = cohort_moments(agg2).rename({"mean": "mean2", "var": "var2"})
    joined = m1.join(m2, on=keys, how="full", coalesce=True).join(
        _catalog(agg1, agg2), on=COVARIATE_ID, how="left"
    )

    # Binary averages are always over N, so an absent binary covariate is a true 0
    one_sided = pl.col("mean1").is_null() | pl.col("mean2").is_null()
    missing_is_unknown = (
        ~pl.col("is_binary").fill_null(True) & ~pl.col("missing_means_zero").fill_null(True)
    )
    non_comparable = joined.filter(one_sided & missing_is_unknown)
    non_comparable_ids = sorted(set(non_comparable[COVARIATE_ID].to_list()))
    if non_comparable_ids:
        logger.warning(
            f"{len(non_comparable_ids)} covariates present in one cohort only with "
            f"missing values that are not zero; excluded from comparison"
        )

    pooled_sd = ((pl.col("var1") + pl.col("var2")) / 2).sqrt()
    table = (
        joined.filter(~(one_sided & missing_is_unknown))
        .with_columns(
            pl.col("mean1", "var1", "mean2", "var2").fill_null(0.0),
            pl.col("covariate_name").fill_null(""),
        )
        .with_columns(
            pl.when(pooled_sd > 0)
            .then((pl.col("mean1") - pl.col("mean2")) / pooled_sd)
            .otherwise(0.0)
            .alias("std_diff"),
            pl.col("var1").sqrt().alias("sd1"),
            pl.col("var2").sqrt().alias("sd2"),
        )
        .with_columns(pl.col("std_diff").abs().alias("_abs"))
        .sort(["_abs"] + keys, descending=[True] + [False] * len(keys))
    )
    columns = list(STD_DIFF_SCHEMA)
    if TIME_ID in keys:
        columns.insert(1, TIME_ID)
    table = table.select([pl.col(c) for c in columns])
    logger.info(
        f"Standardized difference computed for {table.height} covariates "
        f"({len(non_comparable_ids)} non-comparable)"
    )
    return StandardizedDifferenceResult(table, non_comparable_ids)
