"""Normalizer: rescale each covariate into [0, 1] by its largest positive value."""

from __future__ import annotations

from typing import List

import polars as pl
from loguru import logger

from ..errors import ConfigurationError, warn_data_quality
from ..shared.constants import COVARIATE_ID, COVARIATE_VALUE
from ..shared.frames import collect
from ..store.covariate_data import CovariateData


def covariate_maxima(data: CovariateData) -> pl.DataFrame:
    """Largest strictly positive value per covariate, null when there is none."""
    return collect(
        data.covariates.group_by(COVARIATE_ID)
        .agg(
            pl.col(COVARIATE_VALUE)
            .filter(pl.col(COVARIATE_VALUE) > 0)
            .max()
            .alias("max_value")
        )
        .sort(COVARIATE_ID)
    )


def normalize_covariates(data: CovariateData) -> CovariateData:
    """Divide every value by the maximum of its covariate.

    Covariates without a positive value are left unchanged and reported with
    a DataQualityWarning. Re-normalizing a normalized store is a no-op since
    every maximum is then 1.
    """
    if data.population_size <= 0:
        raise ConfigurationError(
            f"population_size must be > 0 to normalize, got {data.population_size}"
        )
    maxima = covariate_maxima(data)
    skipped: List[int] = maxima.filter(pl.col("max_value").is_null())[COVARIATE_ID].to_list()
    if skipped:
        warn_data_quality(
            f"{len(skipped)} covariates have no positive value and were not "
            f"normalized: {skipped[:10]}"
        )

    scale = maxima.filter(pl.col("max_value").is_not_null()).lazy()
    columns = data.key_columns + [COVARIATE_VALUE]
    lf = (
        data.covariates.join(scale, on=COVARIATE_ID, how="left")
        .with_columns(
            pl.when(pl.col("max_value").is_not_null())
            .then(pl.col(COVARIATE_VALUE) / pl.col("max_value"))
            .otherwise(pl.col(COVARIATE_VALUE))
            .alias(COVARIATE_VALUE)
        )
        .select(columns)
    )
    logger.info(
        f"Normalizer: scaled {maxima.height - len(skipped)} covariates, "
        f"skipped {len(skipped)}"
    )
    return data.with_covariates(
        lf,
        normalized=True,
        skipped_normalization_ids=data.metadata.skipped_normalization_ids + skipped,
    )
