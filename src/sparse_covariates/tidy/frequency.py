"""Frequency filter: drop covariates observed in too small a share of the cohort."""

from __future__ import annotations

from typing import List, Tuple

import polars as pl
from loguru import logger

from ..errors import ConfigurationError
from ..shared.constants import COVARIATE_ID, COVARIATE_VALUE, DEFAULT_MIN_FRACTION, ROW_ID
from ..shared.frames import collect, id_collection
from ..store.covariate_data import CovariateData


def check_frequency_settings(population_size: int, min_fraction: float) -> None:
    if not 0.0 < min_fraction < 1.0:
        raise ConfigurationError(f"min_fraction must be in (0, 1), got {min_fraction}")
    if population_size <= 0:
        raise ConfigurationError(
            f"population_size must be > 0 to filter by frequency, got {population_size}"
        )


def covariate_frequencies(data: CovariateData) -> pl.DataFrame:
    """Distinct row ids with a non-zero value, per covariate in the catalog.

    Catalog covariates without any row get a count of 0. Covariates already
    deleted by an earlier tidy pass are not listed again.
    """
    deleted = (
        data.metadata.deleted_infrequent_covariate_ids
        + data.metadata.deleted_redundant_covariate_ids
    )
    counts = (
        data.covariates.filter(pl.col(COVARIATE_VALUE) != 0)
        .group_by(COVARIATE_ID)
        .agg(pl.col(ROW_ID).n_unique().cast(pl.Int64).alias("n"))
    )
    return collect(
        data.covariate_ref.lazy()
        .select(COVARIATE_ID)
        .filter(~pl.col(COVARIATE_ID).is_in(id_collection(deleted)))
        .join(counts, on=COVARIATE_ID, how="left")
        .with_columns(pl.col("n").fill_null(0))
        .sort(COVARIATE_ID)
    )


def find_infrequent_covariates(
    data: CovariateData, min_fraction: float = DEFAULT_MIN_FRACTION
) -> List[int]:
    """Covariate ids whose count / population_size is below `min_fraction`.

    A covariate exactly at the threshold is kept.
    """
    n = data.population_size
    check_frequency_settings(n, min_fraction)
    freq = covariate_frequencies(data)
    infrequent = freq.filter((pl.col("n") / n) < min_fraction)
    return infrequent[COVARIATE_ID].to_list()


def filter_infrequent(
    data: CovariateData, min_fraction: float = DEFAULT_MIN_FRACTION
) -> Tuple[CovariateData, List[int]]:
    """Remove infrequent covariates.

    Returns the filtered snapshot and the removed covariate ids. The removed
    ids are appended to `metadata.deleted_infrequent_covariate_ids`.
    """
    removed = find_infrequent_covariates(data, min_fraction)
    logger.info(
        f"Frequency filter: {len(removed)} covariates below {min_fraction:g} "
        f"of {data.population_size} entries"
    )
    if not removed:
        return data, removed
    lf = data.covariates.filter(~pl.col(COVARIATE_ID).is_in(id_collection(removed)))
    filtered = data.with_covariates(
        lf,
        deleted_infrequent_covariate_ids=data.metadata.deleted_infrequent_covariate_ids
        + removed,
    )
    return filtered, removed
