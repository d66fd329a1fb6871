"""Tidy pipeline: frequency filter -> normalizer -> redundancy detector.

Each stage is a pure function from one `CovariateData` snapshot to the next,
so the output of any finished stage stays usable if a later stage fails.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from loguru import logger

from ..config import TidySettings
from ..errors import ConfigurationError
from ..shared.logging_utils import log_stage
from ..store.covariate_data import CovariateData
from .frequency import filter_infrequent
from .normalize import normalize_covariates
from .redundancy import remove_redundant_covariates


def tidy_covariate_data(
    data: CovariateData,
    min_fraction: Optional[float] = None,
    normalize: Optional[bool] = None,
    remove_redundancy: Optional[bool] = None,
    settings: Optional[TidySettings] = None,
) -> CovariateData:
    """Produce a cleaned, normalized, non-redundant copy of `data`.

    Keyword arguments override the matching fields of `settings`. The
    returned snapshot records the removed covariates in
    `metadata.deleted_infrequent_covariate_ids` and
    `metadata.deleted_redundant_covariate_ids`.
    """
    settings = settings or TidySettings()
    if min_fraction is not None:
        settings = replace(settings, min_fraction=min_fraction)
    do_normalize = settings.normalize if normalize is None else normalize
    do_redundancy = settings.remove_redundancy if remove_redundancy is None else remove_redundancy

    settings.validate()
    if data.population_size <= 0:
        raise ConfigurationError(
            f"population_size must be > 0 to tidy covariates, got {data.population_size}"
        )
    if settings.validate_schema:
        data.validate()

    with log_stage("tidy", population_size=data.population_size):
        with log_stage("frequency filter", min_fraction=settings.min_fraction):
            data, infrequent = filter_infrequent(data, settings.min_fraction)

        if do_normalize:
            with log_stage("normalize"):
                data = normalize_covariates(data)

        redundant = []
        if do_redundancy:
            with log_stage("redundancy"):
                data, redundant = remove_redundant_covariates(
                    data, near_miss_fraction=settings.near_miss_fraction
                )

    logger.info(
        f"Tidy removed {len(infrequent)} infrequent and {len(redundant)} redundant covariates"
    )
    return data
