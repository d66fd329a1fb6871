"""Redundancy detector.

Two passes over the same snapshot, independent of each other:

* constant covariates: every cohort entry has the same value, either because
  all entries carry one identical value or because every recorded value is 0;
* redundant groups: within a binary analysis every cohort entry has value 1
  for exactly one covariate and 0 for the rest (e.g. age buckets). The
  members are linearly dependent, so the lowest covariate id is dropped.
  Dropping a single member keeps the group fully recoverable.

Redundancy is only defined per cohort entry, so temporal stores are left
untouched.
"""

from __future__ import annotations

from typing import List, Tuple

import polars as pl
from loguru import logger

from ..errors import warn_data_quality
from ..shared.constants import (
    ANALYSIS_ID,
    COVARIATE_ID,
    COVARIATE_VALUE,
    DEFAULT_NEAR_MISS_FRACTION,
    ROW_ID,
)
from ..shared.frames import collect, id_collection
from ..store.covariate_data import CovariateData


def _skip_temporal(data: CovariateData, what: str) -> bool:
    if data.is_temporal:
        logger.info(f"Redundancy detector: {what} skipped for temporal covariates")
        return True
    return False


def find_constant_covariates(data: CovariateData) -> List[int]:
    """Covariates whose value is identical for every cohort entry."""
    n = data.population_size
    if n <= 0 or _skip_temporal(data, "constant-value pass"):
        return []
    stats = collect(
        data.covariates.group_by(COVARIATE_ID).agg(
            pl.col(ROW_ID).n_unique().alias("n_entries"),
            pl.col(COVARIATE_VALUE).n_unique().alias("n_distinct"),
            pl.col(COVARIATE_VALUE).first().alias("value"),
        )
    )
    constant = stats.filter(
        (pl.col("n_distinct") == 1)
        & ((pl.col("n_entries") == n) | (pl.col("value") == 0))
    ).sort(COVARIATE_ID)
    return constant[COVARIATE_ID].to_list()


def group_coverage(data: CovariateData) -> pl.DataFrame:
    """Per binary analysis: covered entries, exclusivity and lowest member.

    `n_single` counts the entries holding exactly one member with value 1.

    One grouped pass keyed by (analysis_id, row_id) sums the member values of
    each entry, then a second aggregation reduces it per analysis.
    """
    binary = data.covariate_analysis().filter(pl.col("is_binary")).select(
        COVARIATE_ID, ANALYSIS_ID
    )
    rows = data.covariates.join(binary.lazy(), on=COVARIATE_ID, how="inner")
    per_entry = rows.group_by(ANALYSIS_ID, ROW_ID).agg(
        pl.col(COVARIATE_VALUE).sum().alias("total"),
        pl.col(COVARIATE_VALUE).max().alias("top"),
    )
    single = (pl.col("total") == 1) & (pl.col("top") == 1)
    per_analysis = per_entry.group_by(ANALYSIS_ID).agg(
        pl.len().alias("n_entries"),
        single.all().alias("exclusive"),
        single.sum().cast(pl.Int64).alias("n_single"),
    )
    members = rows.group_by(ANALYSIS_ID).agg(
        pl.col(COVARIATE_ID).min().alias("lowest_covariate_id"),
        pl.col(COVARIATE_ID).n_unique().alias("n_members"),
    )
    return collect(per_analysis.join(members, on=ANALYSIS_ID).sort(ANALYSIS_ID))


def settled_analyses(data: CovariateData) -> List[int]:
    """Analyses with a member already removed as redundant."""
    deleted = data.metadata.deleted_redundant_covariate_ids
    if not deleted:
        return []
    ref = data.covariate_ref.filter(pl.col(COVARIATE_ID).is_in(id_collection(deleted)))
    return sorted(set(ref[ANALYSIS_ID].to_list()))


def find_redundant_groups(
    data: CovariateData, near_miss_fraction: float = DEFAULT_NEAR_MISS_FRACTION
) -> List[int]:
    """Lowest covariate id of every mutually exclusive, exhaustive binary analysis.

    An analysis that falls short but has at least `near_miss_fraction` of all
    entries holding exactly one member (a few uncovered or overlapping
    entries) is reported with a DataQualityWarning and kept. Analyses that
    already lost a member to an earlier pass are not examined again.
    """
    n = data.population_size
    if n <= 0 or _skip_temporal(data, "group pass"):
        return []
    settled = settled_analyses(data)
    coverage = group_coverage(data).filter(~pl.col(ANALYSIS_ID).is_in(id_collection(settled)))

    qualifies = pl.col("exclusive") & (pl.col("n_entries") == n)
    near_miss = coverage.filter(~qualifies & (pl.col("n_single") >= near_miss_fraction * n))
    for row in near_miss.iter_rows(named=True):
        if row["exclusive"]:
            detail = f"is mutually exclusive but covers {row['n_entries']}/{n} entries"
        else:
            detail = f"has exactly one member for only {row['n_single']}/{n} entries"
        warn_data_quality(f"analysis_id={row[ANALYSIS_ID]} {detail}; group kept")

    redundant = coverage.filter(qualifies)
    for row in redundant.iter_rows(named=True):
        logger.debug(
            f"analysis_id={row[ANALYSIS_ID]}: {row['n_members']} exclusive members, "
            f"dropping covariate_id={row['lowest_covariate_id']}"
        )
    return sorted(redundant["lowest_covariate_id"].to_list())


def remove_redundant_covariates(
    data: CovariateData,
    constant: bool = True,
    groups: bool = True,
    near_miss_fraction: float = DEFAULT_NEAR_MISS_FRACTION,
) -> Tuple[CovariateData, List[int]]:
    """Remove constant covariates and one member per redundant group.

    Both passes read the incoming snapshot. Removed ids are appended to
    `metadata.deleted_redundant_covariate_ids`.
    """
    removed = set()
    if constant:
        removed.update(find_constant_covariates(data))
    if groups:
        removed.update(find_redundant_groups(data, near_miss_fraction))
    removed_ids = sorted(removed)
    logger.info(f"Redundancy detector: {len(removed_ids)} covariates removed")
    if not removed_ids:
        return data, removed_ids
    lf = data.covariates.filter(~pl.col(COVARIATE_ID).is_in(id_collection(removed_ids)))
    reduced = data.with_covariates(
        lf,
        deleted_redundant_covariate_ids=data.metadata.deleted_redundant_covariate_ids
        + removed_ids,
    )
    return reduced, removed_ids
