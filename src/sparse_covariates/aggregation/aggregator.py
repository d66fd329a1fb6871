"""Aggregator: collapse per-entry covariate rows into population statistics.

Binary covariates reduce to a streaming group-by (count of non-zero rows and
its share of the population). Continuous covariates need order statistics,
so their rows are scanned in batches of covariate ids: one batch of sorted
value lists is held in memory at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import numpy as np
import polars as pl
from loguru import logger

from ..config import TidySettings
from ..errors import ConfigurationError
from ..shared.constants import (
    AGGREGATED_BINARY_SCHEMA,
    AGGREGATED_CONTINUOUS_SCHEMA,
    COVARIATE_ID,
    COVARIATE_VALUE,
    TIME_ID,
)
from ..shared.frames import chunked, collect, id_collection
from ..shared.logging_utils import log_stage
from ..shared.progress import BatchProgress
from ..store.covariate_data import CovariateData
from ..types.schemas.models import AggregatedBinary, AggregatedContinuous
from .strategies import MissingValueStrategy


@dataclass(frozen=True, eq=False)
class AggregatedCovariateData:
    """Population-level summaries of one cohort."""

    binary: pl.DataFrame
    continuous: pl.DataFrame
    covariate_ref: pl.DataFrame
    analysis_ref: pl.DataFrame
    population_size: int
    is_temporal: bool = False

    @property
    def key_columns(self) -> List[str]:
        return [COVARIATE_ID, TIME_ID] if self.is_temporal else [COVARIATE_ID]

    def to_records(self) -> Iterator:
        """Yield AggregatedBinary then AggregatedContinuous records."""
        for row in self.binary.iter_rows(named=True):
            yield AggregatedBinary(**row)
        for row in self.continuous.iter_rows(named=True):
            yield AggregatedContinuous(**row)


def _schema(base: Dict[str, pl.DataType], temporal: bool) -> Dict[str, pl.DataType]:
    if not temporal:
        return dict(base)
    items = list(base.items())
    return dict(items[:1] + [(TIME_ID, pl.Int64)] + items[1:])


def aggregate_binary(data: CovariateData) -> pl.DataFrame:
    """sum_value = entries with a non-zero value, average_value = sum_value / N."""
    n = data.population_size
    keys = [COVARIATE_ID, TIME_ID] if data.is_temporal else [COVARIATE_ID]
    binary_ids = data.covariate_analysis().filter(pl.col("is_binary")).select(COVARIATE_ID)
    lf = (
        data.covariates.join(binary_ids.lazy(), on=COVARIATE_ID, how="semi")
        .group_by(keys)
        .agg((pl.col(COVARIATE_VALUE) != 0).sum().cast(pl.Int64).alias("sum_value"))
        .with_columns((pl.col("sum_value") / n).alias("average_value"))
        .sort(keys)
    )
    schema = _schema(AGGREGATED_BINARY_SCHEMA, data.is_temporal)
    return collect(lf).select([pl.col(c).cast(t) for c, t in schema.items()])


def _continuous_strategies(data: CovariateData) -> Dict[int, MissingValueStrategy]:
    """Strategy of every continuous covariate that has at least one row."""
    present = collect(data.covariates.select(COVARIATE_ID).unique())
    continuous = (
        data.covariate_analysis()
        .filter(~pl.col("is_binary"))
        .join(present, on=COVARIATE_ID, how="semi")
        .sort(COVARIATE_ID)
    )
    return {
        cid: MissingValueStrategy.from_flag(bool(flag))
        for cid, flag in continuous.select(COVARIATE_ID, "missing_means_zero").iter_rows()
    }


def aggregate_continuous(
    data: CovariateData, batch_size: int = 500, progress: bool = False
) -> pl.DataFrame:
    """Distribution statistics per continuous covariate, honouring its strategy."""
    n = data.population_size
    keys = [COVARIATE_ID, TIME_ID] if data.is_temporal else [COVARIATE_ID]
    schema = _schema(AGGREGATED_CONTINUOUS_SCHEMA, data.is_temporal)
    strategies = _continuous_strategies(data)
    if not strategies:
        return pl.DataFrame(schema=schema)

    batches = list(chunked(strategies, batch_size))
    prog = BatchProgress("aggregate continuous", len(batches)) if progress else None
    records: List[dict] = []
    for batch in batches:
        grouped = collect(
            data.covariates.filter(pl.col(COVARIATE_ID).is_in(id_collection(batch)))
            .group_by(keys)
            .agg(pl.col(COVARIATE_VALUE).alias("values"))
        )
        for row in grouped.iter_rows(named=True):
            strategy = strategies[row[COVARIATE_ID]]
            stats = strategy.summarize(np.asarray(row["values"], dtype=np.float64), n)
            records.append({**{k: row[k] for k in keys}, **stats})
        if prog:
            prog.advance(len(batch))
    if prog:
        prog.finish()

    return pl.DataFrame(records, schema=schema).sort(keys)


def aggregate_covariates(
    data: CovariateData,
    progress: bool = False,
    settings: Optional[TidySettings] = None,
) -> AggregatedCovariateData:
    """Aggregate a (raw or tidied) covariate store into population statistics."""
    settings = (settings or TidySettings()).validate()
    if data.population_size <= 0:
        raise ConfigurationError(
            f"population_size must be > 0 to aggregate, got {data.population_size}"
        )
    if settings.validate_schema:
        data.validate()

    with log_stage("aggregate", population_size=data.population_size):
        binary = aggregate_binary(data)
        continuous = aggregate_continuous(data, settings.batch_size, progress)
    logger.info(
        f"Aggregated {binary.height} binary and {continuous.height} continuous covariates"
    )
    return AggregatedCovariateData(
        binary=binary,
        continuous=continuous,
        covariate_ref=data.covariate_ref,
        analysis_ref=data.analysis_ref,
        population_size=data.population_size,
        is_temporal=data.is_temporal,
    )
