"""
Aggregation of sparse covariate rows into population-level summaries.

Main components:
- aggregator: binary (sum/average) and continuous (distribution) summaries
- strategies: zero-filled vs observed-only handling of absent rows
- statistics: type-7 quantiles and sample SD over values with implicit zeros
"""

from .aggregator import (
    AggregatedCovariateData,
    aggregate_binary,
    aggregate_continuous,
    aggregate_covariates,
)
from .statistics import summarize_values, type7_quantile
from .strategies import MissingValueStrategy

__all__ = [
    "AggregatedCovariateData",
    "aggregate_binary",
    "aggregate_continuous",
    "aggregate_covariates",
    "summarize_values",
    "type7_quantile",
    "MissingValueStrategy",
]
