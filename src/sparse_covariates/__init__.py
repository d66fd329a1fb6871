"""
sparse_covariates
=================

Post-processing engine for sparse cohort covariate matrices: turns a long
`(row_id, covariate_id[, time_id], covariate_value)` table into a tidy
per-entry feature matrix, population-level summaries and cohort comparisons.

Entry Points:
- `sparse_covariates.store`: `CovariateData` snapshots and validation
- `sparse_covariates.tidy`: frequency filter, normalizer, redundancy detector
- `sparse_covariates.aggregation`: binary and continuous summaries
- `sparse_covariates.comparison`: standardized mean difference
- `sparse_covariates.cli`: Typer command-line interface
"""

from __future__ import annotations

from .aggregation import AggregatedCovariateData, MissingValueStrategy, aggregate_covariates
from .comparison import StandardizedDifferenceResult, compute_standardized_difference
from .config import TidySettings, load_config
from .errors import ConfigurationError, DataQualityWarning, SchemaViolation
from .store import CovariateData
from .tidy import (
    filter_infrequent,
    normalize_covariates,
    remove_redundant_covariates,
    tidy_covariate_data,
)

__version__ = "0.1.0"

__all__ = [
    # Store
    "CovariateData",
    # Tidy
    "tidy_covariate_data",
    "filter_infrequent",
    "normalize_covariates",
    "remove_redundant_covariates",
    # Aggregation
    "AggregatedCovariateData",
    "MissingValueStrategy",
    "aggregate_covariates",
    # Comparison
    "StandardizedDifferenceResult",
    "compute_standardized_difference",
    # Config and errors
    "TidySettings",
    "load_config",
    "ConfigurationError",
    "SchemaViolation",
    "DataQualityWarning",
]
