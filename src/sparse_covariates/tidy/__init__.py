"""
Covariate tidying: frequency filter, normalizer and redundancy detector.

Entry points:
- `tidy.pipeline.tidy_covariate_data`: all three stages in order
- `tidy.frequency.filter_infrequent`
- `tidy.normalize.normalize_covariates`
- `tidy.redundancy.remove_redundant_covariates`
"""

from .frequency import filter_infrequent, find_infrequent_covariates
from .normalize import normalize_covariates
from .pipeline import tidy_covariate_data
from .redundancy import (
    find_constant_covariates,
    find_redundant_groups,
    remove_redundant_covariates,
)

__all__ = [
    "filter_infrequent",
    "find_infrequent_covariates",
    "normalize_covariates",
    "tidy_covariate_data",
    "find_constant_covariates",
    "find_redundant_groups",
    "remove_redundant_covariates",
]
