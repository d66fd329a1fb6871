"""
Shared Layer - Sparse Covariates

Cross-cutting concerns used by every stage. No covariate semantics here.

Contents:
- logging_utils.py: loguru configuration and stage timing
- constants.py: column names, polars schemas and defaults
- progress.py: progress line for batched covariate scans
- frames.py: lazy-frame helpers (streaming collect, id batches)
"""

__all__ = [
    "logging_utils",
    "constants",
    "progress",
    "frames",
]
