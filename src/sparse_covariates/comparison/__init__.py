from .std_diff import (
    StandardizedDifferenceResult,
    cohort_moments,
    compute_standardized_difference,
)

__all__ = [
    "StandardizedDifferenceResult",
    "cohort_moments",
    "compute_standardized_difference",
]
