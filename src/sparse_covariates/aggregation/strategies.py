"""Missing-value semantics of continuous analyses.

An analysis flagged `missing_means_zero` treats every cohort entry without a
row as a real 0; otherwise an absent row is a missing measurement and the
entry is left out of the distribution.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict

import numpy as np

from .statistics import summarize_values


class MissingValueStrategy(Enum):
    ZERO_FILLED = "zero_filled"
    OBSERVED_ONLY = "observed_only"

    @classmethod
    def from_flag(cls, missing_means_zero: bool) -> "MissingValueStrategy":
        return cls.ZERO_FILLED if missing_means_zero else cls.OBSERVED_ONLY

    @property
    def absent_is_zero(self) -> bool:
        return self is MissingValueStrategy.ZERO_FILLED

    def implicit_zeros(self, n_observed: int, population_size: int) -> int:
        """Number of absent entries that enter the distribution as 0."""
        if self.absent_is_zero:
            return max(population_size - n_observed, 0)
        return 0

    def summarize(self, values: np.ndarray, population_size: int) -> Dict[str, float]:
        return summarize_values(values, self.implicit_zeros(len(values), population_size))
