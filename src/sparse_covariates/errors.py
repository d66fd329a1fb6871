"""Error kinds raised by the covariate post-processing stages.

- ConfigurationError: invalid thresholds or population size, raised before
  any processing starts.
- SchemaViolation: the covariate rows disagree with their catalogs; fatal.
- DataQualityWarning: non-fatal condition, the affected optimization is
  skipped and processing continues.
"""

from __future__ import annotations

import warnings
from typing import Optional

from loguru import logger


class ConfigurationError(ValueError):
    """Invalid settings passed to a processing stage."""


class SchemaViolation(ValueError):
    """Covariate rows that break the store invariants.

    The offending identifiers are kept as attributes so a caller can query the
    source database for the exact record.
    """

    def __init__(
        self,
        message: str,
        *,
        row_id: Optional[int] = None,
        covariate_id: Optional[int] = None,
        time_id: Optional[int] = None,
        analysis_id: Optional[int] = None,
    ):
        self.row_id = row_id
        self.covariate_id = covariate_id
        self.time_id = time_id
        self.analysis_id = analysis_id
        ids = [
            f"{name}={value}"
            for name, value in (
                ("row_id", row_id),
                ("covariate_id", covariate_id),
                ("time_id", time_id),
                ("analysis_id", analysis_id),
            )
            if value is not None
        ]
        if ids:
            message = f"{message} ({', '.join(ids)})"
        super().__init__(message)


class DataQualityWarning(UserWarning):
    """Recoverable data condition, e.g. a covariate that cannot be normalized."""


def warn_data_quality(message: str) -> None:
    """Log and emit a DataQualityWarning."""
    logger.warning(message)
    warnings.warn(message, DataQualityWarning, stacklevel=3)
