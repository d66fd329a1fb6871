"""Configuration management for the covariate tidy and aggregation stages.

Settings are loaded from environment variables (optionally through a .env
file) with defaults, and validated before any processing starts.
"""

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv
from loguru import logger

from .errors import ConfigurationError
from .shared.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MIN_FRACTION,
    DEFAULT_NEAR_MISS_FRACTION,
)

ENV_PREFIX = "SPARSE_COVARIATES_"


@dataclass(frozen=True)
class TidySettings:
    """Settings shared by the tidy pipeline and the aggregator."""

    # Frequency filter
    min_fraction: float = DEFAULT_MIN_FRACTION

    # Stage toggles
    normalize: bool = True
    remove_redundancy: bool = True
    validate_schema: bool = True

    # Group redundancy: coverage above which a non-exhaustive group is reported
    near_miss_fraction: float = DEFAULT_NEAR_MISS_FRACTION

    # Aggregation: covariate ids scanned per batch
    batch_size: int = DEFAULT_BATCH_SIZE

    def validate(self) -> "TidySettings":
        if not 0.0 < self.min_fraction < 1.0:
            raise ConfigurationError(
                f"min_fraction must be in (0, 1), got {self.min_fraction}"
            )
        if not 0.0 < self.near_miss_fraction <= 1.0:
            raise ConfigurationError(
                f"near_miss_fraction must be in (0, 1], got {self.near_miss_fraction}"
            )
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        return self


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default, cast):
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name}: {e}") from e


def load_config() -> TidySettings:
    """Load settings with proper fallbacks.

    Priority:
    1. Environment variables
    2. .env file
    3. Default values

    Returns:
        TidySettings: validated settings
    """
    load_dotenv(find_dotenv(usecwd=True))
    config = TidySettings(
        min_fraction=_env_number("MIN_FRACTION", DEFAULT_MIN_FRACTION, float),
        normalize=_env_bool("NORMALIZE", True),
        remove_redundancy=_env_bool("REMOVE_REDUNDANCY", True),
        validate_schema=_env_bool("VALIDATE_SCHEMA", True),
        near_miss_fraction=_env_number(
            "NEAR_MISS_FRACTION", DEFAULT_NEAR_MISS_FRACTION, float
        ),
        batch_size=_env_number("BATCH_SIZE", DEFAULT_BATCH_SIZE, int),
    )
    logger.debug(f"Loaded settings: {config}")
    return config.validate()
