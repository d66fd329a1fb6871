"""
Pydantic models for the sparse covariate data contracts.

These records describe the inputs handed over by the covariate generation
layer (rows and catalogs) and the outputs produced for reporting and
modelling consumers (aggregates, standardized differences, tidy metadata).
Bulk data travels as polars frames; these models validate catalog entries,
single records and the metadata attached to a store.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --------------------------------------------------------------------------- #
# Base Types                                                                  #
# --------------------------------------------------------------------------- #


class StrictBase(BaseModel):
    """Base class for strict models that forbid extra fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class FrozenBase(BaseModel):
    """Base class for immutable records."""

    model_config = ConfigDict(extra="forbid", frozen=True)


# --------------------------------------------------------------------------- #
# Input Types                                                                 #
# --------------------------------------------------------------------------- #


class CovariateRow(FrozenBase):
    """One non-zero (or explicitly recorded) covariate value of one cohort entry."""

    row_id: int
    covariate_id: int
    covariate_value: float
    time_id: Optional[int] = None


class CovariateRef(FrozenBase):
    """Catalog entry of a covariate definition."""

    covariate_id: int
    covariate_name: str = ""
    analysis_id: int
    concept_id: int = 0


class AnalysisRef(FrozenBase):
    """Catalog entry of an analysis, governing aggregation of its covariates."""

    analysis_id: int
    analysis_name: str = ""
    is_binary: bool = True
    missing_means_zero: bool = True


# --------------------------------------------------------------------------- #
# Output Types                                                                #
# --------------------------------------------------------------------------- #


class AggregatedBinary(FrozenBase):
    covariate_id: int
    time_id: Optional[int] = None
    sum_value: int = Field(ge=0)
    average_value: float = Field(ge=0.0, le=1.0)


class AggregatedContinuous(FrozenBase):
    covariate_id: int
    time_id: Optional[int] = None
    count_value: int = Field(ge=0)
    min_value: float
    max_value: float
    average_value: float
    standard_deviation: float = Field(ge=0.0)
    median_value: float
    p10_value: float
    p25_value: float
    p75_value: float
    p90_value: float


class StandardizedDifference(FrozenBase):
    covariate_id: int
    covariate_name: str = ""
    mean1: float
    sd1: float
    mean2: float
    sd2: float
    std_diff: float


# --------------------------------------------------------------------------- #
# Store Metadata                                                              #
# --------------------------------------------------------------------------- #


class CovariateMetadata(StrictBase):
    """Metadata record travelling with a covariate store snapshot."""

    population_size: int = Field(ge=0)
    is_temporal: bool = False
    normalized: bool = False
    deleted_infrequent_covariate_ids: List[int] = Field(default_factory=list)
    deleted_redundant_covariate_ids: List[int] = Field(default_factory=list)
    skipped_normalization_ids: List[int] = Field(default_factory=list)

    @field_validator(
        "deleted_infrequent_covariate_ids",
        "deleted_redundant_covariate_ids",
        "skipped_normalization_ids",
    )
    @classmethod
    def sort_ids(cls, v):
        """Keep id lists sorted and unique for reproducible output."""
        return sorted(set(v))


class CovariateDataSummary(FrozenBase):
    population_size: int
    covariate_count: int
    non_zero_value_count: int
    is_temporal: bool
    deleted_infrequent_count: int = 0
    deleted_redundant_count: int = 0
