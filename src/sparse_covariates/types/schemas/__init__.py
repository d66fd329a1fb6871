from .models import (
    AggregatedBinary,
    AggregatedContinuous,
    AnalysisRef,
    CovariateDataSummary,
    CovariateMetadata,
    CovariateRef,
    CovariateRow,
    StandardizedDifference,
)

__all__ = [
    "AggregatedBinary",
    "AggregatedContinuous",
    "AnalysisRef",
    "CovariateDataSummary",
    "CovariateMetadata",
    "CovariateRef",
    "CovariateRow",
    "StandardizedDifference",
]
