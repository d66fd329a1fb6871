import polars as pl

ROW_ID = "row_id"
COVARIATE_ID = "covariate_id"
TIME_ID = "time_id"
COVARIATE_VALUE = "covariate_value"
ANALYSIS_ID = "analysis_id"

# Sparse covariate rows: one record per (row_id, covariate_id[, time_id])
COVARIATE_SCHEMA = {
    ROW_ID: pl.Int64,
    COVARIATE_ID: pl.Int64,
    COVARIATE_VALUE: pl.Float64,
}
TEMPORAL_COVARIATE_SCHEMA = {
    ROW_ID: pl.Int64,
    COVARIATE_ID: pl.Int64,
    TIME_ID: pl.Int64,
    COVARIATE_VALUE: pl.Float64,
}

COVARIATE_REF_SCHEMA = {
    COVARIATE_ID: pl.Int64,
    "covariate_name": pl.Utf8,
    ANALYSIS_ID: pl.Int64,
    "concept_id": pl.Int64,
}

ANALYSIS_REF_SCHEMA = {
    ANALYSIS_ID: pl.Int64,
    "analysis_name": pl.Utf8,
    "is_binary": pl.Boolean,
    "missing_means_zero": pl.Boolean,
}

AGGREGATED_BINARY_SCHEMA = {
    COVARIATE_ID: pl.Int64,
    "sum_value": pl.Int64,
    "average_value": pl.Float64,
}

AGGREGATED_CONTINUOUS_SCHEMA = {
    COVARIATE_ID: pl.Int64,
    "count_value": pl.Int64,
    "min_value": pl.Float64,
    "max_value": pl.Float64,
    "average_value": pl.Float64,
    "standard_deviation": pl.Float64,
    "median_value": pl.Float64,
    "p10_value": pl.Float64,
    "p25_value": pl.Float64,
    "p75_value": pl.Float64,
    "p90_value": pl.Float64,
}

STD_DIFF_SCHEMA = {
    COVARIATE_ID: pl.Int64,
    "covariate_name": pl.Utf8,
    "mean1": pl.Float64,
    "sd1": pl.Float64,
    "mean2": pl.Float64,
    "sd2": pl.Float64,
    "std_diff": pl.Float64,
}

DEFAULT_MIN_FRACTION = 0.001
DEFAULT_NEAR_MISS_FRACTION = 0.99
DEFAULT_BATCH_SIZE = 500

# Quantiles reported for continuous covariates, keyed by output column
QUANTILES = {
    "p10_value": 0.10,
    "p25_value": 0.25,
    "median_value": 0.50,
    "p75_value": 0.75,
    "p90_value": 0.90,
}
