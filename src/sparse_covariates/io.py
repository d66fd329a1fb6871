"""Reading and writing covariate stores and aggregates.

Tables are Parquet (or CSV on input) scanned lazily with polars; metadata
travels as a JSON sidecar. Directory layout written by this module:

    covariates.parquet               sparse rows (store) or binary aggregates
    covariates_continuous.parquet    continuous aggregates (aggregate dirs only)
    covariate_ref.parquet
    analysis_ref.parquet
    metadata.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import orjson
import polars as pl
from loguru import logger

from .aggregation.aggregator import AggregatedCovariateData
from .store.covariate_data import CovariateData
from .types.schemas.models import CovariateMetadata

PathLike = Union[str, Path]

COVARIATES_FILE = "covariates.parquet"
CONTINUOUS_FILE = "covariates_continuous.parquet"
COVARIATE_REF_FILE = "covariate_ref.parquet"
ANALYSIS_REF_FILE = "analysis_ref.parquet"
METADATA_FILE = "metadata.json"


def scan_table(path: PathLike) -> pl.LazyFrame:
    """Lazily scan a Parquet or CSV table."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in (".parquet", ".pq"):
        return pl.scan_parquet(path)
    if suffix in (".csv", ".txt"):
        return pl.scan_csv(path)
    raise ValueError(f"Unsupported table format: {path}")


def load_covariate_data(
    covariates: PathLike,
    covariate_ref: PathLike,
    analysis_ref: PathLike,
    population_size: int,
) -> CovariateData:
    logger.info(f"Scanning covariates from {covariates}")
    return CovariateData.from_frames(
        scan_table(covariates),
        scan_table(covariate_ref),
        scan_table(analysis_ref),
        population_size,
    )


def _write_json(path: Path, payload: dict) -> None:
    path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))


def _read_json(path: Path) -> dict:
    return orjson.loads(path.read_bytes())


def save_covariate_data(data: CovariateData, out_dir: PathLike) -> Path:
    """Stream the rows to Parquet and write catalogs plus metadata beside them."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    data.covariates.sink_parquet(out_dir / COVARIATES_FILE)
    data.covariate_ref.write_parquet(out_dir / COVARIATE_REF_FILE)
    data.analysis_ref.write_parquet(out_dir / ANALYSIS_REF_FILE)
    _write_json(out_dir / METADATA_FILE, data.metadata.model_dump())
    logger.info(f"Covariate store written to {out_dir}")
    return out_dir


def load_covariate_dir(path: PathLike) -> CovariateData:
    path = Path(path)
    metadata = CovariateMetadata(**_read_json(path / METADATA_FILE))
    return CovariateData.from_frames(
        pl.scan_parquet(path / COVARIATES_FILE),
        pl.read_parquet(path / COVARIATE_REF_FILE),
        pl.read_parquet(path / ANALYSIS_REF_FILE),
        metadata.population_size,
        metadata=metadata,
    )


def save_aggregated(agg: AggregatedCovariateData, out_dir: PathLike) -> Path:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    agg.binary.write_parquet(out_dir / COVARIATES_FILE)
    agg.continuous.write_parquet(out_dir / CONTINUOUS_FILE)
    agg.covariate_ref.write_parquet(out_dir / COVARIATE_REF_FILE)
    agg.analysis_ref.write_parquet(out_dir / ANALYSIS_REF_FILE)
    _write_json(
        out_dir / METADATA_FILE,
        {"population_size": agg.population_size, "is_temporal": agg.is_temporal, "aggregated": True},
    )
    logger.info(f"Aggregated covariates written to {out_dir}")
    return out_dir


def load_aggregated(path: PathLike) -> AggregatedCovariateData:
    path = Path(path)
    meta = _read_json(path / METADATA_FILE)
    if not meta.get("aggregated"):
        raise ValueError(f"{path} does not hold aggregated covariates")
    return AggregatedCovariateData(
        binary=pl.read_parquet(path / COVARIATES_FILE),
        continuous=pl.read_parquet(path / CONTINUOUS_FILE),
        covariate_ref=pl.read_parquet(path / COVARIATE_REF_FILE),
        analysis_ref=pl.read_parquet(path / ANALYSIS_REF_FILE),
        population_size=int(meta["population_size"]),
        is_temporal=bool(meta.get("is_temporal", False)),
    )
