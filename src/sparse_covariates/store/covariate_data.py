"""Sparse covariate store.

A `CovariateData` snapshot couples a lazy scan of `(row_id, covariate_id
[, time_id], covariate_value)` rows with the covariate and analysis catalogs
and a metadata record. Absent rows are implicit zeros. Snapshots are never
mutated: every stage builds a new one around a new lazy query, so an earlier
snapshot stays valid and reusable when a later stage fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import polars as pl
from loguru import logger

from ..errors import SchemaViolation
from ..shared.constants import (
    ANALYSIS_ID,
    ANALYSIS_REF_SCHEMA,
    COVARIATE_ID,
    COVARIATE_REF_SCHEMA,
    COVARIATE_SCHEMA,
    COVARIATE_VALUE,
    ROW_ID,
    TEMPORAL_COVARIATE_SCHEMA,
    TIME_ID,
)
from ..shared.frames import FrameLike, as_eager, as_lazy, collect, column_names, id_collection
from ..types.schemas.models import (
    AnalysisRef,
    CovariateDataSummary,
    CovariateMetadata,
    CovariateRef,
    CovariateRow,
)

_FLAG_COLUMNS = ("is_binary", "missing_means_zero")


def _to_dicts(records: Iterable[Any], model) -> List[Dict[str, Any]]:
    """Normalise pydantic records, mappings or tuples into validated dicts."""
    fields = list(model.model_fields)
    out = []
    for r in records:
        if isinstance(r, model):
            item = r
        elif isinstance(r, Mapping):
            item = model(**r)
        else:
            item = model(**dict(zip(fields, r)))
        out.append(item.model_dump())
    return out


def _coerce_flag(df: pl.DataFrame, name: str) -> pl.DataFrame:
    """Accept boolean, 0/1 or "Y"/"N" flag columns."""
    dtype = df.schema[name]
    if dtype == pl.Boolean:
        return df
    if dtype == pl.Utf8:
        return df.with_columns(
            pl.col(name).str.to_uppercase().is_in(["Y", "YES", "TRUE", "T", "1"]).alias(name)
        )
    return df.with_columns((pl.col(name) != 0).alias(name))


def _prepare_covariate_ref(df: FrameLike) -> pl.DataFrame:
    df = as_eager(df)
    names = df.columns
    for required in (COVARIATE_ID, ANALYSIS_ID):
        if required not in names:
            raise SchemaViolation(f"covariate catalog is missing column '{required}'")
    if "covariate_name" not in names:
        df = df.with_columns(pl.lit("").alias("covariate_name"))
    if "concept_id" not in names:
        df = df.with_columns(pl.lit(0).alias("concept_id"))
    return df.select([pl.col(c).cast(t) for c, t in COVARIATE_REF_SCHEMA.items()])


def _prepare_analysis_ref(df: FrameLike) -> pl.DataFrame:
    df = as_eager(df)
    names = df.columns
    for required in (ANALYSIS_ID,) + _FLAG_COLUMNS:
        if required not in names:
            raise SchemaViolation(f"analysis catalog is missing column '{required}'")
    if "analysis_name" not in names:
        df = df.with_columns(pl.lit("").alias("analysis_name"))
    for flag in _FLAG_COLUMNS:
        df = _coerce_flag(df, flag)
    return df.select([pl.col(c).cast(t) for c, t in ANALYSIS_REF_SCHEMA.items()])


@dataclass(frozen=True, eq=False)
class CovariateData:
    """Immutable snapshot of a sparse covariate store."""

    covariates: pl.LazyFrame
    covariate_ref: pl.DataFrame
    analysis_ref: pl.DataFrame
    metadata: CovariateMetadata

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_frames(
        cls,
        covariates: FrameLike,
        covariate_ref: FrameLike,
        analysis_ref: FrameLike,
        population_size: int,
        metadata: Optional[CovariateMetadata] = None,
    ) -> "CovariateData":
        lf = as_lazy(covariates)
        names = column_names(lf)
        schema = TEMPORAL_COVARIATE_SCHEMA if TIME_ID in names else COVARIATE_SCHEMA
        missing = [c for c in schema if c not in names]
        if missing:
            raise SchemaViolation(f"covariate rows are missing columns {missing}")
        lf = lf.select([pl.col(c).cast(t) for c, t in schema.items()])

        if metadata is None:
            metadata = CovariateMetadata(
                population_size=population_size, is_temporal=TIME_ID in names
            )
        return cls(
            covariates=lf,
            covariate_ref=_prepare_covariate_ref(covariate_ref),
            analysis_ref=_prepare_analysis_ref(analysis_ref),
            metadata=metadata,
        )

    @classmethod
    def from_records(
        cls,
        rows: Iterable[Any],
        covariate_refs: Iterable[Any],
        analysis_refs: Iterable[Any],
        population_size: int,
    ) -> "CovariateData":
        """Build a store from pydantic records, mappings or plain tuples.

        Tuples follow the field order of `CovariateRow` (row_id, covariate_id,
        covariate_value[, time_id]), `CovariateRef` and `AnalysisRef`.
        """
        row_dicts = _to_dicts(rows, CovariateRow)
        temporal = any(r["time_id"] is not None for r in row_dicts)
        schema = TEMPORAL_COVARIATE_SCHEMA if temporal else COVARIATE_SCHEMA
        if not temporal:
            for r in row_dicts:
                r.pop("time_id")
        covariates = pl.DataFrame(row_dicts, schema=schema)
        covariate_ref = pl.DataFrame(
            _to_dicts(covariate_refs, CovariateRef), schema=COVARIATE_REF_SCHEMA
        )
        analysis_ref = pl.DataFrame(
            _to_dicts(analysis_refs, AnalysisRef), schema=ANALYSIS_REF_SCHEMA
        )
        return cls.from_frames(covariates, covariate_ref, analysis_ref, population_size)

    def with_covariates(self, covariates: pl.LazyFrame, **metadata_updates) -> "CovariateData":
        """Return a new snapshot around `covariates` with updated metadata."""
        fields = self.metadata.model_dump()
        fields.update(metadata_updates)
        return CovariateData(
            covariates=covariates,
            covariate_ref=self.covariate_ref,
            analysis_ref=self.analysis_ref,
            metadata=CovariateMetadata(**fields),
        )

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def population_size(self) -> int:
        return self.metadata.population_size

    @property
    def is_temporal(self) -> bool:
        return self.metadata.is_temporal

    @property
    def key_columns(self) -> List[str]:
        keys = [ROW_ID, COVARIATE_ID]
        if self.is_temporal:
            keys.append(TIME_ID)
        return keys

    def covariate_analysis(self) -> pl.DataFrame:
        """Covariate catalog joined with the flags of its analysis."""
        return self.covariate_ref.select(COVARIATE_ID, ANALYSIS_ID).join(
            self.analysis_ref.select(ANALYSIS_ID, *_FLAG_COLUMNS),
            on=ANALYSIS_ID,
            how="left",
        )

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate(self) -> "CovariateData":
        """Check the store invariants, raising SchemaViolation on the first breach."""
        lf = self.covariates
        keys = self.key_columns

        nulls = collect(
            lf.filter(pl.any_horizontal([pl.col(c).is_null() for c in keys])).head(1)
        )
        if nulls.height:
            row = nulls.row(0, named=True)
            raise SchemaViolation(
                "covariate row with a null key",
                row_id=row[ROW_ID],
                covariate_id=row[COVARIATE_ID],
                time_id=row.get(TIME_ID),
            )

        dupes = collect(
            lf.group_by(keys).agg(pl.len().alias("n")).filter(pl.col("n") > 1).head(1)
        )
        if dupes.height:
            row = dupes.row(0, named=True)
            raise SchemaViolation(
                f"duplicate covariate row ({row['n']} copies)",
                row_id=row[ROW_ID],
                covariate_id=row[COVARIATE_ID],
                time_id=row.get(TIME_ID),
            )

        ref_dupes = (
            self.covariate_ref.group_by(COVARIATE_ID)
            .agg(pl.len().alias("n"))
            .filter(pl.col("n") > 1)
        )
        if ref_dupes.height:
            raise SchemaViolation(
                "covariate catalog lists a covariate more than once",
                covariate_id=ref_dupes[COVARIATE_ID][0],
            )

        unknown = collect(
            lf.select(COVARIATE_ID)
            .unique()
            .join(self.covariate_ref.lazy().select(COVARIATE_ID), on=COVARIATE_ID, how="anti")
            .sort(COVARIATE_ID)
            .head(1)
        )
        if unknown.height:
            raise SchemaViolation(
                "covariate referenced in rows but absent from the covariate catalog",
                covariate_id=unknown[COVARIATE_ID][0],
            )

        orphan = self.covariate_ref.join(
            self.analysis_ref.select(ANALYSIS_ID), on=ANALYSIS_ID, how="anti"
        ).sort(ANALYSIS_ID)
        if orphan.height:
            raise SchemaViolation(
                "analysis referenced by the covariate catalog but absent from the analysis catalog",
                analysis_id=orphan[ANALYSIS_ID][0],
                covariate_id=orphan[COVARIATE_ID][0],
            )

        logger.debug(f"Schema validated for {len(keys)}-key covariate store")
        return self

    # ------------------------------------------------------------------ #
    # Subsetting and inspection
    # ------------------------------------------------------------------ #

    def filter_by_row_id(self, row_ids: Iterable[int]) -> "CovariateData":
        """Restrict the store to the given cohort entries.

        The population size becomes the number of distinct requested ids, so
        requested entries without any row count as all-zero entries.
        """
        ids = sorted(set(int(i) for i in row_ids))
        lf = self.covariates.filter(pl.col(ROW_ID).is_in(id_collection(ids)))
        return self.with_covariates(lf, population_size=len(ids))

    def collect(self) -> pl.DataFrame:
        """Materialise the covariate rows, sorted by key."""
        return collect(self.covariates.sort(self.key_columns))

    def summary(self) -> CovariateDataSummary:
        stats = collect(
            self.covariates.select(
                pl.col(COVARIATE_ID).n_unique().alias("covariate_count"),
                (pl.col(COVARIATE_VALUE) != 0).sum().alias("non_zero_value_count"),
            )
        ).row(0, named=True)
        return CovariateDataSummary(
            population_size=self.population_size,
            covariate_count=stats["covariate_count"] or 0,
            non_zero_value_count=stats["non_zero_value_count"] or 0,
            is_temporal=self.is_temporal,
            deleted_infrequent_count=len(self.metadata.deleted_infrequent_covariate_ids),
            deleted_redundant_count=len(self.metadata.deleted_redundant_covariate_ids),
        )
