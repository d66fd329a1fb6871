"""Helpers around polars lazy frames."""

from __future__ import annotations

from typing import Iterable, List, Union

import polars as pl

FrameLike = Union[pl.LazyFrame, pl.DataFrame]


def collect(lf: pl.LazyFrame) -> pl.DataFrame:
    """Execute a lazy query with the streaming engine."""
    return lf.collect(engine="streaming")


def as_lazy(df: FrameLike) -> pl.LazyFrame:
    return df.lazy() if isinstance(df, pl.DataFrame) else df


def as_eager(df: FrameLike) -> pl.DataFrame:
    return collect(df) if isinstance(df, pl.LazyFrame) else df


def column_names(df: FrameLike) -> List[str]:
    return df.collect_schema().names()


def chunked(ids: Iterable[int], size: int) -> Iterable[List[int]]:
    batch: List[int] = []
    for i in ids:
        batch.append(i)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def id_collection(ids: Iterable[int]) -> pl.Series:
    """Ids as a single Int64 list value, the unambiguous right side of `is_in`.

    Well-defined when empty.
    """
    return pl.Series(list(ids), dtype=pl.Int64).implode()
