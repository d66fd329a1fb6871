"""Tests for shared helpers: errors, logging, progress and frame utilities."""

import io
import warnings

import polars as pl
import pytest
from loguru import logger

from sparse_covariates.errors import DataQualityWarning, SchemaViolation, warn_data_quality
from sparse_covariates.shared.frames import chunked, id_collection
from sparse_covariates.shared.logging_utils import log_stage
from sparse_covariates.shared.progress import BatchProgress


@pytest.fixture
def log_lines():
    lines = []
    handler = logger.add(lines.append, format="{level}|{message}")
    yield lines
    logger.remove(handler)


class TestErrors:
    def test_schema_violation_message_names_ids(self):
        err = SchemaViolation("duplicate covariate row", row_id=4, covariate_id=2001)
        assert str(err) == "duplicate covariate row (row_id=4, covariate_id=2001)"
        assert err.time_id is None
        assert isinstance(err, ValueError)

    def test_warn_data_quality_logs_and_warns(self, log_lines):
        with pytest.warns(DataQualityWarning, match="no positive value"):
            warn_data_quality("covariate 3001 has no positive value")
        assert any(line.startswith("WARNING|covariate 3001") for line in log_lines)


class TestLogStage:
    def test_start_and_finish(self, log_lines):
        with log_stage("normalize", population_size=10):
            pass
        assert "INFO|normalize: started (population_size=10)" in log_lines[0]
        assert "normalize: finished" in log_lines[-1]

    def test_failure_is_logged_and_reraised(self, log_lines):
        with pytest.raises(RuntimeError):
            with log_stage("aggregate"):
                raise RuntimeError("boom")
        assert log_lines[-1].startswith("ERROR|aggregate: aborted")


class TestBatchProgress:
    def test_last_batch_is_always_drawn(self):
        stream = io.StringIO()
        prog = BatchProgress("aggregate", total_batches=2, stream=stream, min_interval=3600)
        prog.advance(500)
        prog.advance(12)
        prog.finish()
        out = stream.getvalue()
        assert "aggregate: batch 2/2 | 512 covariates" in out
        assert "batch 1/2" not in out
        assert out.endswith("\n")
        assert prog.complete


class TestFrames:
    def test_chunked(self):
        assert list(chunked(range(5), 2)) == [[0, 1], [2, 3], [4]]
        assert list(chunked([], 3)) == []

    def test_id_collection_is_one_list_value(self):
        assert id_collection([]).to_list() == [[]]
        assert id_collection([3, 1]).to_list() == [[3, 1]]

    def test_id_collection_filters(self):
        df = pl.DataFrame({"covariate_id": [1, 2, 3]}, schema={"covariate_id": pl.Int64})
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            kept = df.filter(pl.col("covariate_id").is_in(id_collection([3, 1])))
            empty = df.filter(pl.col("covariate_id").is_in(id_collection([])))
        assert kept["covariate_id"].to_list() == [1, 3]
        assert empty.height == 0
