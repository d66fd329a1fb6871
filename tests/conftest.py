# conftest.py  (at tests root)
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.resolve()
SRC = ROOT / "src"

# Add src directory to Python path for proper imports
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sparse_covariates.store.covariate_data import CovariateData  # noqa: E402
from sparse_covariates.types.schemas.models import AnalysisRef, CovariateRef  # noqa: E402

AGE_GROUP = 1
CONDITION = 2
MEASUREMENT = 3  # continuous, absent means missing
VISIT_COUNT = 4  # continuous, absent means zero

ANALYSES = [
    AnalysisRef(analysis_id=AGE_GROUP, analysis_name="DemographicsAgeGroup", is_binary=True, missing_means_zero=True),
    AnalysisRef(analysis_id=CONDITION, analysis_name="ConditionOccurrence", is_binary=True, missing_means_zero=True),
    AnalysisRef(analysis_id=MEASUREMENT, analysis_name="MeasurementValue", is_binary=False, missing_means_zero=False),
    AnalysisRef(analysis_id=VISIT_COUNT, analysis_name="VisitCount", is_binary=False, missing_means_zero=True),
]


def make_data(rows, covariates, population_size, analyses=None):
    """Build a store from (row_id, covariate_id, value[, time_id]) tuples.

    `covariates` maps covariate_id -> analysis_id.
    """
    refs = [
        CovariateRef(covariate_id=cid, covariate_name=f"covariate {cid}", analysis_id=aid)
        for cid, aid in covariates.items()
    ]
    return CovariateData.from_records(rows, refs, analyses or ANALYSES, population_size)


def age_group_rows():
    """1000 entries split 200/300/500 over three exclusive age buckets."""
    rows = [(i, 1001, 1.0) for i in range(0, 200)]
    rows += [(i, 1002, 1.0) for i in range(200, 500)]
    rows += [(i, 1003, 1.0) for i in range(500, 1000)]
    return rows


@pytest.fixture
def age_group_data():
    return make_data(
        age_group_rows(),
        {1001: AGE_GROUP, 1002: AGE_GROUP, 1003: AGE_GROUP},
        population_size=1000,
    )


@pytest.fixture
def mixed_data():
    """Ten entries with binary and continuous covariates of every kind."""
    rows = [
        # condition present for 4 of 10
        (1, 2001, 1.0), (2, 2001, 1.0), (3, 2001, 1.0), (4, 2001, 1.0),
        # condition present for 1 of 10
        (5, 2002, 1.0),
        # measurement observed for 3 of 10
        (1, 3001, 2.0), (2, 3001, 4.0), (3, 3001, 6.0),
        # visit count for 3 of 10, zero elsewhere
        (1, 4001, 2.0), (2, 4001, 4.0), (3, 4001, 6.0),
    ]
    covariates = {2001: CONDITION, 2002: CONDITION, 3001: MEASUREMENT, 4001: VISIT_COUNT}
    return make_data(rows, covariates, population_size=10)
