"""
Shared test fixtures.

A temporary SQLite database per test, a fixed reference time for deadline
scoring, and a small factory for score models.
"""

import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pytest

from okr_coach.domain.models.quality import (
    DimensionScore,
    ObjectiveScore,
    OverallScore,
    QualityScore,
)
from okr_coach.persistence.database import init_database
from okr_coach.persistence.repositories import SessionRepository, SnapshotRepository

# Deadlines in the tests are written relative to this date
NOW = datetime(2024, 1, 15)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
async def test_db():
    """Create and initialize a temporary database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        await init_database(db_path)
        yield db_path


@pytest.fixture
def session_repo(test_db):
    return SessionRepository(test_db)


@pytest.fixture
def snapshot_repo(test_db):
    return SnapshotRepository(test_db)


def make_scores(
    objective: int = 0,
    key_results: Optional[List[int]] = None,
    overall: Optional[int] = None,
) -> QualityScore:
    """Build a QualityScore with the given headline numbers."""
    objective_score = None
    if objective:
        objective_score = ObjectiveScore(
            text="Delight enterprise customers", overall=objective, dimensions={"ambition": 75}
        )
    kr_scores = None
    if key_results:
        kr_scores = [
            DimensionScore(text=f"Key result {i}", overall=score, measurability=100)
            for i, score in enumerate(key_results)
        ]
    overall_score = OverallScore(score=overall) if overall is not None else None
    return QualityScore(objective=objective_score, key_results=kr_scores, overall=overall_score)
