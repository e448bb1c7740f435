"""
Shared pytest fixtures for the Capital Planner test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema and migrations applied. Created anew for each test.
  - ``seeded_db``: ``in_memory_db`` plus two weighted criteria, three
    projects and their criterion scores.
  - Sample domain objects shared across test modules.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Generator

import pytest

from capital_planner.db.migrations import run_migrations
from capital_planner.db.repositories.criteria_repo import (
    CriteriaRepository,
    CriterionScoreRepository,
    ProjectRepository,
)
from capital_planner.db.schema import apply_schema
from capital_planner.models.criteria import Criterion, CriterionScore, Project
from capital_planner.models.portfolio import PortfolioMetricsSnapshot


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with schema + migrations.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    run_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def seeded_db(in_memory_db: sqlite3.Connection) -> sqlite3.Connection:
    """Criteria Urgency/Safety at 50/50 and three projects.

    - "Roof Replacement" (cost 100,000): Urgency 8, Safety 6 → composite 7.0
    - "Boiler Upgrade"   (no cost):      Urgency 9           → composite 4.5
    - "Parking Resurface" (cost 20,000): no scores           → not ranked
    """
    criteria = CriteriaRepository(in_memory_db)
    urgency = criteria.upsert(Criterion(name="Urgency", weight=50.0, display_order=1))
    safety = criteria.upsert(Criterion(name="Safety", weight=50.0, display_order=2))

    projects = ProjectRepository(in_memory_db)
    roof = projects.insert(Project(name="Roof Replacement", deferred_maintenance_cost=100_000.0))
    boiler = projects.insert(Project(name="Boiler Upgrade"))
    projects.insert(Project(name="Parking Resurface", deferred_maintenance_cost=20_000.0))

    scores = CriterionScoreRepository(in_memory_db)
    scores.upsert(CriterionScore(project_id=roof, criterion_id=urgency, score=8.0))
    scores.upsert(
        CriterionScore(project_id=roof, criterion_id=safety, score=6.0, justification="Fall risk")
    )
    scores.upsert(CriterionScore(project_id=boiler, criterion_id=urgency, score=9.0))
    in_memory_db.commit()
    return in_memory_db


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_criteria() -> list[Criterion]:
    """Two active criteria at 50/50 and one inactive criterion."""
    return [
        Criterion(criterion_id=1, name="Urgency", weight=50.0, display_order=1),
        Criterion(criterion_id=2, name="Safety", weight=50.0, display_order=2),
        Criterion(criterion_id=3, name="Aesthetics", weight=20.0, is_active=False, display_order=3),
    ]


@pytest.fixture
def sample_snapshots() -> list[PortfolioMetricsSnapshot]:
    """Two snapshots twelve months apart; FCI rises 10% → 11%."""
    return [
        PortfolioMetricsSnapshot(
            snapshot_date=datetime(2024, 1, 15, tzinfo=timezone.utc),
            total_replacement_value=1_000_000.0,
            total_repair_cost=100_000.0,
            portfolio_fci=10.0,
        ),
        PortfolioMetricsSnapshot(
            snapshot_date=datetime(2025, 1, 15, tzinfo=timezone.utc),
            total_replacement_value=1_000_000.0,
            total_repair_cost=110_000.0,
            portfolio_fci=11.0,
            inflation_rate=3.0,
        ),
    ]
