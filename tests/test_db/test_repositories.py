"""
Tests for the repository layer: round-trips, upserts, append-only reads.

What we test
------------
- Criteria upsert by name keeps the id and updates fields.
- Criterion score upsert replaces the (project, criterion) row.
- Savepoints undo only the failing statement.
- Investment analyses store infinite payback as NULL and read it back as inf.
- Snapshot windows are ordered oldest first and filtered by date/company.
- Forecast points and run metadata round-trip.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone

import pytest

from capital_planner.db.repositories.criteria_repo import (
    CriteriaRepository,
    CriterionScoreRepository,
    ProjectRepository,
)
from capital_planner.db.repositories.investment_repo import InvestmentAnalysisRepository
from capital_planner.db.repositories.portfolio_repo import (
    ForecastPointRepository,
    SnapshotRepository,
)
from capital_planner.db.repositories.run_repo import RunMetadataRepository
from capital_planner.forecasting.forecaster import forecast
from capital_planner.investment.analysis import analyze
from capital_planner.models.criteria import Criterion, CriterionScore, Project
from capital_planner.models.investment import InvestmentAnalysisInput
from capital_planner.models.meta import RunMetadata
from capital_planner.models.portfolio import PortfolioMetricsSnapshot
from capital_planner.taxonomy.planning_taxonomy import CriterionStatus, ScenarioType


# ── Criteria / scores ─────────────────────────────────────────────────────────

class TestCriteriaRepository:
    def test_upsert_by_name(self, in_memory_db):
        repo = CriteriaRepository(in_memory_db)
        first = repo.upsert(Criterion(name="Urgency", weight=40.0))
        second = repo.upsert(Criterion(name="Urgency", weight=60.0, category="risk"))
        assert first == second
        stored = repo.get_by_id(first)
        assert stored.weight == 60.0
        assert stored.category == "risk"

    def test_set_status_drives_is_active(self, in_memory_db):
        repo = CriteriaRepository(in_memory_db)
        cid = repo.upsert(Criterion(name="Safety", weight=50.0))
        repo.set_status(cid, CriterionStatus.DISABLED)
        assert repo.get_active() == []
        assert repo.get_by_id(cid).status == CriterionStatus.DISABLED

    def test_update_weights(self, in_memory_db):
        repo = CriteriaRepository(in_memory_db)
        cid = repo.upsert(Criterion(name="Safety", weight=50.0))
        repo.update_weights({cid: 100.0})
        assert repo.get_by_id(cid).weight == 100.0


class TestCriterionScoreRepository:
    def test_upsert_replaces(self, seeded_db):
        repo = CriterionScoreRepository(seeded_db)
        scores = repo.get_for_project(1)
        repo.upsert(scores[0].model_copy(update={"score": 2.0}))
        assert repo.get_for_project(1)[0].score == 2.0
        assert len(repo.get_for_project(1)) == len(scores)

    def test_scored_project_ids(self, seeded_db):
        assert CriterionScoreRepository(seeded_db).get_scored_project_ids() == [1, 2]

    def test_count_projects_for_criterion(self, seeded_db):
        assert CriterionScoreRepository(seeded_db).count_projects_for_criterion(1) == 2


class TestSavepoint:
    def test_rolls_back_only_the_block(self, in_memory_db):
        repo = ProjectRepository(in_memory_db)
        repo.insert(Project(name="Kept"))
        with pytest.raises(RuntimeError):
            with repo.savepoint("sp"):
                repo.insert(Project(name="Undone"))
                raise RuntimeError("boom")
        assert [p.name for p in repo.get_all()] == ["Kept"]


# ── Investment analyses ───────────────────────────────────────────────────────

class TestInvestmentAnalysisRepository:
    def _params(self) -> InvestmentAnalysisInput:
        return InvestmentAnalysisInput(
            project_id=1, initial_investment=1_000.0, discount_rate=5.0,
            analysis_horizon_years=2,
        )

    def test_infinite_payback_round_trip(self, seeded_db):
        repo = InvestmentAnalysisRepository(seeded_db)
        result = analyze(1_000.0, [0.0, 0.0], 5.0)
        analysis_id = repo.insert(self._params(), result)
        stored = repo.get_for_project(1)[0]
        assert stored.analysis_id == analysis_id
        assert stored.payback_period == math.inf
        assert stored.irr is None
        assert stored.recommendation == result.recommendation

    def test_each_analysis_is_a_new_row(self, seeded_db):
        repo = InvestmentAnalysisRepository(seeded_db)
        result = analyze(1_000.0, [800.0, 800.0], 5.0)
        repo.insert(self._params(), result)
        repo.insert(self._params(), result)
        assert len(repo.get_for_project(1)) == 2


# ── Snapshots and forecast points ─────────────────────────────────────────────

def _snapshot(month: int, company_id: int | None = None) -> PortfolioMetricsSnapshot:
    return PortfolioMetricsSnapshot(
        snapshot_date=datetime(2024, month, 1, tzinfo=timezone.utc),
        company_id=company_id,
        total_replacement_value=1_000_000.0,
        total_repair_cost=50_000.0 + month,
        portfolio_fci=5.0 + month / 10,
    )


class TestSnapshotRepository:
    def test_window_ordered_oldest_first(self, in_memory_db):
        repo = SnapshotRepository(in_memory_db)
        for month in (6, 2, 9):
            repo.insert(_snapshot(month))
        months = [s.snapshot_date.month for s in repo.get_window()]
        assert months == [2, 6, 9]

    def test_window_since(self, in_memory_db):
        repo = SnapshotRepository(in_memory_db)
        for month in (2, 6, 9):
            repo.insert(_snapshot(month))
        window = repo.get_window(since=date(2024, 5, 15))
        assert [s.snapshot_date.month for s in window] == [6, 9]

    def test_window_company(self, in_memory_db):
        repo = SnapshotRepository(in_memory_db)
        repo.insert(_snapshot(2, company_id=1))
        repo.insert(_snapshot(3, company_id=2))
        assert [s.company_id for s in repo.get_window(company_id=2)] == [2]

    def test_append_only_interface(self):
        assert not hasattr(SnapshotRepository, "update")
        assert not hasattr(SnapshotRepository, "delete")


class TestForecastPointRepository:
    def test_round_trip(self, in_memory_db):
        runs = RunMetadataRepository(in_memory_db)
        run_id = runs.insert_run(
            RunMetadata(
                run_slug="r-1", pipeline_stage="forecast", config_snapshot={},
                started_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )
        )
        points = forecast(
            [_snapshot(1), _snapshot(7)], 3, ScenarioType.WORST_CASE, run_id=run_id,
            forecast_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        repo = ForecastPointRepository(in_memory_db)
        assert repo.insert_many(points) == 3
        stored = repo.get_for_run(run_id, ScenarioType.WORST_CASE)
        assert [p.horizon_years for p in stored] == [1, 2, 3]
        assert stored[0].predicted_maintenance_cost == pytest.approx(
            points[0].predicted_maintenance_cost
        )
        assert repo.get_for_run(run_id, ScenarioType.BEST_CASE) == []


class TestRunMetadataRepository:
    def test_insert_update_round_trip(self, in_memory_db):
        repo = RunMetadataRepository(in_memory_db)
        run = RunMetadata(
            run_slug="abc", pipeline_stage="recalculate_scores",
            config_snapshot={"debug": False},
            started_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        run.run_id = repo.insert_run(run)
        run.status = "success"
        run.rows_processed = 4
        run.finished_at = datetime(2025, 1, 1, 0, 5, tzinfo=timezone.utc)
        repo.update_run(run)

        stored = repo.get_run_by_slug("abc")
        assert stored.status == "success"
        assert stored.rows_processed == 4
        assert stored.config_snapshot == {"debug": False}
        assert repo.get_recent_runs("recalculate_scores")[0].run_slug == "abc"

    def test_update_requires_id(self, in_memory_db):
        run = RunMetadata(
            run_slug="x", pipeline_stage="forecast", config_snapshot={},
            started_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(ValueError):
            RunMetadataRepository(in_memory_db).update_run(run)
