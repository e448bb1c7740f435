"""
Tests for capital_planner/scoring/ranker.py.

What we test
------------
rank_projects():
  - Sorted by composite_score descending; ranks are 1..N contiguous.
  - Ties are broken by project_id ascending regardless of input order.
  - Named criterion columns hold raw scores, None when absent.
  - Cost effectiveness = composite / (cost / 1000); None without cost.
  - Epoch id and timestamp stamped on every row.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from capital_planner.models.criteria import Project
from capital_planner.models.priority import CompositeScoreResult, CriterionBreakdown
from capital_planner.scoring.ranker import cost_effectiveness, rank_projects, sort_results


def _result(project_id: int, score: float, urgency: float | None = None) -> CompositeScoreResult:
    breakdown = []
    if urgency is not None:
        breakdown.append(
            CriterionBreakdown(
                criterion_id=1, criterion_name="Urgency", score=urgency,
                weight=100.0, weighted_score=100.0 * urgency,
            )
        )
    return CompositeScoreResult(
        project_id=project_id, composite_score=score,
        criteria_scores=breakdown, total_weight=100.0,
    )


def _projects(*ids: int, cost: float | None = None) -> dict[int, Project]:
    return {
        pid: Project(project_id=pid, name=f"P{pid}", deferred_maintenance_cost=cost)
        for pid in ids
    }


class TestRankProjects:
    def test_descending_and_contiguous(self):
        ranked = rank_projects(
            [_result(1, 3.0), _result(2, 9.0), _result(3, 6.0)], _projects(1, 2, 3)
        )
        assert [r.project_id for r in ranked] == [2, 3, 1]
        assert [r.rank for r in ranked] == [1, 2, 3]
        scores = [r.composite_score for r in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_ties_broken_by_project_id(self):
        forward = rank_projects([_result(5, 4.0), _result(2, 4.0)], _projects(2, 5))
        backward = rank_projects([_result(2, 4.0), _result(5, 4.0)], _projects(2, 5))
        assert [r.project_id for r in forward] == [2, 5]
        assert [r.project_id for r in backward] == [2, 5]

    def test_named_columns(self):
        ranked = rank_projects([_result(1, 8.0, urgency=8.0)], _projects(1))
        assert ranked[0].criterion_scores["urgency_score"] == 8.0
        assert ranked[0].criterion_scores["safety_score"] is None

    def test_custom_named_columns(self):
        ranked = rank_projects(
            [_result(1, 8.0, urgency=8.0)], _projects(1), ranked_criteria={"Urgency": "u"}
        )
        assert ranked[0].criterion_scores == {"u": 8.0}

    def test_cost_effectiveness(self):
        ranked = rank_projects([_result(1, 7.0)], _projects(1, cost=100_000.0))
        assert ranked[0].total_cost == 100_000.0
        assert ranked[0].cost_effectiveness_score == pytest.approx(0.07)

    def test_missing_cost_has_no_cost_effectiveness(self):
        ranked = rank_projects([_result(1, 7.0)], _projects(1))
        assert ranked[0].cost_effectiveness_score is None

    def test_epoch_stamp(self):
        ts = datetime(2025, 3, 1, tzinfo=timezone.utc)
        ranked = rank_projects([_result(1, 1.0)], _projects(1), epoch_id=4, calculated_at=ts)
        assert ranked[0].epoch_id == 4
        assert ranked[0].calculated_at == ts

    def test_empty(self):
        assert rank_projects([], {}) == []


class TestHelpers:
    def test_sort_results_is_pure(self):
        results = [_result(1, 1.0), _result(2, 2.0)]
        sort_results(results)
        assert [r.project_id for r in results] == [1, 2]

    @pytest.mark.parametrize("cost", [None, 0.0, -5.0])
    def test_cost_effectiveness_guard(self, cost):
        assert cost_effectiveness(5.0, cost) is None
