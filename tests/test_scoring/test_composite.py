"""
Tests for capital_planner/scoring/composite.py.

What we test
------------
compute_composite_score():
  - Σ(weight × score) / 100 over active criteria (50/50 × 8/6 → 7.0).
  - Unscored criteria contribute 0; a project with no rows scores exactly 0.
  - Inactive criteria and other projects' rows are ignored.
  - No active criteria → None.
  - Raising one raw score never lowers the composite.

normalize_weights():
  - Active weights sum to 100 after normalization (proportional rescale).
  - All-zero weights are redistributed equally.
  - Inactive criteria are returned unchanged.

compare_weighting_scenarios():
  - One result per scenario, in input order.
  - Negative weight → InvalidInputError.
"""

from __future__ import annotations

import pytest

from capital_planner.exceptions import InvalidInputError
from capital_planner.models.criteria import Criterion, CriterionScore
from capital_planner.scoring.composite import (
    active_criteria,
    compare_weighting_scenarios,
    compute_composite_score,
    normalize_weights,
)


def _score(criterion_id: int, score: float, project_id: int = 10) -> CriterionScore:
    return CriterionScore(project_id=project_id, criterion_id=criterion_id, score=score)


# ── compute_composite_score ───────────────────────────────────────────────────

class TestComputeCompositeScore:
    def test_weighted_average_example(self, sample_criteria):
        result = compute_composite_score(10, sample_criteria, [_score(1, 8.0), _score(2, 6.0)])
        assert result is not None
        assert result.composite_score == pytest.approx(7.0)
        assert result.total_weight == pytest.approx(100.0)

    def test_breakdown_in_display_order(self, sample_criteria):
        result = compute_composite_score(10, sample_criteria, [_score(2, 6.0), _score(1, 8.0)])
        names = [b.criterion_name for b in result.criteria_scores]
        assert names == ["Urgency", "Safety"]
        assert result.criteria_scores[0].weighted_score == pytest.approx(400.0)

    def test_no_scores_yields_zero(self, sample_criteria):
        result = compute_composite_score(10, sample_criteria, [])
        assert result is not None
        assert result.composite_score == 0.0
        assert all(b.weighted_score == 0.0 for b in result.criteria_scores)

    def test_missing_criterion_counts_as_zero(self, sample_criteria):
        result = compute_composite_score(10, sample_criteria, [_score(1, 8.0)])
        assert result.composite_score == pytest.approx(4.0)

    def test_inactive_criterion_ignored(self, sample_criteria):
        result = compute_composite_score(
            10, sample_criteria, [_score(1, 8.0), _score(2, 6.0), _score(3, 10.0)]
        )
        assert result.composite_score == pytest.approx(7.0)
        assert len(result.criteria_scores) == 2

    def test_other_projects_rows_ignored(self, sample_criteria):
        result = compute_composite_score(
            10, sample_criteria, [_score(1, 8.0), _score(1, 2.0, project_id=99)]
        )
        assert result.criteria_scores[0].score == 8.0

    def test_justification_carried(self, sample_criteria):
        row = CriterionScore(project_id=10, criterion_id=2, score=5.0, justification="Code issue")
        result = compute_composite_score(10, sample_criteria, [row])
        assert result.criteria_scores[1].justification == "Code issue"

    def test_no_active_criteria_returns_none(self):
        criteria = [Criterion(criterion_id=1, name="Urgency", weight=100.0, is_active=False)]
        assert compute_composite_score(10, criteria, [_score(1, 5.0)]) is None

    @pytest.mark.parametrize("raised", [0.0, 2.5, 6.0, 9.0, 10.0])
    def test_monotonic_in_each_score(self, sample_criteria, raised):
        base = compute_composite_score(10, sample_criteria, [_score(1, 0.0), _score(2, 6.0)])
        bumped = compute_composite_score(10, sample_criteria, [_score(1, raised), _score(2, 6.0)])
        assert bumped.composite_score >= base.composite_score


class TestActiveCriteria:
    def test_sorted_by_display_order(self):
        criteria = [
            Criterion(criterion_id=1, name="B", weight=10.0, display_order=2),
            Criterion(criterion_id=2, name="A", weight=10.0, display_order=1),
        ]
        assert [c.name for c in active_criteria(criteria)] == ["A", "B"]


# ── normalize_weights ─────────────────────────────────────────────────────────

class TestNormalizeWeights:
    def test_proportional_rescale(self):
        criteria = [
            Criterion(criterion_id=1, name="Urgency", weight=30.0),
            Criterion(criterion_id=2, name="Safety", weight=10.0),
        ]
        normalized = normalize_weights(criteria)
        assert [c.weight for c in normalized] == pytest.approx([75.0, 25.0])

    @pytest.mark.parametrize(
        "weights",
        [[33.0, 33.0, 33.0], [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0], [100.0], [0.1, 99.0]],
    )
    def test_sum_is_exactly_100(self, weights):
        criteria = [
            Criterion(criterion_id=i, name=f"C{i}", weight=w) for i, w in enumerate(weights, 1)
        ]
        total = sum(c.weight for c in normalize_weights(criteria))
        assert total == pytest.approx(100.0, abs=1e-9)

    def test_all_zero_weights_split_equally(self):
        criteria = [
            Criterion(criterion_id=i, name=f"C{i}", weight=0.0) for i in range(1, 5)
        ]
        assert [c.weight for c in normalize_weights(criteria)] == pytest.approx([25.0] * 4)

    def test_inactive_unchanged(self, sample_criteria):
        normalized = normalize_weights(sample_criteria)
        assert normalized[2].weight == 20.0
        assert normalized[2].is_active is False

    def test_no_active_criteria_returns_input(self):
        criteria = [Criterion(criterion_id=1, name="X", weight=40.0, is_active=False)]
        assert normalize_weights(criteria) == criteria


# ── compare_weighting_scenarios ───────────────────────────────────────────────

class TestCompareWeightingScenarios:
    def test_results_in_input_order(self, sample_criteria):
        scores = [_score(1, 8.0), _score(2, 6.0)]
        results = compare_weighting_scenarios(
            10,
            sample_criteria,
            scores,
            {"safety_first": {"Urgency": 20.0, "Safety": 80.0},
             "urgency_first": {"Urgency": 80.0, "Safety": 20.0}},
        )
        assert [r.scenario_name for r in results] == ["safety_first", "urgency_first"]
        assert results[0].composite_score == pytest.approx(6.4)
        assert results[1].composite_score == pytest.approx(7.6)

    def test_unknown_criterion_scores_zero(self, sample_criteria):
        results = compare_weighting_scenarios(
            10, sample_criteria, [_score(1, 8.0)], {"s": {"Resilience": 100.0}}
        )
        assert results[0].composite_score == 0.0
        assert results[0].criteria_scores[0].criterion_id == 0

    def test_negative_weight_rejected(self, sample_criteria):
        with pytest.raises(InvalidInputError):
            compare_weighting_scenarios(10, sample_criteria, [], {"bad": {"Urgency": -5.0}})
