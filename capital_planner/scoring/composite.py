"""
Composite scoring: combines per-criterion scores into one project score.

Formula
-------
    weighted_i      = weight_i × score_i          (score_i = 0 when unscored)
    composite_score = Σ weighted_i / 100

The divisor is fixed at 100 regardless of the current sum of weights. Weights
must be normalized to sum to 100 (``normalize_weights``) for the composite to
stay on the criterion scale.

Return conventions
------------------
- No active criteria → ``None`` ("no model", distinct from a zero score).
- A project with no score rows → a valid result with ``composite_score == 0``
  and every ``weighted_score == 0``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Optional

from capital_planner.exceptions import InvalidInputError
from capital_planner.models.criteria import Criterion, CriterionScore
from capital_planner.models.priority import (
    CompositeScoreResult,
    CriterionBreakdown,
    WeightingScenarioResult,
)

WEIGHT_TOTAL = 100.0


def active_criteria(criteria: Sequence[Criterion]) -> list[Criterion]:
    """Return the active criteria in display order (stable for equal orders)."""
    return sorted((c for c in criteria if c.is_active), key=lambda c: c.display_order)


def compute_composite_score(
    project_id: int,
    criteria: Sequence[Criterion],
    scores: Sequence[CriterionScore],
) -> Optional[CompositeScoreResult]:
    """Compute the weighted composite score of one project.

    Args:
        project_id: Project being scored.
        criteria:   Criteria of the model; inactive ones are ignored.
        scores:     The project's score rows. Rows for other projects or for
                    inactive criteria are ignored.

    Returns:
        ``CompositeScoreResult``, or ``None`` when no criterion is active.
    """
    active = active_criteria(criteria)
    if not active:
        return None

    by_criterion: dict[int, CriterionScore] = {
        s.criterion_id: s for s in scores if s.project_id == project_id
    }

    breakdown: list[CriterionBreakdown] = []
    weighted_total = 0.0
    for criterion in active:
        row = by_criterion.get(criterion.criterion_id)
        raw = row.score if row is not None else 0.0
        weighted = criterion.weight * raw
        breakdown.append(
            CriterionBreakdown(
                criterion_id=criterion.criterion_id,
                criterion_name=criterion.name,
                score=raw,
                weight=criterion.weight,
                weighted_score=weighted,
                justification=row.justification if row is not None else None,
            )
        )
        weighted_total += weighted

    return CompositeScoreResult(
        project_id=project_id,
        composite_score=weighted_total / WEIGHT_TOTAL,
        criteria_scores=breakdown,
        total_weight=sum(c.weight for c in active),
    )


def normalize_weights(criteria: Sequence[Criterion]) -> list[Criterion]:
    """Rescale active weights proportionally so they sum to exactly 100.

    When every active weight is zero the total is redistributed equally.
    Inactive criteria are returned unchanged. The last active criterion
    absorbs the floating-point remainder so the sum lands on 100.

    Args:
        criteria: Criteria to normalize.

    Returns:
        New ``Criterion`` objects in the input order.
    """
    positions = [i for i, c in enumerate(criteria) if c.is_active]
    if not positions:
        return list(criteria)

    total = sum(criteria[i].weight for i in positions)
    if total > 0:
        targets = [criteria[i].weight / total * WEIGHT_TOTAL for i in positions]
    else:
        targets = [WEIGHT_TOTAL / len(positions)] * len(positions)
    targets[-1] = max(0.0, WEIGHT_TOTAL - sum(targets[:-1]))

    normalized = list(criteria)
    for i, weight in zip(positions, targets):
        normalized[i] = criteria[i].model_copy(update={"weight": weight})
    return normalized


def compare_weighting_scenarios(
    project_id: int,
    criteria: Sequence[Criterion],
    scores: Sequence[CriterionScore],
    scenarios: Mapping[str, Mapping[str, float]],
) -> list[WeightingScenarioResult]:
    """Score one project under alternative weightings.

    Each scenario maps criterion names to weights. Names without a score row
    score 0; names unknown to the model get ``criterion_id`` 0.

    Args:
        project_id: Project being compared.
        criteria:   Criteria of the model (used to resolve names to ids).
        scores:     The project's score rows.
        scenarios:  Ordered mapping of scenario name → {criterion name: weight}.

    Returns:
        One ``WeightingScenarioResult`` per scenario, in input order.

    Raises:
        InvalidInputError: If any scenario weight is negative.
    """
    names_by_id = {c.criterion_id: c.name for c in criteria}
    score_by_name: dict[str, CriterionScore] = {
        names_by_id[s.criterion_id]: s
        for s in scores
        if s.project_id == project_id and s.criterion_id in names_by_id
    }
    id_by_name = {c.name: c.criterion_id for c in criteria}

    results: list[WeightingScenarioResult] = []
    for scenario_name, weights in scenarios.items():
        breakdown: list[CriterionBreakdown] = []
        weighted_total = 0.0
        for name, weight in weights.items():
            if weight < 0:
                raise InvalidInputError(
                    f"Scenario '{scenario_name}' has negative weight {weight} for '{name}'."
                )
            row = score_by_name.get(name)
            raw = row.score if row is not None else 0.0
            weighted = weight * raw
            breakdown.append(
                CriterionBreakdown(
                    criterion_id=id_by_name.get(name) or 0,
                    criterion_name=name,
                    score=raw,
                    weight=weight,
                    weighted_score=weighted,
                    justification=row.justification if row is not None else None,
                )
            )
            weighted_total += weighted

        results.append(
            WeightingScenarioResult(
                scenario_name=scenario_name,
                composite_score=weighted_total / WEIGHT_TOTAL,
                criteria_scores=breakdown,
            )
        )

    return results
