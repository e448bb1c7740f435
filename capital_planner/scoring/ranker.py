"""
Project ranker: orders composite score results and assigns ranks.

Ordering
--------
Primary key: ``composite_score`` descending.
Tie-break:   ``project_id`` ascending, so equal scores always rank the same
             way regardless of the order projects were loaded in.

Ranks are 1-based and contiguous (1..N) over the returned list.

Each ``RankedProject`` also carries:
  - the raw scores of the configured named criteria (``"Urgency"`` →
    ``urgency_score``), ``None`` when that criterion is not active;
  - ``cost_effectiveness_score`` = composite / (cost / 1000), ``None`` when
    the project has no positive cost.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Optional

from capital_planner.models.criteria import Project
from capital_planner.models.priority import CompositeScoreResult, RankedProject

DEFAULT_RANKED_CRITERIA: dict[str, str] = {
    "Urgency": "urgency_score",
    "Mission Criticality": "mission_criticality_score",
    "Safety": "safety_score",
    "Code Compliance": "compliance_score",
    "Energy Savings": "energy_savings_score",
}


def sort_results(results: Sequence[CompositeScoreResult]) -> list[CompositeScoreResult]:
    """Return ``results`` ordered by score descending, then project_id ascending."""
    return sorted(results, key=lambda r: (-r.composite_score, r.project_id))


def named_criterion_scores(
    result: CompositeScoreResult,
    ranked_criteria: Mapping[str, str],
) -> dict[str, Optional[float]]:
    """Extract the raw scores of the named criteria into cache columns."""
    by_name = {b.criterion_name: b.score for b in result.criteria_scores}
    return {column: by_name.get(name) for name, column in ranked_criteria.items()}


def cost_effectiveness(
    composite_score: float,
    total_cost: Optional[float],
    unit: float = 1000.0,
) -> Optional[float]:
    """Composite score per ``unit`` of cost; ``None`` without a positive cost."""
    if total_cost is None or total_cost <= 0:
        return None
    return composite_score / (total_cost / unit)


def rank_projects(
    results: Sequence[CompositeScoreResult],
    projects: Mapping[int, Project],
    ranked_criteria: Optional[Mapping[str, str]] = None,
    cost_effectiveness_unit: float = 1000.0,
    epoch_id: Optional[int] = None,
    calculated_at: Optional[datetime] = None,
) -> list[RankedProject]:
    """Sort composite results and build ranked rows.

    Args:
        results:                 One composite result per scoreable project.
        projects:                Project records keyed by ``project_id``.
        ranked_criteria:         Criterion name → cache column. Defaults to
                                 ``DEFAULT_RANKED_CRITERIA``.
        cost_effectiveness_unit: Cost divisor for cost effectiveness.
        epoch_id:                Stamped on every row.
        calculated_at:           Stamped on every row.

    Returns:
        ``RankedProject`` list in rank order, ranks 1..N.
    """
    columns = DEFAULT_RANKED_CRITERIA if ranked_criteria is None else ranked_criteria

    ranked: list[RankedProject] = []
    for rank, result in enumerate(sort_results(results), start=1):
        project = projects.get(result.project_id)
        total_cost = project.deferred_maintenance_cost if project else None
        ranked.append(
            RankedProject(
                project_id=result.project_id,
                project_name=project.name if project else f"Project {result.project_id}",
                composite_score=result.composite_score,
                rank=rank,
                criterion_scores=named_criterion_scores(result, columns),
                total_cost=total_cost,
                cost_effectiveness_score=cost_effectiveness(
                    result.composite_score, total_cost, cost_effectiveness_unit
                ),
                epoch_id=epoch_id,
                calculated_at=calculated_at,
            )
        )
    return ranked
