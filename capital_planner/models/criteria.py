"""
Prioritization inputs: projects, criteria and per-criterion scores.

These are the records the surrounding application supplies to the scoring
engine. Validation happens here, at the store boundary, so the numeric core
never sees a negative weight or an out-of-range raw score.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from capital_planner.taxonomy.planning_taxonomy import CriterionStatus

CRITERION_SCORE_MIN = 0.0
CRITERION_SCORE_MAX = 10.0


class Project(BaseModel):
    """A capital project that can be scored and ranked.

    Attributes:
        project_id: Auto-assigned DB PK; ``None`` before insertion.
        name: Display name.
        deferred_maintenance_cost: Total cost used for cost-effectiveness, or
            ``None`` when unknown.
    """

    model_config = ConfigDict(frozen=True)

    project_id: Optional[int] = None
    name: str
    deferred_maintenance_cost: Optional[float] = None

    @field_validator("deferred_maintenance_cost")
    @classmethod
    def validate_cost(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError(f"deferred_maintenance_cost must be >= 0, got {v}.")
        return v


class Criterion(BaseModel):
    """One weighted dimension of the prioritization model.

    The weights of all active criteria are expected to sum to 100; use
    ``scoring.composite.normalize_weights`` to restore that after edits.

    Attributes:
        criterion_id: Auto-assigned DB PK; ``None`` before insertion.
        name: Display name, e.g. ``"Urgency"``.
        category: Free-form grouping label.
        weight: Percentage weight in [0, 100].
        is_active: Whether the criterion participates in scoring.
        status: Lifecycle state (``active`` or ``disabled``).
        display_order: Ordering key for breakdowns and reports.
        description: Optional guidance for scorers.
    """

    model_config = ConfigDict(frozen=True)

    criterion_id: Optional[int] = None
    name: str
    category: str = "general"
    weight: float
    is_active: bool = True
    status: CriterionStatus = CriterionStatus.ACTIVE
    display_order: int = 0
    description: Optional[str] = None

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"weight must be in [0, 100], got {v}.")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name must not be empty.")
        return v.strip()


class CriterionScore(BaseModel):
    """A project's raw score against one criterion.

    Absence of a row for a (project, criterion) pair means score 0.

    Attributes:
        project_id: FK to ``projects.project_id``.
        criterion_id: FK to ``criteria.criterion_id``.
        score: Raw score on the 0–10 criterion scale.
        justification: Optional scorer rationale.
    """

    model_config = ConfigDict(frozen=True)

    project_id: int
    criterion_id: int
    score: float
    justification: Optional[str] = None

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: float) -> float:
        if not CRITERION_SCORE_MIN <= v <= CRITERION_SCORE_MAX:
            raise ValueError(
                f"score must be in [{CRITERION_SCORE_MIN}, {CRITERION_SCORE_MAX}], got {v}."
            )
        return v
