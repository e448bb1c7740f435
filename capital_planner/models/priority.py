"""
Composite score and ranking outputs.

``CompositeScoreResult`` is the pure output of the composite scoring engine for
one project. ``RankedProject`` is the denormalized cache row served to readers;
it is only ever written by a recalculation pass and every row carries the id
of the ``RecalculationEpoch`` that produced it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from capital_planner.taxonomy.planning_taxonomy import EpochStatus


class CriterionBreakdown(BaseModel):
    """Contribution of one active criterion to a composite score."""

    model_config = ConfigDict(frozen=True)

    criterion_id: int
    criterion_name: str
    score: float
    weight: float
    weighted_score: float
    justification: Optional[str] = None


class CompositeScoreResult(BaseModel):
    """Weighted composite score of one project.

    Attributes:
        project_id: Project the score belongs to.
        composite_score: ``Σ(weight × score) / 100``.
        criteria_scores: One breakdown per active criterion, in display order.
        total_weight: Sum of active weights at scoring time (100 when normalized).
    """

    model_config = ConfigDict(frozen=True)

    project_id: int
    composite_score: float
    criteria_scores: list[CriterionBreakdown]
    total_weight: float


class RankedProject(BaseModel):
    """One row of a ranked project list.

    Attributes:
        project_id: Project PK.
        project_name: Display name.
        composite_score: Cached composite score.
        rank: 1-based position in the epoch's ordering.
        criterion_scores: Raw scores of the configured named criteria, keyed by
            cache column (e.g. ``"urgency_score"``); ``None`` when not scored.
        total_cost: Deferred maintenance cost, when known.
        cost_effectiveness_score: Composite score per cost unit (thousands).
        epoch_id: Recalculation epoch that produced the row.
        calculated_at: When the row was written.
    """

    model_config = ConfigDict(frozen=True)

    project_id: int
    project_name: str
    composite_score: float
    rank: int
    criterion_scores: dict[str, Optional[float]] = Field(default_factory=dict)
    total_cost: Optional[float] = None
    cost_effectiveness_score: Optional[float] = None
    epoch_id: Optional[int] = None
    calculated_at: Optional[datetime] = None

    @field_validator("rank")
    @classmethod
    def validate_rank(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"rank must be >= 1, got {v}.")
        return v


class RecalculationEpoch(BaseModel):
    """Bookkeeping for one recalculation pass.

    Not frozen: ``status``, counts and ``finished_at`` are filled in as the
    pass completes.
    """

    model_config = ConfigDict(frozen=False)

    epoch_id: Optional[int] = None
    status: EpochStatus = EpochStatus.RUNNING
    started_at: datetime
    finished_at: Optional[datetime] = None
    projects_processed: int = 0
    projects_failed: int = 0


class ProjectFailure(BaseModel):
    """A project skipped during a recalculation pass."""

    model_config = ConfigDict(frozen=True)

    project_id: int
    error: str


class RecalculationSummary(BaseModel):
    """Outcome of ``RankingCoordinator.recalculate_all``."""

    model_config = ConfigDict(frozen=True)

    epoch_id: Optional[int]
    processed: int
    failed: int
    failures: list[ProjectFailure] = Field(default_factory=list)
    ranked: list[RankedProject] = Field(default_factory=list)


class WeightingScenarioResult(BaseModel):
    """Composite score of one project under an alternative weighting."""

    model_config = ConfigDict(frozen=True)

    scenario_name: str
    composite_score: float
    criteria_scores: list[CriterionBreakdown]


class CriterionChangeResult(BaseModel):
    """Result of enabling or disabling a criterion."""

    model_config = ConfigDict(frozen=True)

    criterion_id: int
    impacted_projects: int
    normalized_weights: dict[int, float]
    message: str
