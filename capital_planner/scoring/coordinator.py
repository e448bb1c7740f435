"""
Ranking & cache coordinator.

Owns the ``priority_scores`` cache. Every write to the cache happens inside a
recalculation epoch:

    open epoch (running)
      └─ for each scoreable project, in rank order:
           SAVEPOINT → upsert row stamped with epoch id → RELEASE
           (on error: ROLLBACK TO SAVEPOINT, log, count as failed)
    close epoch (complete)

Reads (``get_ranked_projects``) only see the latest complete epoch, so a list
never mixes rows from two passes. The caller owns the transaction: when the
pass runs inside ``get_connection()`` an exception rolls back the whole epoch
and the previous one stays visible.

Ranks are assigned at write time over the successfully written rows, so the
served list is always ranked 1..N without gaps even when some projects fail.

Projects are processed sequentially on the caller's single connection.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping
from typing import Optional

from capital_planner.db.repositories.criteria_repo import (
    CriteriaRepository,
    CriterionScoreRepository,
    ProjectRepository,
)
from capital_planner.db.repositories.priority_repo import (
    EpochRepository,
    PriorityScoreRepository,
)
from capital_planner.exceptions import InvalidInputError, ModelStateError, NotFoundError
from capital_planner.models.criteria import Criterion
from capital_planner.models.priority import (
    CompositeScoreResult,
    CriterionChangeResult,
    ProjectFailure,
    RankedProject,
    RecalculationSummary,
    WeightingScenarioResult,
)
from capital_planner.scoring import composite, ranker
from capital_planner.taxonomy.planning_taxonomy import CriterionStatus, EpochStatus
from capital_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class RankingCoordinator:
    """Scores every project, ranks them and maintains the epoch-stamped cache.

    Args:
        conn: Open SQLite connection; the caller commits.
        ranked_criteria: Criterion name → cache column for named scores.
        cost_effectiveness_unit: Cost divisor for cost effectiveness.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        ranked_criteria: Optional[Mapping[str, str]] = None,
        cost_effectiveness_unit: float = 1000.0,
    ) -> None:
        self.conn = conn
        self.ranked_criteria = dict(
            ranker.DEFAULT_RANKED_CRITERIA if ranked_criteria is None else ranked_criteria
        )
        self.cost_effectiveness_unit = cost_effectiveness_unit
        self.projects = ProjectRepository(conn)
        self.criteria = CriteriaRepository(conn)
        self.scores = CriterionScoreRepository(conn)
        self.epochs = EpochRepository(conn)
        self.cache = PriorityScoreRepository(conn)

    # ── Scoring ────────────────────────────────────────────────────────────────

    def calculate_composite_score(self, project_id: int) -> Optional[CompositeScoreResult]:
        """Score one project against the active criteria. Does not touch the cache.

        Returns:
            ``CompositeScoreResult``, or ``None`` when no criterion is active.

        Raises:
            NotFoundError: If the project does not exist.
        """
        if self.projects.get_by_id(project_id) is None:
            raise NotFoundError(f"Project {project_id} not found.")
        return composite.compute_composite_score(
            project_id,
            self.criteria.get_active(),
            self.scores.get_for_project(project_id),
        )

    def recalculate_all(self) -> RecalculationSummary:
        """Rescore every scoreable project and publish a new cache epoch.

        Projects without any score row are not ranked. A project that fails to
        score or to write is logged, skipped and reported in the summary.

        Returns:
            ``RecalculationSummary`` with the epoch id, counts and ranked rows.

        Raises:
            NotFoundError: If no criterion is active.
        """
        active = self.criteria.get_active()
        if not active:
            raise NotFoundError("No active criteria; nothing to score against.")

        epoch = self.epochs.open_epoch(started_at=utcnow())
        failures: list[ProjectFailure] = []

        project_ids = self.scores.get_scored_project_ids()
        projects = self.projects.get_many(project_ids)

        results: list[CompositeScoreResult] = []
        for project_id in project_ids:
            try:
                result = composite.compute_composite_score(
                    project_id, active, self.scores.get_for_project(project_id)
                )
            except Exception as exc:
                logger.warning("Skipping project %d: scoring failed: %s", project_id, exc)
                failures.append(ProjectFailure(project_id=project_id, error=str(exc)))
                continue
            if result is not None:
                results.append(result)

        calculated_at = utcnow()
        candidates = ranker.rank_projects(
            results,
            projects,
            ranked_criteria=self.ranked_criteria,
            cost_effectiveness_unit=self.cost_effectiveness_unit,
            epoch_id=epoch.epoch_id,
            calculated_at=calculated_at,
        )

        written: list[RankedProject] = []
        for candidate in candidates:
            row = candidate.model_copy(update={"rank": len(written) + 1})
            try:
                with self.cache.savepoint("priority_upsert"):
                    self.cache.upsert(row)
            except (sqlite3.Error, ValueError) as exc:
                logger.warning(
                    "Skipping project %d: cache write failed: %s", row.project_id, exc
                )
                failures.append(ProjectFailure(project_id=row.project_id, error=str(exc)))
                continue
            written.append(row)

        epoch.status = EpochStatus.COMPLETE
        epoch.finished_at = utcnow()
        epoch.projects_processed = len(written)
        epoch.projects_failed = len(failures)
        self.epochs.close_epoch(epoch)

        logger.info(
            "Recalculation epoch %d complete: %d processed, %d failed.",
            epoch.epoch_id,
            epoch.projects_processed,
            epoch.projects_failed,
        )
        return RecalculationSummary(
            epoch_id=epoch.epoch_id,
            processed=len(written),
            failed=len(failures),
            failures=failures,
            ranked=written,
        )

    def get_ranked_projects(
        self,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[RankedProject]:
        """Serve the ranked list from the latest complete epoch. Never recomputes."""
        if limit is not None and limit < 1:
            raise InvalidInputError(f"limit must be >= 1, got {limit}.")
        return self.cache.get_ranked(min_score=min_score, max_score=max_score, limit=limit)

    # ── Criteria model maintenance ─────────────────────────────────────────────

    def normalize_weights(self) -> dict[int, float]:
        """Rescale active weights to sum to 100 and persist them.

        Returns:
            Mapping of ``criterion_id`` → new weight for every active criterion.
        """
        active = self.criteria.get_active()
        normalized = composite.normalize_weights(active)
        weights = {c.criterion_id: c.weight for c in normalized}
        self.criteria.update_weights(weights)
        logger.info("Normalized weights of %d active criteria.", len(weights))
        return weights

    def disable_criterion(
        self, criterion_id: int, reason: Optional[str] = None
    ) -> CriterionChangeResult:
        """Deactivate a criterion, renormalize the rest and recalculate.

        Raises:
            NotFoundError: If the criterion does not exist.
            ModelStateError: If it is already disabled or is the last active one.
        """
        criterion = self._require_criterion(criterion_id)
        if not criterion.is_active:
            raise ModelStateError(f"Criterion {criterion_id} is already disabled.")
        if len(self.criteria.get_active()) <= 1:
            raise ModelStateError(
                f"Cannot disable criterion {criterion_id}: it is the last active criterion."
            )

        impacted = self.scores.count_projects_for_criterion(criterion_id)
        self.criteria.set_status(criterion_id, CriterionStatus.DISABLED)
        self.criteria.insert_audit(
            criterion_id,
            action="disable",
            previous_weight=criterion.weight,
            new_weight=0.0,
            impacted_projects=impacted,
            reason=reason,
        )
        weights = self.normalize_weights()
        self.recalculate_all()

        return CriterionChangeResult(
            criterion_id=criterion_id,
            impacted_projects=impacted,
            normalized_weights=weights,
            message=f"Criterion '{criterion.name}' disabled; {impacted} project(s) rescored.",
        )

    def enable_criterion(
        self, criterion_id: int, reason: Optional[str] = None
    ) -> CriterionChangeResult:
        """Reactivate a disabled criterion, renormalize and recalculate.

        Raises:
            NotFoundError: If the criterion does not exist.
            ModelStateError: If the criterion is not disabled.
        """
        criterion = self._require_criterion(criterion_id)
        if criterion.status != CriterionStatus.DISABLED:
            raise ModelStateError(
                f"Criterion {criterion_id} is '{criterion.status}', not disabled."
            )

        impacted = self.scores.count_projects_for_criterion(criterion_id)
        self.criteria.set_status(criterion_id, CriterionStatus.ACTIVE)
        weights = self.normalize_weights()
        self.criteria.insert_audit(
            criterion_id,
            action="enable",
            previous_weight=criterion.weight,
            new_weight=weights.get(criterion_id),
            impacted_projects=impacted,
            reason=reason,
        )
        self.recalculate_all()

        return CriterionChangeResult(
            criterion_id=criterion_id,
            impacted_projects=impacted,
            normalized_weights=weights,
            message=f"Criterion '{criterion.name}' enabled; {impacted} project(s) rescored.",
        )

    def compare_weighting_scenarios(
        self,
        project_id: int,
        scenarios: Mapping[str, Mapping[str, float]],
    ) -> list[WeightingScenarioResult]:
        """Score a stored project under alternative weightings.

        Raises:
            NotFoundError: If the project does not exist.
            InvalidInputError: If any scenario weight is negative.
        """
        if self.projects.get_by_id(project_id) is None:
            raise NotFoundError(f"Project {project_id} not found.")
        return composite.compare_weighting_scenarios(
            project_id,
            self.criteria.get_all(),
            self.scores.get_for_project(project_id),
            scenarios,
        )

    def _require_criterion(self, criterion_id: int) -> Criterion:
        criterion = self.criteria.get_by_id(criterion_id)
        if criterion is None:
            raise NotFoundError(f"Criterion {criterion_id} not found.")
        return criterion
