"""
RecalculateScoresStage — rebuild the priority-score cache.

Flow
----
1. Optionally normalize active criterion weights to sum to 100.
2. Run ``RankingCoordinator.recalculate_all()`` inside one connection, so the
   new epoch is committed as a whole or not at all.

Returns the number of projects written to the cache. Per-project failures are
logged by the coordinator and recorded in ``run.error_message`` without
failing the run.
"""

from __future__ import annotations

import logging

from capital_planner.models.meta import RunMetadata
from capital_planner.models.priority import RecalculationSummary
from capital_planner.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class RecalculateScoresStage(PipelineStage):
    """Score, rank and cache every scoreable project."""

    stage_name = "recalculate_scores"

    last_summary: RecalculationSummary | None = None

    def _execute(self, run: RunMetadata, normalize: bool = False, **kwargs) -> int:
        """Recalculate the cache.

        Args:
            run:       In-progress RunMetadata (mutable).
            normalize: Normalize active weights before scoring.

        Returns:
            Number of projects written in the new epoch.
        """
        from capital_planner.db.connection import get_connection
        from capital_planner.scoring.coordinator import RankingCoordinator

        db = self.config.database
        with get_connection(
            self.db_path, wal_mode=db.wal_mode, busy_timeout_ms=db.busy_timeout_ms
        ) as conn:
            coordinator = RankingCoordinator(
                conn,
                ranked_criteria=self.config.scoring.ranked_criteria,
                cost_effectiveness_unit=self.config.scoring.cost_effectiveness_unit,
            )
            if normalize:
                coordinator.normalize_weights()
            summary = coordinator.recalculate_all()

        self.last_summary = summary
        if summary.failed:
            run.error_message = (
                f"{summary.failed} project(s) skipped: "
                + ", ".join(str(f.project_id) for f in summary.failures)
            )
        return summary.processed
