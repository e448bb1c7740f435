"""
Repositories for the ranking cache: ``recalculation_epochs`` and
``priority_scores``.

Cache protocol
--------------
1. ``EpochRepository.open_epoch()`` inserts a ``running`` epoch.
2. ``PriorityScoreRepository.upsert()`` writes one row per project, stamped
   with that epoch id.
3. ``EpochRepository.close_epoch()`` marks the epoch ``complete`` (or
   ``failed``).

Readers call ``PriorityScoreRepository.get_ranked()``, which only returns rows
belonging to the latest ``complete`` epoch. Rows from a running or failed
epoch, and stale rows of projects no longer scored, are never served.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from capital_planner.db.repositories.base import BaseRepository
from capital_planner.models.priority import RankedProject, RecalculationEpoch
from capital_planner.taxonomy.planning_taxonomy import EpochStatus

logger = logging.getLogger(__name__)


class EpochRepository(BaseRepository):
    """Read/write access to ``recalculation_epochs``."""

    def open_epoch(self, started_at: datetime) -> RecalculationEpoch:
        """Insert a ``running`` epoch and return it with its id assigned."""
        self.execute(
            """
            INSERT INTO recalculation_epochs (status, started_at)
            VALUES (?, ?);
            """,
            (EpochStatus.RUNNING.value, started_at.isoformat()),
        )
        return RecalculationEpoch(
            epoch_id=self.last_insert_rowid(),
            status=EpochStatus.RUNNING,
            started_at=started_at,
        )

    def close_epoch(self, epoch: RecalculationEpoch) -> None:
        """Persist the final status, counts and ``finished_at`` of an epoch.

        Raises:
            ValueError: If ``epoch.epoch_id`` is ``None``.
        """
        if epoch.epoch_id is None:
            raise ValueError("Cannot close a RecalculationEpoch without an epoch_id.")
        self.execute(
            """
            UPDATE recalculation_epochs SET
                status             = ?,
                finished_at        = ?,
                projects_processed = ?,
                projects_failed    = ?
            WHERE epoch_id = ?;
            """,
            (
                epoch.status.value,
                epoch.finished_at.isoformat() if epoch.finished_at else None,
                epoch.projects_processed,
                epoch.projects_failed,
                epoch.epoch_id,
            ),
        )

    def get_latest_complete(self) -> Optional[RecalculationEpoch]:
        row = self.fetchone(
            """
            SELECT * FROM recalculation_epochs
            WHERE status = ?
            ORDER BY epoch_id DESC LIMIT 1;
            """,
            (EpochStatus.COMPLETE.value,),
        )
        return _row_to_epoch(row) if row else None

    def get_by_id(self, epoch_id: int) -> Optional[RecalculationEpoch]:
        row = self.fetchone(
            "SELECT * FROM recalculation_epochs WHERE epoch_id = ?;", (epoch_id,)
        )
        return _row_to_epoch(row) if row else None


class PriorityScoreRepository(BaseRepository):
    """Read/write access to the ``priority_scores`` cache."""

    def upsert(self, ranked: RankedProject) -> None:
        """Insert or replace the cache row of one project.

        Args:
            ranked: Row to write; ``epoch_id`` and ``calculated_at`` must be set.

        Raises:
            ValueError: If the row carries no epoch stamp.
        """
        if ranked.epoch_id is None or ranked.calculated_at is None:
            raise ValueError(
                f"Cache row for project {ranked.project_id} has no epoch stamp."
            )
        self.execute(
            """
            INSERT INTO priority_scores (
                project_id, epoch_id, composite_score, rank, criterion_scores,
                total_cost, cost_effectiveness_score, calculated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(project_id) DO UPDATE SET
                epoch_id                 = excluded.epoch_id,
                composite_score          = excluded.composite_score,
                rank                     = excluded.rank,
                criterion_scores         = excluded.criterion_scores,
                total_cost               = excluded.total_cost,
                cost_effectiveness_score = excluded.cost_effectiveness_score,
                calculated_at            = excluded.calculated_at;
            """,
            (
                ranked.project_id,
                ranked.epoch_id,
                ranked.composite_score,
                ranked.rank,
                json.dumps(ranked.criterion_scores, sort_keys=True),
                ranked.total_cost,
                ranked.cost_effectiveness_score,
                ranked.calculated_at.isoformat(),
            ),
        )

    def get_ranked(
        self,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[RankedProject]:
        """Return cached rows of the latest complete epoch in rank order.

        Args:
            min_score: Inclusive lower bound on ``composite_score``.
            max_score: Inclusive upper bound on ``composite_score``.
            limit: Maximum rows to return.

        Returns:
            ``RankedProject`` list; empty when no epoch has completed yet.
        """
        sql = """
            SELECT ps.*, p.name AS project_name
            FROM priority_scores ps
            JOIN projects p ON p.project_id = ps.project_id
            WHERE ps.epoch_id = (
                SELECT MAX(epoch_id) FROM recalculation_epochs WHERE status = ?
            )
        """
        params: list[object] = [EpochStatus.COMPLETE.value]
        if min_score is not None:
            sql += " AND ps.composite_score >= ?"
            params.append(min_score)
        if max_score is not None:
            sql += " AND ps.composite_score <= ?"
            params.append(max_score)
        sql += " ORDER BY ps.rank"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = self.fetchall(sql + ";", tuple(params))
        return [_row_to_ranked(r) for r in rows]

    def get_for_project(self, project_id: int) -> Optional[RankedProject]:
        """Cached row of one project, regardless of epoch."""
        row = self.fetchone(
            """
            SELECT ps.*, p.name AS project_name
            FROM priority_scores ps
            JOIN projects p ON p.project_id = ps.project_id
            WHERE ps.project_id = ?;
            """,
            (project_id,),
        )
        return _row_to_ranked(row) if row else None


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_epoch(row: sqlite3.Row) -> RecalculationEpoch:
    return RecalculationEpoch(
        epoch_id=row["epoch_id"],
        status=EpochStatus(row["status"]),
        started_at=datetime.fromisoformat(row["started_at"]),
        finished_at=(
            datetime.fromisoformat(row["finished_at"]) if row["finished_at"] else None
        ),
        projects_processed=row["projects_processed"],
        projects_failed=row["projects_failed"],
    )


def _row_to_ranked(row: sqlite3.Row) -> RankedProject:
    return RankedProject(
        project_id=row["project_id"],
        project_name=row["project_name"],
        composite_score=row["composite_score"],
        rank=row["rank"],
        criterion_scores=json.loads(row["criterion_scores"]),
        total_cost=row["total_cost"],
        cost_effectiveness_score=row["cost_effectiveness_score"],
        epoch_id=row["epoch_id"],
        calculated_at=datetime.fromisoformat(row["calculated_at"]),
    )
