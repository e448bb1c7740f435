"""
Repositories for the prioritization inputs: projects, criteria, scores.

Also owns the ``criteria_audit_log`` table written when a criterion is
enabled or disabled.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from capital_planner.db.repositories.base import BaseRepository
from capital_planner.models.criteria import Criterion, CriterionScore, Project
from capital_planner.taxonomy.planning_taxonomy import CriterionStatus

logger = logging.getLogger(__name__)


class ProjectRepository(BaseRepository):
    """Read/write access to ``projects``."""

    def insert(self, project: Project) -> int:
        """Insert a project and return its ``project_id``."""
        self.execute(
            """
            INSERT INTO projects (name, deferred_maintenance_cost)
            VALUES (?, ?);
            """,
            (project.name, project.deferred_maintenance_cost),
        )
        return self.last_insert_rowid()

    def get_by_id(self, project_id: int) -> Optional[Project]:
        row = self.fetchone("SELECT * FROM projects WHERE project_id = ?;", (project_id,))
        return _row_to_project(row) if row else None

    def get_many(self, project_ids: list[int]) -> dict[int, Project]:
        """Fetch projects by id, keyed by ``project_id``. Unknown ids are omitted."""
        if not project_ids:
            return {}
        placeholders = ", ".join("?" for _ in project_ids)
        rows = self.fetchall(
            f"SELECT * FROM projects WHERE project_id IN ({placeholders});",
            tuple(project_ids),
        )
        return {row["project_id"]: _row_to_project(row) for row in rows}

    def get_all(self) -> list[Project]:
        rows = self.fetchall("SELECT * FROM projects ORDER BY project_id;")
        return [_row_to_project(r) for r in rows]


class CriteriaRepository(BaseRepository):
    """Read/write access to ``criteria`` and ``criteria_audit_log``."""

    def upsert(self, criterion: Criterion) -> int:
        """Insert or update a criterion by name and return its ``criterion_id``.

        Args:
            criterion: The ``Criterion`` to persist.

        Returns:
            The ``criterion_id`` of the inserted or updated row.
        """
        self.execute(
            """
            INSERT INTO criteria (
                name, category, weight, is_active, status, display_order,
                description, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(name) DO UPDATE SET
                category      = excluded.category,
                weight        = excluded.weight,
                is_active     = excluded.is_active,
                status        = excluded.status,
                display_order = excluded.display_order,
                description   = excluded.description,
                updated_at    = excluded.updated_at;
            """,
            (
                criterion.name,
                criterion.category,
                criterion.weight,
                int(criterion.is_active),
                criterion.status.value,
                criterion.display_order,
                criterion.description,
            ),
        )
        row = self.fetchone(
            "SELECT criterion_id FROM criteria WHERE name = ?;", (criterion.name,)
        )
        assert row is not None
        return int(row["criterion_id"])

    def get_by_id(self, criterion_id: int) -> Optional[Criterion]:
        row = self.fetchone(
            "SELECT * FROM criteria WHERE criterion_id = ?;", (criterion_id,)
        )
        return _row_to_criterion(row) if row else None

    def get_all(self) -> list[Criterion]:
        """All criteria, active or not, in display order."""
        rows = self.fetchall(
            "SELECT * FROM criteria ORDER BY display_order, criterion_id;"
        )
        return [_row_to_criterion(r) for r in rows]

    def get_active(self) -> list[Criterion]:
        rows = self.fetchall(
            """
            SELECT * FROM criteria
            WHERE is_active = 1
            ORDER BY display_order, criterion_id;
            """
        )
        return [_row_to_criterion(r) for r in rows]

    def update_weights(self, weights: dict[int, float]) -> None:
        """Overwrite the weights of the given criteria."""
        self.executemany(
            """
            UPDATE criteria
            SET weight = ?, updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
            WHERE criterion_id = ?;
            """,
            [(weight, criterion_id) for criterion_id, weight in weights.items()],
        )

    def set_status(self, criterion_id: int, status: CriterionStatus) -> None:
        """Set lifecycle status; ``is_active`` follows the status."""
        self.execute(
            """
            UPDATE criteria
            SET status = ?, is_active = ?,
                updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
            WHERE criterion_id = ?;
            """,
            (status.value, int(status == CriterionStatus.ACTIVE), criterion_id),
        )

    def insert_audit(
        self,
        criterion_id: int,
        action: str,
        previous_weight: Optional[float],
        new_weight: Optional[float],
        impacted_projects: int,
        reason: Optional[str] = None,
    ) -> int:
        """Append a ``criteria_audit_log`` row and return its ``audit_id``."""
        self.execute(
            """
            INSERT INTO criteria_audit_log (
                criterion_id, action, previous_weight, new_weight,
                impacted_projects, reason
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            (criterion_id, action, previous_weight, new_weight, impacted_projects, reason),
        )
        return self.last_insert_rowid()

    def get_audit_log(self, criterion_id: int) -> list[sqlite3.Row]:
        return self.fetchall(
            """
            SELECT * FROM criteria_audit_log
            WHERE criterion_id = ?
            ORDER BY audit_id;
            """,
            (criterion_id,),
        )


class CriterionScoreRepository(BaseRepository):
    """Read/write access to ``criterion_scores``."""

    def upsert(self, score: CriterionScore) -> None:
        """Insert or replace the score of one (project, criterion) pair."""
        self.execute(
            """
            INSERT INTO criterion_scores (
                project_id, criterion_id, score, justification, updated_at
            ) VALUES (?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(project_id, criterion_id) DO UPDATE SET
                score         = excluded.score,
                justification = excluded.justification,
                updated_at    = excluded.updated_at;
            """,
            (score.project_id, score.criterion_id, score.score, score.justification),
        )

    def get_for_project(self, project_id: int) -> list[CriterionScore]:
        rows = self.fetchall(
            "SELECT * FROM criterion_scores WHERE project_id = ? ORDER BY criterion_id;",
            (project_id,),
        )
        return [_row_to_score(r) for r in rows]

    def get_scored_project_ids(self) -> list[int]:
        """Ids of projects with at least one score row, ascending."""
        rows = self.fetchall(
            "SELECT DISTINCT project_id FROM criterion_scores ORDER BY project_id;"
        )
        return [int(r["project_id"]) for r in rows]

    def count_projects_for_criterion(self, criterion_id: int) -> int:
        """Number of projects holding a score row for the criterion."""
        row = self.fetchone(
            """
            SELECT COUNT(DISTINCT project_id) AS n
            FROM criterion_scores WHERE criterion_id = ?;
            """,
            (criterion_id,),
        )
        return int(row["n"]) if row else 0


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        project_id=row["project_id"],
        name=row["name"],
        deferred_maintenance_cost=row["deferred_maintenance_cost"],
    )


def _row_to_criterion(row: sqlite3.Row) -> Criterion:
    return Criterion(
        criterion_id=row["criterion_id"],
        name=row["name"],
        category=row["category"],
        weight=row["weight"],
        is_active=bool(row["is_active"]),
        status=CriterionStatus(row["status"]),
        display_order=row["display_order"],
        description=row["description"],
    )


def _row_to_score(row: sqlite3.Row) -> CriterionScore:
    return CriterionScore(
        project_id=row["project_id"],
        criterion_id=row["criterion_id"],
        score=row["score"],
        justification=row["justification"],
    )
