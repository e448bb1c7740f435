"""
Repositories for the portfolio time series and forecast outputs.

Both tables are append-only: there are no UPDATE or DELETE methods.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from typing import Optional

from capital_planner.db.repositories.base import BaseRepository
from capital_planner.models.portfolio import ForecastPoint, PortfolioMetricsSnapshot
from capital_planner.taxonomy.planning_taxonomy import ScenarioType

logger = logging.getLogger(__name__)


class SnapshotRepository(BaseRepository):
    """Append/read access to ``portfolio_snapshots``."""

    def insert(self, snapshot: PortfolioMetricsSnapshot) -> int:
        """Append a snapshot and return its ``snapshot_id``."""
        self.execute(
            """
            INSERT INTO portfolio_snapshots (
                snapshot_date, company_id, total_replacement_value,
                total_repair_cost, portfolio_fci, portfolio_ci, total_assets,
                assets_good_condition, assets_fair_condition,
                assets_poor_condition, total_deficiencies,
                critical_deficiencies, high_priority_deficiencies,
                inflation_rate, discount_rate
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                snapshot.snapshot_date.isoformat(),
                snapshot.company_id,
                snapshot.total_replacement_value,
                snapshot.total_repair_cost,
                snapshot.portfolio_fci,
                snapshot.portfolio_ci,
                snapshot.total_assets,
                snapshot.assets_good_condition,
                snapshot.assets_fair_condition,
                snapshot.assets_poor_condition,
                snapshot.total_deficiencies,
                snapshot.critical_deficiencies,
                snapshot.high_priority_deficiencies,
                snapshot.inflation_rate,
                snapshot.discount_rate,
            ),
        )
        return self.last_insert_rowid()

    def get_window(
        self,
        since: Optional[date | datetime] = None,
        company_id: Optional[int] = None,
    ) -> list[PortfolioMetricsSnapshot]:
        """Snapshots on or after ``since``, oldest first.

        Args:
            since: Inclusive lower bound on ``snapshot_date``; all when ``None``.
            company_id: Restrict to one company; all companies when ``None``.

        Returns:
            List of ``PortfolioMetricsSnapshot`` ordered by date ascending.
        """
        sql = "SELECT * FROM portfolio_snapshots WHERE 1 = 1"
        params: list[object] = []
        if since is not None:
            sql += " AND snapshot_date >= ?"
            params.append(since.isoformat())
        if company_id is not None:
            sql += " AND company_id = ?"
            params.append(company_id)
        sql += " ORDER BY snapshot_date, snapshot_id;"
        rows = self.fetchall(sql, tuple(params))
        return [_row_to_snapshot(r) for r in rows]


class ForecastPointRepository(BaseRepository):
    """Append/read access to ``forecast_points``."""

    def insert_many(self, points: list[ForecastPoint]) -> int:
        """Append forecast points and return how many were written."""
        self.executemany(
            """
            INSERT INTO forecast_points (
                run_id, company_id, project_id, asset_id, forecast_date,
                forecast_year, horizon_years, scenario_type,
                predicted_maintenance_cost, predicted_repair_cost,
                predicted_replacement_cost, predicted_capital_requirement,
                predicted_fci, failure_probability, risk_score,
                confidence_level, prediction_model
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    p.run_id,
                    p.company_id,
                    p.project_id,
                    p.asset_id,
                    p.forecast_date.isoformat(),
                    p.forecast_year,
                    p.horizon_years,
                    p.scenario_type.value,
                    p.predicted_maintenance_cost,
                    p.predicted_repair_cost,
                    p.predicted_replacement_cost,
                    p.predicted_capital_requirement,
                    p.predicted_fci,
                    p.failure_probability,
                    p.risk_score,
                    p.confidence_level,
                    p.prediction_model,
                )
                for p in points
            ],
        )
        return len(points)

    def get_for_run(
        self,
        run_id: int,
        scenario_type: Optional[ScenarioType] = None,
    ) -> list[ForecastPoint]:
        """Points written by one run, ordered by scenario then horizon."""
        if scenario_type is not None:
            rows = self.fetchall(
                """
                SELECT * FROM forecast_points
                WHERE run_id = ? AND scenario_type = ?
                ORDER BY horizon_years;
                """,
                (run_id, scenario_type.value),
            )
        else:
            rows = self.fetchall(
                """
                SELECT * FROM forecast_points
                WHERE run_id = ?
                ORDER BY scenario_type, horizon_years;
                """,
                (run_id,),
            )
        return [_row_to_point(r) for r in rows]


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_snapshot(row: sqlite3.Row) -> PortfolioMetricsSnapshot:
    return PortfolioMetricsSnapshot(
        snapshot_id=row["snapshot_id"],
        snapshot_date=datetime.fromisoformat(row["snapshot_date"]),
        company_id=row["company_id"],
        total_replacement_value=row["total_replacement_value"],
        total_repair_cost=row["total_repair_cost"],
        portfolio_fci=row["portfolio_fci"],
        portfolio_ci=row["portfolio_ci"],
        total_assets=row["total_assets"],
        assets_good_condition=row["assets_good_condition"],
        assets_fair_condition=row["assets_fair_condition"],
        assets_poor_condition=row["assets_poor_condition"],
        total_deficiencies=row["total_deficiencies"],
        critical_deficiencies=row["critical_deficiencies"],
        high_priority_deficiencies=row["high_priority_deficiencies"],
        inflation_rate=row["inflation_rate"],
        discount_rate=row["discount_rate"],
    )


def _row_to_point(row: sqlite3.Row) -> ForecastPoint:
    return ForecastPoint(
        forecast_id=row["forecast_id"],
        run_id=row["run_id"],
        company_id=row["company_id"],
        project_id=row["project_id"],
        asset_id=row["asset_id"],
        forecast_date=datetime.fromisoformat(row["forecast_date"]),
        forecast_year=row["forecast_year"],
        horizon_years=row["horizon_years"],
        scenario_type=ScenarioType(row["scenario_type"]),
        predicted_maintenance_cost=row["predicted_maintenance_cost"],
        predicted_repair_cost=row["predicted_repair_cost"],
        predicted_replacement_cost=row["predicted_replacement_cost"],
        predicted_capital_requirement=row["predicted_capital_requirement"],
        predicted_fci=row["predicted_fci"],
        failure_probability=row["failure_probability"],
        risk_score=row["risk_score"],
        confidence_level=row["confidence_level"],
        prediction_model=row["prediction_model"],
    )
