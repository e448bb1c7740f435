"""
Repository for persisted investment analyses.

Each analysis is an independent, immutable row: there is no update or merge.
An infinite payback period is stored as NULL and read back as ``math.inf``.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from datetime import datetime

from capital_planner.db.repositories.base import BaseRepository
from capital_planner.models.investment import (
    InvestmentAnalysisInput,
    InvestmentAnalysisResult,
)
from capital_planner.taxonomy.planning_taxonomy import Recommendation

logger = logging.getLogger(__name__)


class InvestmentAnalysisRepository(BaseRepository):
    """Append/read access to ``investment_analyses``."""

    def insert(
        self,
        params: InvestmentAnalysisInput,
        result: InvestmentAnalysisResult,
    ) -> int:
        """Persist one analysis and return its ``analysis_id``.

        Args:
            params: The inputs the analysis was computed from.
            result: The computed metrics.

        Returns:
            The newly assigned ``analysis_id``.
        """
        self.execute(
            """
            INSERT INTO investment_analyses (
                project_id, asset_id, analysis_type, initial_investment,
                annual_operating_cost, annual_maintenance_cost,
                annual_energy_savings, annual_cost_avoidance,
                discount_rate, analysis_horizon_years, inflation_rate,
                net_present_value, internal_rate_of_return, return_on_investment,
                payback_period_years, benefit_cost_ratio, recommendation,
                analyzed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                params.project_id,
                params.asset_id,
                params.analysis_type.value,
                params.initial_investment,
                params.annual_operating_cost,
                params.annual_maintenance_cost,
                params.annual_energy_savings,
                params.annual_cost_avoidance,
                params.discount_rate,
                params.analysis_horizon_years,
                params.inflation_rate,
                result.npv,
                result.irr,
                result.roi,
                result.payback_period if result.has_payback else None,
                result.benefit_cost_ratio,
                result.recommendation.value,
                result.analyzed_at.isoformat() if result.analyzed_at else None,
            ),
        )
        return self.last_insert_rowid()

    def get_for_project(self, project_id: int) -> list[InvestmentAnalysisResult]:
        """All analyses of a project, newest first."""
        rows = self.fetchall(
            """
            SELECT * FROM investment_analyses
            WHERE project_id = ?
            ORDER BY analysis_id DESC;
            """,
            (project_id,),
        )
        return [_row_to_result(r) for r in rows]


def _row_to_result(row: sqlite3.Row) -> InvestmentAnalysisResult:
    payback = row["payback_period_years"]
    return InvestmentAnalysisResult(
        analysis_id=row["analysis_id"],
        npv=row["net_present_value"],
        irr=row["internal_rate_of_return"],
        roi=row["return_on_investment"],
        payback_period=payback if payback is not None else math.inf,
        benefit_cost_ratio=row["benefit_cost_ratio"],
        recommendation=Recommendation(row["recommendation"]),
        analyzed_at=datetime.fromisoformat(row["analyzed_at"]),
    )
