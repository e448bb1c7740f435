"""
ForecastStage — generate and persist liability forecasts.

Flow
----
1. Load the snapshot window (``forecast.lookback_months``) from
   ``portfolio_snapshots``.
2. Run the forecaster for the requested scenario, or for all three.
3. Append the points to ``forecast_points`` stamped with ``run.run_id``.

Returns the number of forecast points written.
"""

from __future__ import annotations

import logging
from typing import Optional

from capital_planner.models.meta import RunMetadata
from capital_planner.pipeline.base import PipelineStage
from capital_planner.taxonomy.planning_taxonomy import ScenarioType

logger = logging.getLogger(__name__)


class ForecastStage(PipelineStage):
    """Forecast portfolio liabilities from historical snapshots."""

    stage_name = "forecast"

    def _execute(
        self,
        run: RunMetadata,
        forecast_years: Optional[int] = None,
        scenario_type: Optional[ScenarioType] = None,
        company_id: Optional[int] = None,
        inflation_rate_pct: Optional[float] = None,
        **kwargs,
    ) -> int:
        """Forecast and persist.

        Args:
            run:                In-progress RunMetadata (mutable).
            forecast_years:     Horizon; defaults to ``forecast.default_years``.
            scenario_type:      Single scenario; all scenarios when ``None``.
            company_id:         Restrict the snapshot window to one company.
            inflation_rate_pct: Override the snapshot inflation rate.

        Returns:
            Number of ``ForecastPoint`` rows written.
        """
        from capital_planner.db.connection import get_connection
        from capital_planner.db.repositories.portfolio_repo import (
            ForecastPointRepository,
            SnapshotRepository,
        )
        from capital_planner.forecasting.forecaster import forecast
        from capital_planner.utils.time_utils import months_ago, utcnow

        cfg = self.config.forecast
        years = forecast_years or cfg.default_years
        scenarios = list(ScenarioType) if scenario_type is None else [ScenarioType(scenario_type)]

        now = utcnow()
        since = months_ago(now.date(), cfg.lookback_months)

        db = self.config.database
        with get_connection(
            self.db_path, wal_mode=db.wal_mode, busy_timeout_ms=db.busy_timeout_ms
        ) as conn:
            snapshots = SnapshotRepository(conn).get_window(
                since=since, company_id=company_id
            )
            logger.info(
                "Forecasting from %d snapshot(s) since %s (%d scenario(s), %d year(s)).",
                len(snapshots), since, len(scenarios), years,
            )

            points = []
            for scenario in scenarios:
                points.extend(
                    forecast(
                        snapshots,
                        years,
                        scenario_type=scenario,
                        inflation_rate_pct=inflation_rate_pct,
                        default_inflation_pct=cfg.default_inflation_pct,
                        scenario_multipliers=cfg.scenario_multipliers,
                        confidence_step=cfg.confidence_step,
                        forecast_date=now,
                        company_id=company_id,
                        run_id=run.run_id,
                    )
                )
            written = ForecastPointRepository(conn).insert_many(points)

        return written
