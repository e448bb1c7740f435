"""
Multi-year, multi-scenario liability forecaster.

For each horizon year ``y`` in 1..N, with ``m`` the scenario multiplier:

    growth              = (1 + inflation)^y × (1 + deterioration)^y × m
    maintenance cost    = latest repair cost × growth
    predicted FCI       = latest FCI × growth
    failure probability = min(100, latest FCI × (1 + 0.1·y) × m)
    risk score          = failure probability × maintenance cost / 1000
    confidence          = clamp(100 − step·y, 0, 100)

Repair, replacement and capital requirement are fixed shares (0.6, 1.5, 1.2)
of the maintenance cost.

Inflation comes from, in order: the ``inflation_rate_pct`` argument, the
latest snapshot's ``inflation_rate``, then ``DEFAULT_INFLATION_PCT``.

The forecaster is pure: it returns points and never writes them. Persistence
is the job of ``pipeline.forecast.ForecastStage``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Optional

from capital_planner.exceptions import InvalidInputError
from capital_planner.forecasting.trend import deterioration_rate, ordered_window
from capital_planner.models.portfolio import ForecastPoint, PortfolioMetricsSnapshot
from capital_planner.taxonomy.planning_taxonomy import ScenarioType
from capital_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_INFLATION_PCT = 2.5
DEFAULT_CONFIDENCE_STEP = 10.0
FAILURE_GROWTH_PER_YEAR = 0.1
RISK_COST_UNIT = 1000.0

REPAIR_SHARE = 0.6
REPLACEMENT_SHARE = 1.5
CAPITAL_REQUIREMENT_SHARE = 1.2

PREDICTION_MODEL = "Linear Regression with Inflation"

DEFAULT_SCENARIO_MULTIPLIERS: dict[ScenarioType, float] = {
    ScenarioType.BEST_CASE: 0.7,
    ScenarioType.MOST_LIKELY: 1.0,
    ScenarioType.WORST_CASE: 1.3,
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def resolve_inflation_pct(
    latest: PortfolioMetricsSnapshot,
    inflation_rate_pct: Optional[float] = None,
    default_pct: float = DEFAULT_INFLATION_PCT,
) -> float:
    if inflation_rate_pct is not None:
        return inflation_rate_pct
    if latest.inflation_rate is not None:
        return latest.inflation_rate
    return default_pct


def forecast(
    snapshots: Sequence[PortfolioMetricsSnapshot],
    forecast_years: int,
    scenario_type: ScenarioType = ScenarioType.MOST_LIKELY,
    inflation_rate_pct: Optional[float] = None,
    default_inflation_pct: float = DEFAULT_INFLATION_PCT,
    base_year: Optional[int] = None,
    scenario_multipliers: Optional[Mapping[str, float]] = None,
    confidence_step: float = DEFAULT_CONFIDENCE_STEP,
    forecast_date: Optional[datetime] = None,
    company_id: Optional[int] = None,
    project_id: Optional[int] = None,
    asset_id: Optional[int] = None,
    run_id: Optional[int] = None,
) -> list[ForecastPoint]:
    """Project portfolio liabilities ``forecast_years`` into the future.

    Args:
        snapshots:            Historical window (any order, at least two).
        forecast_years:       Number of yearly points to produce (>= 1).
        scenario_type:        Scenario variant selecting the multiplier.
        inflation_rate_pct:   Overrides the inflation taken from the snapshots.
        default_inflation_pct: Used when neither the argument nor the latest
                              snapshot supplies an inflation rate.
        base_year:            Year the horizon counts from. Defaults to the
                              year of ``forecast_date``.
        scenario_multipliers: Scenario → multiplier. Defaults to 0.7/1.0/1.3.
        confidence_step:      Confidence lost per horizon year.
        forecast_date:        Generation timestamp. Defaults to now (UTC).

    Returns:
        One ``ForecastPoint`` per year, ordered by horizon.

    Raises:
        NotFoundError: Fewer than two snapshots.
        InvalidInputError: ``forecast_years`` < 1, an unknown scenario, or a
            non-positive scenario multiplier.
    """
    if forecast_years < 1:
        raise InvalidInputError(f"forecast_years must be >= 1, got {forecast_years}.")

    scenario = ScenarioType(scenario_type)
    multipliers = (
        DEFAULT_SCENARIO_MULTIPLIERS if scenario_multipliers is None else scenario_multipliers
    )
    if scenario not in multipliers:
        raise InvalidInputError(f"No multiplier configured for scenario '{scenario}'.")
    multiplier = multipliers[scenario]
    if not multiplier > 0:
        raise InvalidInputError(
            f"Multiplier for scenario '{scenario}' must be > 0, got {multiplier}."
        )

    window = ordered_window(snapshots)
    latest = window[-1]
    deterioration = deterioration_rate(window)
    inflation = resolve_inflation_pct(latest, inflation_rate_pct, default_inflation_pct) / 100.0

    generated_at = forecast_date or utcnow()
    start_year = generated_at.year if base_year is None else base_year

    logger.debug(
        "Forecasting %d year(s) [%s]: inflation=%.4f deterioration=%.4f multiplier=%.2f",
        forecast_years, scenario, inflation, deterioration, multiplier,
    )

    points: list[ForecastPoint] = []
    for year in range(1, forecast_years + 1):
        growth = (1.0 + inflation) ** year * (1.0 + deterioration) ** year * multiplier
        cost = latest.total_repair_cost * growth
        failure = min(
            100.0,
            latest.portfolio_fci * (1.0 + year * FAILURE_GROWTH_PER_YEAR) * multiplier,
        )
        points.append(
            ForecastPoint(
                run_id=run_id,
                company_id=company_id,
                project_id=project_id,
                asset_id=asset_id,
                forecast_date=generated_at,
                forecast_year=start_year + year,
                horizon_years=year,
                scenario_type=scenario,
                predicted_maintenance_cost=cost,
                predicted_repair_cost=cost * REPAIR_SHARE,
                predicted_replacement_cost=cost * REPLACEMENT_SHARE,
                predicted_capital_requirement=cost * CAPITAL_REQUIREMENT_SHARE,
                predicted_fci=latest.portfolio_fci * growth,
                failure_probability=failure,
                risk_score=failure * cost / RISK_COST_UNIT,
                confidence_level=_clamp(100.0 - year * confidence_step, 0.0, 100.0),
                prediction_model=PREDICTION_MODEL,
            )
        )
    return points


def forecast_all_scenarios(
    snapshots: Sequence[PortfolioMetricsSnapshot],
    forecast_years: int,
    **kwargs,
) -> dict[ScenarioType, list[ForecastPoint]]:
    """Run ``forecast()`` for every scenario with shared arguments."""
    generated_at = kwargs.pop("forecast_date", None) or utcnow()
    return {
        scenario: forecast(
            snapshots,
            forecast_years,
            scenario_type=scenario,
            forecast_date=generated_at,
            **kwargs,
        )
        for scenario in ScenarioType
    }
