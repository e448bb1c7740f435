"""
Portfolio time series and forecast outputs.

``PortfolioMetricsSnapshot`` rows are append-only: once captured they are never
mutated, and the forecasting engine reads a window of them.

``ForecastPoint`` is one year of one scenario. Forecast runs append new rows;
earlier runs are never overwritten.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from capital_planner.taxonomy.planning_taxonomy import ScenarioType, TargetStatus


class PortfolioMetricsSnapshot(BaseModel):
    """Point-in-time condition and cost totals of a portfolio.

    Attributes:
        snapshot_id: Auto-assigned DB PK; ``None`` before insertion.
        snapshot_date: When the snapshot was captured (UTC).
        company_id: Owning company, or ``None`` for the whole portfolio.
        total_replacement_value: Current replacement value of all assets.
        total_repair_cost: Deferred repair cost of all assets.
        portfolio_fci: ``repair / replacement × 100`` (0 when replacement is 0).
        portfolio_ci: Optional condition index (higher is better).
        total_assets: Asset count.
        assets_good_condition: Assets assessed ``good``.
        assets_fair_condition: Assets assessed ``fair``.
        assets_poor_condition: Assets assessed ``poor``.
        total_deficiencies: Open deficiency count.
        critical_deficiencies: Deficiencies with critical severity.
        high_priority_deficiencies: Immediate or short-term deficiencies.
        inflation_rate: Construction inflation in percent, when known.
        discount_rate: Recommended discount rate in percent, when known.
    """

    model_config = ConfigDict(frozen=True)

    snapshot_id: Optional[int] = None
    snapshot_date: datetime
    company_id: Optional[int] = None
    total_replacement_value: float = 0.0
    total_repair_cost: float = 0.0
    portfolio_fci: float = 0.0
    portfolio_ci: Optional[float] = None
    total_assets: int = 0
    assets_good_condition: int = 0
    assets_fair_condition: int = 0
    assets_poor_condition: int = 0
    total_deficiencies: int = 0
    critical_deficiencies: int = 0
    high_priority_deficiencies: int = 0
    inflation_rate: Optional[float] = None
    discount_rate: Optional[float] = None

    @field_validator("total_replacement_value", "total_repair_cost", "portfolio_fci")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"snapshot amounts must be >= 0, got {v}.")
        return v


class ForecastPoint(BaseModel):
    """One forecast year for one scenario.

    Attributes:
        forecast_id: Auto-assigned DB PK; ``None`` before insertion.
        run_id: FK to ``run_metadata`` when produced by a pipeline run.
        forecast_date: When the forecast was generated.
        forecast_year: Calendar year being forecast.
        horizon_years: Years ahead of the base year (1..N).
        scenario_type: Scenario variant.
        predicted_maintenance_cost: Baseline repair cost × growth factor.
        predicted_repair_cost: 60% of the maintenance cost.
        predicted_replacement_cost: 150% of the maintenance cost.
        predicted_capital_requirement: 120% of the maintenance cost.
        predicted_fci: Latest FCI × growth factor.
        failure_probability: Percentage in [0, 100].
        risk_score: ``failure_probability × predicted_maintenance_cost / 1000``.
        confidence_level: Percentage in [0, 100], non-increasing with horizon.
        prediction_model: Label of the projection method.
    """

    model_config = ConfigDict(frozen=True)

    forecast_id: Optional[int] = None
    run_id: Optional[int] = None
    company_id: Optional[int] = None
    project_id: Optional[int] = None
    asset_id: Optional[int] = None
    forecast_date: datetime
    forecast_year: int
    horizon_years: int
    scenario_type: ScenarioType
    predicted_maintenance_cost: float
    predicted_repair_cost: float
    predicted_replacement_cost: float
    predicted_capital_requirement: float
    predicted_fci: float
    failure_probability: float
    risk_score: float
    confidence_level: float
    prediction_model: str = "Linear Regression with Inflation"

    @model_validator(mode="after")
    def validate_bounds(self) -> "ForecastPoint":
        if self.horizon_years < 1:
            raise ValueError(f"horizon_years must be >= 1, got {self.horizon_years}.")
        if not 0.0 <= self.confidence_level <= 100.0:
            raise ValueError(
                f"confidence_level must be in [0, 100], got {self.confidence_level}."
            )
        if not 0.0 <= self.failure_probability <= 100.0:
            raise ValueError(
                f"failure_probability must be in [0, 100], got {self.failure_probability}."
            )
        return self


class TargetProgress(BaseModel):
    """Progress of a portfolio metric from its baseline toward a target."""

    model_config = ConfigDict(frozen=True)

    current_value: float
    baseline_value: float
    target_value: float
    progress_percentage: float
    status: TargetStatus


class BenchmarkComparison(BaseModel):
    """Portfolio FCI/CI compared against benchmark medians."""

    model_config = ConfigDict(frozen=True)

    fci_difference: float
    fci_percentile: str
    ci_difference: float
    ci_percentile: str
