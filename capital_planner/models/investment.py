"""
Single-investment analysis inputs and outputs.

``InvestmentAnalysisInput`` carries the raw facts of one proposed investment.
``InvestmentAnalysisResult`` is immutable; a new analysis produces a new,
independent result.

Nullable outcomes are explicit:
  - ``irr`` is ``None`` when the root finder does not converge or is not
    attempted (non-positive annual cash flow).
  - ``payback_period`` is ``math.inf`` when annual cash flow is <= 0.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from capital_planner.taxonomy.planning_taxonomy import AnalysisType, Recommendation


class InvestmentAnalysisInput(BaseModel):
    """Facts describing one candidate investment.

    All rates are percentages (``5.0`` means 5%).

    Attributes:
        project_id: Optional FK of the project under analysis.
        asset_id: Optional FK of the asset under analysis.
        analysis_type: Label recorded with the result.
        initial_investment: Up-front outflow at year 0.
        annual_operating_cost: Recurring operating cost (outflow).
        annual_maintenance_cost: Recurring maintenance cost (outflow).
        annual_energy_savings: Recurring energy savings (inflow).
        annual_cost_avoidance: Recurring avoided cost (inflow).
        discount_rate: Discount rate for NPV, in percent.
        analysis_horizon_years: Number of annual cash flows.
        inflation_rate: Annual escalation applied to each cash flow, in percent.
    """

    model_config = ConfigDict(frozen=True)

    project_id: Optional[int] = None
    asset_id: Optional[int] = None
    analysis_type: AnalysisType = AnalysisType.NPV
    initial_investment: float
    annual_operating_cost: float = 0.0
    annual_maintenance_cost: float = 0.0
    annual_energy_savings: float = 0.0
    annual_cost_avoidance: float = 0.0
    discount_rate: float
    analysis_horizon_years: int
    inflation_rate: float = 0.0

    @field_validator(
        "initial_investment",
        "annual_operating_cost",
        "annual_maintenance_cost",
        "annual_energy_savings",
        "annual_cost_avoidance",
    )
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"amounts must be finite and >= 0, got {v}.")
        return v

    @field_validator("discount_rate", "inflation_rate")
    @classmethod
    def validate_rate(cls, v: float) -> float:
        if not math.isfinite(v) or v <= -100.0:
            raise ValueError(f"rates must be finite and > -100%, got {v}.")
        return v

    @field_validator("analysis_horizon_years")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"analysis_horizon_years must be >= 1, got {v}.")
        return v

    @property
    def annual_net_cash_flow(self) -> float:
        """Savings plus avoided cost, minus operating and maintenance cost."""
        return (
            self.annual_energy_savings
            + self.annual_cost_avoidance
            - self.annual_operating_cost
            - self.annual_maintenance_cost
        )


class InvestmentAnalysisResult(BaseModel):
    """Financial metrics of one investment.

    Values are unrounded; call ``presentation()`` for display rounding.

    Attributes:
        analysis_id: Auto-assigned DB PK when persisted; ``None`` otherwise.
        npv: Net present value.
        irr: Internal rate of return in percent, or ``None``.
        roi: Return on investment in percent.
        payback_period: Years to recover the investment, ``math.inf`` if never.
        benefit_cost_ratio: Total benefit divided by initial investment.
        recommendation: Decision band.
        analyzed_at: When the analysis ran.
    """

    model_config = ConfigDict(frozen=True)

    analysis_id: Optional[int] = None
    npv: float
    irr: Optional[float] = None
    roi: float
    payback_period: float
    benefit_cost_ratio: float
    recommendation: Recommendation
    analyzed_at: Optional[datetime] = None

    @property
    def has_payback(self) -> bool:
        return math.isfinite(self.payback_period)

    def presentation(self, digits: int = 2) -> dict[str, Any]:
        """Return the result rounded for display.

        An infinite payback period becomes ``None``.
        """
        return {
            "npv": round(self.npv, digits),
            "irr": round(self.irr, digits) if self.irr is not None else None,
            "roi": round(self.roi, digits),
            "payback_period": (
                round(self.payback_period, digits) if self.has_payback else None
            ),
            "benefit_cost_ratio": round(self.benefit_cost_ratio, digits),
            "recommendation": self.recommendation.value,
        }


class TotalCostOfOwnership(BaseModel):
    """Lifecycle cost estimate for one asset."""

    model_config = ConfigDict(frozen=True)

    analysis_horizon_years: int
    acquisition_cost: float
    annual_maintenance: float
    total_maintenance_cost: float
    total_repair_cost: float
    total_cost_of_ownership: float
    annualized_cost: float
