"""
Investment analysis: cash-flow construction, metrics and recommendation.

``analyze()`` works on an explicit cash-flow series. ``create_investment_analysis()``
starts from the raw facts of an ``InvestmentAnalysisInput``: it derives the
annual net cash flow (savings + avoided cost − operating − maintenance),
escalates each year by the inflation rate, then calls ``analyze()``.

Recommendation bands, evaluated in order:

    NPV > 0 and ROI > 15 and payback < 5   → proceed
    NPV > 0 and ROI > 5                    → requires_review
    NPV < 0 or  ROI < 0                    → reject
    otherwise                              → defer
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from capital_planner.exceptions import InvalidInputError
from capital_planner.investment import metrics
from capital_planner.models.investment import (
    InvestmentAnalysisInput,
    InvestmentAnalysisResult,
)
from capital_planner.taxonomy.planning_taxonomy import Recommendation
from capital_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

PROCEED_MIN_ROI = 15.0
PROCEED_MAX_PAYBACK = 5.0
REVIEW_MIN_ROI = 5.0


def build_cash_flows(
    annual_net_cash_flow: float,
    analysis_horizon_years: int,
    inflation_rate: float = 0.0,
) -> list[float]:
    """Escalate a constant annual cash flow over the horizon.

    Year ``y`` (1-based) is ``annual_net_cash_flow × (1 + inflation/100)^y``.

    Raises:
        InvalidInputError: If the horizon is < 1.
    """
    if analysis_horizon_years < 1:
        raise InvalidInputError(
            f"analysis_horizon_years must be >= 1, got {analysis_horizon_years}."
        )
    growth = 1.0 + inflation_rate / 100.0
    return [annual_net_cash_flow * growth**year for year in range(1, analysis_horizon_years + 1)]


def determine_recommendation(
    npv: float,
    roi: float,
    payback_period: float,
    proceed_min_roi: float = PROCEED_MIN_ROI,
    proceed_max_payback: float = PROCEED_MAX_PAYBACK,
    review_min_roi: float = REVIEW_MIN_ROI,
) -> Recommendation:
    if npv > 0 and roi > proceed_min_roi and payback_period < proceed_max_payback:
        return Recommendation.PROCEED
    if npv > 0 and roi > review_min_roi:
        return Recommendation.REQUIRES_REVIEW
    if npv < 0 or roi < 0:
        return Recommendation.REJECT
    return Recommendation.DEFER


def analyze(
    initial_investment: float,
    cash_flows: Sequence[float],
    discount_rate: float,
    analysis_horizon_years: Optional[int] = None,
    annual_cash_flow: Optional[float] = None,
    irr_initial_guess: float = metrics.IRR_INITIAL_GUESS,
    irr_max_iterations: int = metrics.IRR_MAX_ITERATIONS,
    irr_tolerance: float = metrics.IRR_TOLERANCE,
    proceed_min_roi: float = PROCEED_MIN_ROI,
    proceed_max_payback: float = PROCEED_MAX_PAYBACK,
    review_min_roi: float = REVIEW_MIN_ROI,
    analyzed_at: Optional[datetime] = None,
) -> InvestmentAnalysisResult:
    """Compute every metric of one investment and classify it.

    Args:
        initial_investment:     Year-0 outflow.
        cash_flows:             Net inflows for years 1..N.
        discount_rate:          Discount rate in percent.
        analysis_horizon_years: Optional N; must equal ``len(cash_flows)``.
        annual_cash_flow:       Un-escalated annual flow used for payback and
                                the IRR gate. Defaults to the first cash flow.

    Returns:
        Unrounded ``InvestmentAnalysisResult``.

    Raises:
        InvalidInputError: Empty series, negative investment, or a horizon
            that disagrees with the series length.
    """
    if len(cash_flows) == 0:
        raise InvalidInputError("cash flow series must not be empty.")
    if initial_investment < 0:
        raise InvalidInputError(
            f"initial_investment must be >= 0, got {initial_investment}."
        )
    if analysis_horizon_years is not None and analysis_horizon_years != len(cash_flows):
        raise InvalidInputError(
            f"analysis_horizon_years={analysis_horizon_years} but "
            f"{len(cash_flows)} cash flows were supplied."
        )

    annual = cash_flows[0] if annual_cash_flow is None else annual_cash_flow
    total_benefit = sum(cash_flows)

    npv = metrics.npv(initial_investment, cash_flows, discount_rate)
    roi = metrics.roi(total_benefit, initial_investment)
    payback = metrics.payback_period(initial_investment, annual)
    irr = (
        metrics.irr(
            initial_investment,
            cash_flows,
            initial_guess=irr_initial_guess,
            max_iterations=irr_max_iterations,
            tolerance=irr_tolerance,
        )
        if annual > 0
        else None
    )
    bcr = metrics.benefit_cost_ratio(total_benefit, initial_investment)

    recommendation = determine_recommendation(
        npv,
        roi,
        payback,
        proceed_min_roi=proceed_min_roi,
        proceed_max_payback=proceed_max_payback,
        review_min_roi=review_min_roi,
    )
    logger.debug(
        "Investment analysis: npv=%.2f roi=%.2f payback=%s irr=%s -> %s",
        npv, roi, payback, irr, recommendation,
    )

    return InvestmentAnalysisResult(
        npv=npv,
        irr=irr,
        roi=roi,
        payback_period=payback,
        benefit_cost_ratio=bcr,
        recommendation=recommendation,
        analyzed_at=analyzed_at or utcnow(),
    )


def create_investment_analysis(
    params: InvestmentAnalysisInput, **thresholds: float
) -> InvestmentAnalysisResult:
    """Analyze an investment described by its raw annual amounts.

    Keyword arguments are forwarded to ``analyze()`` (IRR solver bounds and
    recommendation thresholds).
    """
    annual = params.annual_net_cash_flow
    cash_flows = build_cash_flows(
        annual, params.analysis_horizon_years, params.inflation_rate
    )
    return analyze(
        params.initial_investment,
        cash_flows,
        params.discount_rate,
        analysis_horizon_years=params.analysis_horizon_years,
        annual_cash_flow=annual,
        **thresholds,
    )
