"""
Time-value-of-money metrics.

Conventions
-----------
Rates are percentages at the call boundary (``5.0`` means 5%) and are divided
by 100 inside the formulas. Cash flows are end-of-year amounts: flow ``t``
(0-based) is discounted by ``(1 + r)^(t + 1)``. Nothing is rounded here;
rounding belongs to the presentation layer.

NPV
  ``Σ cf[t] / (1 + r/100)^(t+1) − initial_investment``.

IRR
  Newton–Raphson on the NPV function, starting at a 10% guess and bounded to
  ``max_iterations`` steps. The solver gives up and returns ``None`` when the
  derivative is exactly zero, an iterate stops being finite or drops to
  -100% or below, or the iteration cap is reached. A missing IRR is a valid
  financial outcome, not an error.

Payback
  ``initial_investment / annual_cash_flow``; ``math.inf`` when the annual
  cash flow is zero or negative (the investment is never recovered).

ROI
  ``(total_benefit − total_cost) / total_cost × 100``; 0 when cost is 0.

Benefit-cost ratio
  ``total_benefit / initial_investment``; 0 when the investment is 0.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Optional

from capital_planner.exceptions import InvalidInputError
from capital_planner.models.investment import TotalCostOfOwnership

logger = logging.getLogger(__name__)

IRR_INITIAL_GUESS = 0.10
IRR_MAX_ITERATIONS = 100
IRR_TOLERANCE = 1e-4

DEFAULT_MAINTENANCE_RATE = 0.03
DEFAULT_REPAIR_PROJECTION_FACTOR = 1.5


def _require_flows(cash_flows: Sequence[float]) -> None:
    if len(cash_flows) == 0:
        raise InvalidInputError("cash flow series must not be empty.")
    if not all(math.isfinite(cf) for cf in cash_flows):
        raise InvalidInputError("cash flows must be finite numbers.")


def npv(initial_investment: float, cash_flows: Sequence[float], discount_rate: float) -> float:
    """Net present value of an investment.

    Args:
        initial_investment: Year-0 outflow (positive number).
        cash_flows:         Annual net inflows for years 1..N.
        discount_rate:      Discount rate in percent.

    Returns:
        NPV in the currency of the inputs.

    Raises:
        InvalidInputError: If ``cash_flows`` is empty or the rate is <= -100%.
    """
    _require_flows(cash_flows)
    if discount_rate <= -100.0:
        raise InvalidInputError(f"discount_rate must be > -100%, got {discount_rate}.")

    base = 1.0 + discount_rate / 100.0
    present = sum(cf / base ** (t + 1) for t, cf in enumerate(cash_flows))
    return present - initial_investment


def irr(
    initial_investment: float,
    cash_flows: Sequence[float],
    initial_guess: float = IRR_INITIAL_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: float = IRR_TOLERANCE,
) -> Optional[float]:
    """Internal rate of return by bounded Newton–Raphson.

    Args:
        initial_investment: Year-0 outflow.
        cash_flows:         Annual net inflows for years 1..N.
        initial_guess:      Starting rate as a fraction (0.10 = 10%).
        max_iterations:     Hard cap on solver steps.
        tolerance:          Stop when ``|NPV(rate)|`` falls below this.

    Returns:
        IRR in percent, or ``None`` when the solver does not converge.

    Raises:
        InvalidInputError: If ``cash_flows`` is empty.
    """
    _require_flows(cash_flows)

    rate = initial_guess
    for iteration in range(max_iterations):
        try:
            value = -initial_investment
            derivative = 0.0
            for year, cf in enumerate(cash_flows):
                t = year + 1
                value += cf / (1.0 + rate) ** t
                derivative -= t * cf / (1.0 + rate) ** (t + 1)
        except (OverflowError, ZeroDivisionError):
            logger.debug("IRR overflow at iteration %d (rate=%r).", iteration, rate)
            return None

        if abs(value) < tolerance:
            return rate * 100.0

        if derivative == 0.0:
            logger.debug("IRR derivative is zero at iteration %d.", iteration)
            return None

        rate = rate - value / derivative
        if not math.isfinite(rate) or rate <= -1.0:
            logger.debug("IRR iterate left the domain at iteration %d: %r.", iteration, rate)
            return None

    logger.debug("IRR did not converge within %d iterations.", max_iterations)
    return None


def payback_period(initial_investment: float, annual_cash_flow: float) -> float:
    """Simple payback in years; ``math.inf`` when never recovered."""
    if annual_cash_flow <= 0:
        return math.inf
    return initial_investment / annual_cash_flow


def roi(total_benefit: float, total_cost: float) -> float:
    """Return on investment in percent; 0 when ``total_cost`` is 0."""
    if total_cost == 0:
        return 0.0
    return (total_benefit - total_cost) / total_cost * 100.0


def benefit_cost_ratio(total_benefit: float, initial_investment: float) -> float:
    if initial_investment <= 0:
        return 0.0
    return total_benefit / initial_investment


def total_cost_of_ownership(
    replacement_value: float,
    repair_costs: float,
    analysis_horizon_years: int,
    annual_maintenance_rate: float = DEFAULT_MAINTENANCE_RATE,
    repair_projection_factor: float = DEFAULT_REPAIR_PROJECTION_FACTOR,
) -> TotalCostOfOwnership:
    """Lifecycle cost of an asset over a horizon.

    Maintenance is a flat share of replacement value per year; outstanding
    repairs are scaled by ``repair_projection_factor`` to cover the repairs
    expected to arise during the horizon.

    Args:
        replacement_value:        Current replacement value (acquisition cost).
        repair_costs:             Outstanding repair cost today.
        analysis_horizon_years:   Horizon in years (>= 1).
        annual_maintenance_rate:  Yearly maintenance as a fraction of value.
        repair_projection_factor: Multiplier applied to ``repair_costs``.

    Raises:
        InvalidInputError: If the horizon is not positive or an amount is negative.
    """
    if analysis_horizon_years < 1:
        raise InvalidInputError(
            f"analysis_horizon_years must be >= 1, got {analysis_horizon_years}."
        )
    if replacement_value < 0 or repair_costs < 0:
        raise InvalidInputError("replacement_value and repair_costs must be >= 0.")

    annual_maintenance = replacement_value * annual_maintenance_rate
    total_maintenance = annual_maintenance * analysis_horizon_years
    total_repair = repair_costs * repair_projection_factor
    tco = replacement_value + total_maintenance + total_repair

    return TotalCostOfOwnership(
        analysis_horizon_years=analysis_horizon_years,
        acquisition_cost=replacement_value,
        annual_maintenance=annual_maintenance,
        total_maintenance_cost=total_maintenance,
        total_repair_cost=total_repair,
        total_cost_of_ownership=tco,
        annualized_cost=tco / analysis_horizon_years,
    )
