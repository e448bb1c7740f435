"""
Deficiency priority score (0–100).

    base  = 0.4 × severity weight + 0.4 × priority weight
    score = min(100, round(base + cost bonus + age bonus))

Severity and priority weights are 100/75/50/25 from worst to mildest; an
unrecognized label weighs 50. The bonuses are step functions of the estimated
cost and of the deficiency's age in whole days. Halves round up.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from capital_planner.exceptions import InvalidInputError
from capital_planner.taxonomy.planning_taxonomy import DeficiencyPriority, DeficiencySeverity
from capital_planner.utils.time_utils import utcnow

SEVERITY_WEIGHTS: dict[str, float] = {
    DeficiencySeverity.CRITICAL: 100.0,
    DeficiencySeverity.HIGH: 75.0,
    DeficiencySeverity.MEDIUM: 50.0,
    DeficiencySeverity.LOW: 25.0,
}
PRIORITY_WEIGHTS: dict[str, float] = {
    DeficiencyPriority.IMMEDIATE: 100.0,
    DeficiencyPriority.SHORT_TERM: 75.0,
    DeficiencyPriority.MEDIUM_TERM: 50.0,
    DeficiencyPriority.LONG_TERM: 25.0,
}
UNKNOWN_LABEL_WEIGHT = 50.0
LABEL_SHARE = 0.4
MAX_SCORE = 100

# (exclusive lower bound, bonus), checked from the top.
COST_BONUSES: tuple[tuple[float, float], ...] = (
    (100_000.0, 20.0),
    (50_000.0, 15.0),
    (10_000.0, 10.0),
    (1_000.0, 5.0),
)
AGE_BONUSES: tuple[tuple[int, float], ...] = (
    (365, 10.0),
    (180, 7.0),
    (90, 5.0),
    (30, 2.0),
)


def _step_bonus(value: float, steps) -> float:
    for threshold, bonus in steps:
        if value > threshold:
            return bonus
    return 0.0


def deficiency_priority_score(
    severity: str,
    priority: str,
    estimated_cost: Optional[float] = None,
    created_at: Optional[datetime] = None,
    as_of: Optional[datetime] = None,
) -> int:
    """Score how urgently a deficiency should be addressed.

    Args:
        severity:       ``DeficiencySeverity`` value.
        priority:       ``DeficiencyPriority`` value.
        estimated_cost: Correction cost; no cost bonus when ``None`` or 0.
        created_at:     When the deficiency was recorded; no age bonus when
                        ``None``.
        as_of:          Reference time for the age. Defaults to now (UTC).

    Returns:
        Integer score in [0, 100].

    Raises:
        InvalidInputError: Negative or non-finite cost.
    """
    score = (
        SEVERITY_WEIGHTS.get(severity, UNKNOWN_LABEL_WEIGHT) * LABEL_SHARE
        + PRIORITY_WEIGHTS.get(priority, UNKNOWN_LABEL_WEIGHT) * LABEL_SHARE
    )

    if estimated_cost is not None:
        if not math.isfinite(estimated_cost) or estimated_cost < 0:
            raise InvalidInputError(
                f"estimated_cost must be finite and >= 0, got {estimated_cost}."
            )
        score += _step_bonus(estimated_cost, COST_BONUSES)

    if created_at is not None:
        age_days = ((as_of or utcnow()) - created_at).days
        score += _step_bonus(age_days, AGE_BONUSES)

    return min(MAX_SCORE, math.floor(score + 0.5))
