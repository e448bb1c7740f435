"""
Portfolio snapshot construction and portfolio-level KPIs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from capital_planner.models.portfolio import (
    BenchmarkComparison,
    PortfolioMetricsSnapshot,
    TargetProgress,
)
from capital_planner.taxonomy.planning_taxonomy import TargetStatus
from capital_planner.utils.time_utils import utcnow

BETTER_THAN_MEDIAN = "Better than median"
WORSE_THAN_MEDIAN = "Worse than median"


def portfolio_fci(total_repair_cost: float, total_replacement_value: float) -> float:
    """Facility condition index in percent; 0 when replacement value is 0."""
    if total_replacement_value <= 0:
        return 0.0
    return total_repair_cost / total_replacement_value * 100.0


def build_snapshot(
    total_replacement_value: float,
    total_repair_cost: float,
    snapshot_date: Optional[datetime] = None,
    company_id: Optional[int] = None,
    portfolio_ci: Optional[float] = None,
    condition_counts: Optional[dict[str, int]] = None,
    total_deficiencies: int = 0,
    critical_deficiencies: int = 0,
    high_priority_deficiencies: int = 0,
    inflation_rate: Optional[float] = None,
    discount_rate: Optional[float] = None,
) -> PortfolioMetricsSnapshot:
    """Assemble a snapshot from raw portfolio totals.

    Args:
        condition_counts: Asset counts keyed ``good`` / ``fair`` / ``poor``;
            missing keys count as 0. ``total_assets`` is their sum.
    """
    counts = condition_counts or {}
    good = counts.get("good", 0)
    fair = counts.get("fair", 0)
    poor = counts.get("poor", 0)
    return PortfolioMetricsSnapshot(
        snapshot_date=snapshot_date or utcnow(),
        company_id=company_id,
        total_replacement_value=total_replacement_value,
        total_repair_cost=total_repair_cost,
        portfolio_fci=portfolio_fci(total_repair_cost, total_replacement_value),
        portfolio_ci=portfolio_ci,
        total_assets=good + fair + poor,
        assets_good_condition=good,
        assets_fair_condition=fair,
        assets_poor_condition=poor,
        total_deficiencies=total_deficiencies,
        critical_deficiencies=critical_deficiencies,
        high_priority_deficiencies=high_priority_deficiencies,
        inflation_rate=inflation_rate,
        discount_rate=discount_rate,
    )


def target_progress(
    current_value: float, baseline_value: float, target_value: float
) -> TargetProgress:
    """Progress from baseline toward target, in percent, with a status band.

    Works for targets in either direction (an FCI target below its baseline
    or a CI target above it). Progress is 0 when baseline equals target.
    """
    if baseline_value != target_value:
        progress = (current_value - baseline_value) / (target_value - baseline_value) * 100.0
    else:
        progress = 0.0

    if progress >= 100:
        status = TargetStatus.ACHIEVED
    elif progress >= 75:
        status = TargetStatus.ON_TRACK
    elif progress >= 50:
        status = TargetStatus.AT_RISK
    else:
        status = TargetStatus.OFF_TRACK

    return TargetProgress(
        current_value=current_value,
        baseline_value=baseline_value,
        target_value=target_value,
        progress_percentage=progress,
        status=status,
    )


def compare_to_benchmark(
    fci: float, ci: float, median_fci: float, median_ci: float
) -> BenchmarkComparison:
    """Compare portfolio FCI (lower is better) and CI (higher is better) to medians."""
    return BenchmarkComparison(
        fci_difference=fci - median_fci,
        fci_percentile=BETTER_THAN_MEDIAN if fci <= median_fci else WORSE_THAN_MEDIAN,
        ci_difference=ci - median_ci,
        ci_percentile=BETTER_THAN_MEDIAN if ci >= median_ci else WORSE_THAN_MEDIAN,
    )
