"""
Deterioration trend extraction.

The annualized deterioration rate is the relative FCI change between the
oldest and newest snapshot, scaled to 12 months by the calendar months that
actually elapsed between them:

    rate = (fci_latest − fci_oldest) / fci_oldest × 12 / months_elapsed

A zero oldest FCI or a non-positive elapsed time yields 0. The rate is floored
at -1 so ``(1 + rate)^y`` never turns negative.
"""

from __future__ import annotations

from collections.abc import Sequence

from capital_planner.exceptions import NotFoundError
from capital_planner.models.portfolio import PortfolioMetricsSnapshot
from capital_planner.utils.time_utils import months_between

MIN_SNAPSHOTS = 2


def ordered_window(
    snapshots: Sequence[PortfolioMetricsSnapshot],
) -> list[PortfolioMetricsSnapshot]:
    """Return snapshots oldest first; at least two are required.

    Raises:
        NotFoundError: If fewer than two snapshots are supplied.
    """
    if len(snapshots) < MIN_SNAPSHOTS:
        raise NotFoundError(
            f"Insufficient historical data for forecasting: {len(snapshots)} "
            f"snapshot(s), at least {MIN_SNAPSHOTS} required."
        )
    return sorted(snapshots, key=lambda s: s.snapshot_date)


def deterioration_rate(snapshots: Sequence[PortfolioMetricsSnapshot]) -> float:
    """Annualized FCI deterioration rate as a fraction (0.05 = 5% per year)."""
    window = ordered_window(snapshots)
    oldest, latest = window[0], window[-1]

    if oldest.portfolio_fci == 0:
        return 0.0
    months = months_between(oldest.snapshot_date, latest.snapshot_date)
    if months <= 0:
        return 0.0

    relative = (latest.portfolio_fci - oldest.portfolio_fci) / oldest.portfolio_fci
    return max(-1.0, relative * 12.0 / months)
