"""
Exception hierarchy for the decision engine.

Only genuine failures are exceptions. Degenerate but valid numeric outcomes
(a zero composite score, an infinite payback period, a missing IRR) are
returned as values and never raised.
"""

from __future__ import annotations


class CapitalPlannerError(Exception):
    """Base class for all errors raised by ``capital_planner``."""


class NotFoundError(CapitalPlannerError):
    """A required record or data window does not exist.

    Raised for unknown project/criterion ids and for forecasting with fewer
    than two historical snapshots.
    """


class InvalidInputError(CapitalPlannerError, ValueError):
    """Input rejected before entering a numeric loop.

    Examples: negative weights, an empty cash-flow series, a non-positive
    analysis horizon, a threshold band with ``min > max``.
    """


class ModelStateError(CapitalPlannerError):
    """The requested change would leave the scoring model in an invalid state.

    Example: disabling the last active criterion.
    """
