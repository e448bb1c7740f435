"""
Enumerations shared by the scoring, investment, forecasting and rating engines.

Every value is a ``StrEnum`` so it round-trips through SQLite TEXT columns and
JSON output without conversion helpers.

This module has NO imports from any other ``capital_planner`` package.
"""

from enum import StrEnum


class ScenarioType(StrEnum):
    """Forecast scenario variant."""

    BEST_CASE = "best_case"
    MOST_LIKELY = "most_likely"
    WORST_CASE = "worst_case"


class Recommendation(StrEnum):
    """Outcome of a single investment analysis."""

    PROCEED = "proceed"
    REQUIRES_REVIEW = "requires_review"
    DEFER = "defer"
    REJECT = "reject"


class Zone(StrEnum):
    """Traffic-light status band, best to worst."""

    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"


class ScaleType(StrEnum):
    """Which rating scale a score is expressed on.

    ``FCI`` is the only inverted scale (lower is better).
    """

    FCI = "fci"
    CONDITION = "condition"
    ESG = "esg"
    OVERALL = "overall"
    CUSTOM = "custom"


class AnalysisType(StrEnum):
    """Label recorded with an investment analysis."""

    ROI = "roi"
    NPV = "npv"
    PAYBACK = "payback"
    TCO = "tco"
    LCCA = "lcca"
    BENEFIT_COST = "benefit_cost"


class CriterionStatus(StrEnum):
    """Lifecycle state of a prioritization criterion."""

    ACTIVE = "active"
    DISABLED = "disabled"


class TargetStatus(StrEnum):
    """Progress band of a portfolio target."""

    ACHIEVED = "achieved"
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OFF_TRACK = "off_track"


class EpochStatus(StrEnum):
    """State of one recalculation pass over the priority-score cache."""

    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


class DeficiencySeverity(StrEnum):
    """Assessed severity of a deficiency."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DeficiencyPriority(StrEnum):
    """Time frame in which a deficiency should be corrected."""

    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"
