"""
Default threshold tables.

Standard scale (condition, ESG, overall, custom): academic letter grades on a
0–100 score where higher is better.

FCI scale: facility condition index in percent, where lower is better. The
FCI tables map LOW ranges to the GOOD grades; the classifier never inverts
the score.

Tables are ordered best grade first; the last band is the worst grade.
"""

from __future__ import annotations

from capital_planner.models.rating import RatingScale, ThresholdBand
from capital_planner.taxonomy.planning_taxonomy import ScaleType

STANDARD_LETTER_BANDS: list[ThresholdBand] = [
    ThresholdBand(name="A+", min=97.0, max=100.0),
    ThresholdBand(name="A",  min=93.0, max=96.99),
    ThresholdBand(name="A-", min=90.0, max=92.99),
    ThresholdBand(name="B+", min=87.0, max=89.99),
    ThresholdBand(name="B",  min=83.0, max=86.99),
    ThresholdBand(name="B-", min=80.0, max=82.99),
    ThresholdBand(name="C+", min=77.0, max=79.99),
    ThresholdBand(name="C",  min=73.0, max=76.99),
    ThresholdBand(name="C-", min=70.0, max=72.99),
    ThresholdBand(name="D+", min=67.0, max=69.99),
    ThresholdBand(name="D",  min=63.0, max=66.99),
    ThresholdBand(name="D-", min=60.0, max=62.99),
    ThresholdBand(name="F",  min=0.0,  max=59.99),
]

STANDARD_ZONE_BANDS: list[ThresholdBand] = [
    ThresholdBand(
        name="green", min=80.0, max=100.0, label="Excellent",
        description="Asset in excellent condition",
    ),
    ThresholdBand(
        name="yellow", min=60.0, max=79.99, label="Good",
        description="Asset in good condition, minor attention needed",
    ),
    ThresholdBand(
        name="orange", min=40.0, max=59.99, label="Fair",
        description="Asset needs attention, plan for repairs",
    ),
    ThresholdBand(
        name="red", min=0.0, max=39.99, label="Poor",
        description="Critical condition, immediate action required",
    ),
]

FCI_LETTER_BANDS: list[ThresholdBand] = [
    ThresholdBand(name="A+", min=0.0,   max=2.0),
    ThresholdBand(name="A",  min=2.01,  max=5.0),
    ThresholdBand(name="A-", min=5.01,  max=8.0),
    ThresholdBand(name="B+", min=8.01,  max=12.0),
    ThresholdBand(name="B",  min=12.01, max=15.0),
    ThresholdBand(name="B-", min=15.01, max=20.0),
    ThresholdBand(name="C+", min=20.01, max=25.0),
    ThresholdBand(name="C",  min=25.01, max=30.0),
    ThresholdBand(name="C-", min=30.01, max=35.0),
    ThresholdBand(name="D+", min=35.01, max=40.0),
    ThresholdBand(name="D",  min=40.01, max=50.0),
    ThresholdBand(name="D-", min=50.01, max=60.0),
    ThresholdBand(name="F",  min=60.01, max=100.0),
]

FCI_ZONE_BANDS: list[ThresholdBand] = [
    ThresholdBand(
        name="green", min=0.0, max=5.0, label="Excellent",
        description="Facility in excellent condition",
    ),
    ThresholdBand(
        name="yellow", min=5.01, max=10.0, label="Good",
        description="Facility in good condition",
    ),
    ThresholdBand(
        name="orange", min=10.01, max=30.0, label="Fair",
        description="Facility needs attention",
    ),
    ThresholdBand(
        name="red", min=30.01, max=100.0, label="Poor",
        description="Critical - major repairs needed",
    ),
]


def default_scale(scale_type: ScaleType) -> RatingScale:
    """Return the built-in ``RatingScale`` for ``scale_type``.

    FCI gets the inverted tables; every other scale type uses the standard
    tables.
    """
    if scale_type == ScaleType.FCI:
        return RatingScale(
            scale_type=scale_type,
            letter_bands=FCI_LETTER_BANDS,
            zone_bands=FCI_ZONE_BANDS,
            inverted=True,
        )
    return RatingScale(
        scale_type=scale_type,
        letter_bands=STANDARD_LETTER_BANDS,
        zone_bands=STANDARD_ZONE_BANDS,
        inverted=False,
    )
