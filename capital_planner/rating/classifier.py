"""
Score classification against threshold tables.

classify()
    Linear scan over each table, returning the first band that contains the
    score. Scores that fall in no band (below 0, above 100, in a gap between
    two-decimal bands, NaN) get the worst grade and the red zone. Never raises.

classify_rating()
    Picks the table pair for a scale type (or uses a caller-supplied scale)
    and returns a ``RatingResult`` with zone label and description.

rate_asset()
    Averages an asset's condition and FCI assessments and rates each, plus an
    overall score that blends condition (60%) with inverted FCI (40%).

rate_project()
    Averages the overall scores of a project's rated assets, rates the mean
    on the overall scale and counts assets per zone and base letter grade.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from capital_planner.exceptions import NotFoundError
from capital_planner.models.rating import (
    AssetRating,
    ProjectRating,
    RatingResult,
    RatingScale,
    ThresholdBand,
)
from capital_planner.rating.thresholds import STANDARD_ZONE_BANDS, default_scale
from capital_planner.taxonomy.planning_taxonomy import ScaleType, Zone

FALLBACK_GRADE = "F"
FALLBACK_ZONE = Zone.RED

CONDITION_WEIGHT = 0.6
FCI_WEIGHT = 0.4


def classify(
    score: float,
    letter_bands: Sequence[ThresholdBand],
    zone_bands: Sequence[ThresholdBand],
    inverted: bool = False,
) -> tuple[str, Zone]:
    """Return ``(letter_grade, zone)`` for ``score``.

    ``inverted`` documents which kind of table the caller passed; it does not
    change the lookup. Lower-is-better scales must supply tables whose low
    ranges carry the good grades.

    The built-in bands are closed two-decimal ranges with gaps between them
    (C+ ends at 79.99, B- starts at 80.00). A score inside a gap, such as
    79.995, matches no band and gets the fallback grade and zone.

    Args:
        score: Raw score on the tables' scale.
        letter_bands: Letter-grade table, best grade first.
        zone_bands: Zone table; band names are ``Zone`` values.
        inverted: Whether the tables describe a lower-is-better scale.

    Returns:
        Tuple of letter grade and zone.
    """
    letter = _first_match(score, letter_bands)
    zone_band = _first_match(score, zone_bands)

    letter_grade = letter.name if letter is not None else _worst_grade(letter_bands)
    zone = Zone(zone_band.name) if zone_band is not None else FALLBACK_ZONE
    return letter_grade, zone


def classify_rating(
    score: float,
    scale_type: ScaleType = ScaleType.CONDITION,
    scale: Optional[RatingScale] = None,
) -> RatingResult:
    """Classify ``score`` on a scale and attach the zone label and description.

    Args:
        score: Raw score.
        scale_type: Used to pick the built-in tables when ``scale`` is ``None``.
        scale: Custom tables overriding the built-in ones.

    Returns:
        ``RatingResult``.
    """
    scale = scale or default_scale(scale_type)
    letter_grade, zone = classify(
        score, scale.letter_bands, scale.zone_bands, inverted=scale.inverted
    )

    zone_info = _band_named(zone.value, scale.zone_bands) or _band_named(
        zone.value, STANDARD_ZONE_BANDS
    )
    return RatingResult(
        score=score,
        letter_grade=letter_grade,
        zone=zone,
        zone_label=(zone_info.label if zone_info and zone_info.label else zone.value),
        zone_description=(zone_info.description or "") if zone_info else "",
    )


def rate_asset(
    condition_scores: Sequence[float],
    fci_scores: Sequence[float],
) -> AssetRating:
    """Rate an asset from its assessment history.

    The condition average is rated on the standard scale, the FCI average on
    the FCI scale. The overall score is ``0.6 × condition + 0.4 × (100 − FCI)``
    when both exist, otherwise whichever part exists (FCI converted as
    ``max(0, 100 − FCI)``).
    """
    avg_condition = _mean(condition_scores)
    avg_fci = _mean(fci_scores)

    condition = (
        classify_rating(avg_condition, ScaleType.CONDITION)
        if avg_condition is not None else None
    )
    fci = classify_rating(avg_fci, ScaleType.FCI) if avg_fci is not None else None

    overall_score: Optional[float]
    if avg_condition is not None and avg_fci is not None:
        normalized_fci = max(0.0, 100.0 - avg_fci)
        overall_score = avg_condition * CONDITION_WEIGHT + normalized_fci * FCI_WEIGHT
    elif avg_condition is not None:
        overall_score = avg_condition
    elif avg_fci is not None:
        overall_score = max(0.0, 100.0 - avg_fci)
    else:
        overall_score = None

    overall = (
        classify_rating(overall_score, ScaleType.OVERALL)
        if overall_score is not None else None
    )
    return AssetRating(condition=condition, fci=fci, overall=overall)


def rate_project(asset_ratings: Sequence[AssetRating]) -> ProjectRating:
    """Aggregate asset ratings into a project rating.

    Each average only covers the assets that have that part. Assets without an
    overall rating are left out of both distributions.

    Raises:
        NotFoundError: If ``asset_ratings`` is empty.
    """
    if not asset_ratings:
        raise NotFoundError("No rated assets to aggregate.")

    overall = [r.overall for r in asset_ratings if r.overall is not None]
    avg_overall = _mean([r.score for r in overall])
    avg_fci = _mean([r.fci.score for r in asset_ratings if r.fci is not None])
    avg_condition = _mean(
        [r.condition.score for r in asset_ratings if r.condition is not None]
    )

    zones = {zone: 0 for zone in Zone}
    grades: dict[str, int] = {}
    for rating in overall:
        zones[rating.zone] += 1
        base = rating.letter_grade[:1]
        grades[base] = grades.get(base, 0) + 1

    return ProjectRating(
        assessed_assets=len(asset_ratings),
        portfolio=(
            classify_rating(avg_overall, ScaleType.OVERALL)
            if avg_overall is not None else None
        ),
        avg_fci_score=avg_fci,
        avg_condition_score=avg_condition,
        zone_distribution=zones,
        grade_distribution=grades,
    )


# ── Helpers ───────────────────────────────────────────────────────────────────

def _first_match(score: float, bands: Sequence[ThresholdBand]) -> Optional[ThresholdBand]:
    for band in bands:
        if band.contains(score):
            return band
    return None


def _band_named(name: str, bands: Sequence[ThresholdBand]) -> Optional[ThresholdBand]:
    for band in bands:
        if band.name == name:
            return band
    return None


def _worst_grade(letter_bands: Sequence[ThresholdBand]) -> str:
    return letter_bands[-1].name if letter_bands else FALLBACK_GRADE


def _mean(values: Sequence[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None
