"""
Rating scales and classification results.

A ``RatingScale`` bundles a letter-grade table and a zone table. Inverted
scales (FCI, where lower is better) are expressed with their own tables whose
low ranges map to the good grades; the score itself is never transformed.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from capital_planner.taxonomy.planning_taxonomy import ScaleType, Zone


class ThresholdBand(BaseModel):
    """Closed range ``[min, max]`` mapped to a grade or zone name."""

    model_config = ConfigDict(frozen=True)

    name: str
    min: float
    max: float
    label: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def validate_range(self) -> "ThresholdBand":
        if self.min > self.max:
            raise ValueError(
                f"band '{self.name}' has min ({self.min}) > max ({self.max})."
            )
        return self

    def contains(self, score: float) -> bool:
        return self.min <= score <= self.max


class RatingScale(BaseModel):
    """Letter and zone threshold tables for one scale type.

    Attributes:
        scale_type: Which scale these tables apply to.
        letter_bands: Ordered letter-grade ranges, best grade first.
        zone_bands: Ordered zone ranges; names must be ``Zone`` values.
        inverted: ``True`` when lower scores are better.
    """

    model_config = ConfigDict(frozen=True)

    scale_type: ScaleType
    letter_bands: list[ThresholdBand]
    zone_bands: list[ThresholdBand]
    inverted: bool = False

    @model_validator(mode="after")
    def validate_tables(self) -> "RatingScale":
        if not self.letter_bands or not self.zone_bands:
            raise ValueError("letter_bands and zone_bands must not be empty.")
        valid_zones = {z.value for z in Zone}
        for band in self.zone_bands:
            if band.name not in valid_zones:
                raise ValueError(
                    f"Unknown zone '{band.name}'. Must be one of {sorted(valid_zones)}."
                )
        return self


class RatingResult(BaseModel):
    """Letter grade and zone for one score."""

    model_config = ConfigDict(frozen=True)

    score: float
    letter_grade: str
    zone: Zone
    zone_label: str
    zone_description: str = ""


class AssetRating(BaseModel):
    """Condition, FCI and overall ratings of one asset.

    Each part is ``None`` when the asset has no data for it.
    """

    model_config = ConfigDict(frozen=True)

    condition: Optional[RatingResult] = None
    fci: Optional[RatingResult] = None
    overall: Optional[RatingResult] = None


class ProjectRating(BaseModel):
    """Aggregate rating of a project's rated assets.

    Attributes:
        assessed_assets: Number of asset ratings aggregated.
        portfolio: Average overall asset score rated on the overall scale,
            or ``None`` when no asset has an overall score.
        avg_fci_score: Mean FCI score, or ``None``.
        avg_condition_score: Mean condition score, or ``None``.
        zone_distribution: Asset count per overall zone (every zone present).
        grade_distribution: Asset count per base letter (``"B-"`` counts as ``"B"``).
    """

    model_config = ConfigDict(frozen=True)

    assessed_assets: int
    portfolio: Optional[RatingResult] = None
    avg_fci_score: Optional[float] = None
    avg_condition_score: Optional[float] = None
    zone_distribution: dict[Zone, int]
    grade_distribution: dict[str, int]
