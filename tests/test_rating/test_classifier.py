"""
Tests for capital_planner/rating/classifier.py and thresholds.py.

What we test
------------
classify():
  - First containing band wins, for letter and zone tables.
  - Out-of-range and NaN scores fall back to the worst grade and red.
  - Inverted (FCI) tables give good grades to low scores.
  - Empty tables never raise.

classify_rating():
  - Zone label and description come from the matching zone band.
  - Custom scales override the built-in tables.

rate_asset():
  - 0.6 × condition + 0.4 × (100 − FCI) overall score.
  - Partial histories and empty histories.
  - A mean that lands in a two-decimal gap rates F/red.

rate_project():
  - Mean of the assets' overall scores, rated on the overall scale.
  - Zone and base-letter distributions; empty input → NotFoundError.

Threshold models:
  - A band with min > max is rejected.
"""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from capital_planner.models.rating import RatingScale, ThresholdBand
from capital_planner.exceptions import NotFoundError
from capital_planner.rating.classifier import (
    classify,
    classify_rating,
    rate_asset,
    rate_project,
)
from capital_planner.rating.thresholds import (
    FCI_LETTER_BANDS,
    FCI_ZONE_BANDS,
    STANDARD_LETTER_BANDS,
    STANDARD_ZONE_BANDS,
)
from capital_planner.taxonomy.planning_taxonomy import ScaleType, Zone


# ── classify ──────────────────────────────────────────────────────────────────

class TestClassify:
    @pytest.mark.parametrize(
        ("score", "grade", "zone"),
        [
            (100.0, "A+", Zone.GREEN),
            (95.0, "A", Zone.GREEN),
            (81.0, "B-", Zone.GREEN),
            (72.5, "C-", Zone.YELLOW),
            (61.0, "D-", Zone.YELLOW),
            (45.0, "F", Zone.ORANGE),
            (10.0, "F", Zone.RED),
            (0.0, "F", Zone.RED),
        ],
    )
    def test_standard_scale(self, score, grade, zone):
        assert classify(score, STANDARD_LETTER_BANDS, STANDARD_ZONE_BANDS) == (grade, zone)

    @pytest.mark.parametrize(
        ("score", "grade", "zone"),
        [
            (1.0, "A+", Zone.GREEN),
            (7.0, "A-", Zone.YELLOW),
            (22.0, "C+", Zone.ORANGE),
            (75.0, "F", Zone.RED),
        ],
    )
    def test_fci_scale(self, score, grade, zone):
        assert classify(score, FCI_LETTER_BANDS, FCI_ZONE_BANDS, inverted=True) == (grade, zone)

    @pytest.mark.parametrize("score", [-5.0, 150.0, 79.995, math.nan, math.inf])
    def test_out_of_range_falls_back(self, score):
        grade, zone = classify(score, STANDARD_LETTER_BANDS, STANDARD_ZONE_BANDS)
        assert zone == Zone.RED
        assert grade == "F"

    def test_empty_tables(self):
        assert classify(50.0, [], []) == ("F", Zone.RED)


# ── classify_rating ───────────────────────────────────────────────────────────

class TestClassifyRating:
    def test_condition_labels(self):
        result = classify_rating(85.0, ScaleType.CONDITION)
        assert result.letter_grade == "B"
        assert result.zone == Zone.GREEN
        assert result.zone_label == "Excellent"
        assert result.zone_description == "Asset in excellent condition"

    def test_fci_uses_inverted_tables(self):
        result = classify_rating(3.0, ScaleType.FCI)
        assert result.letter_grade == "A"
        assert result.zone == Zone.GREEN
        assert result.zone_description == "Facility in excellent condition"

    def test_fallback_has_label(self):
        result = classify_rating(-1.0, ScaleType.ESG)
        assert result.zone == Zone.RED
        assert result.zone_label == "Poor"

    def test_custom_scale(self):
        scale = RatingScale(
            scale_type=ScaleType.CUSTOM,
            letter_bands=[
                ThresholdBand(name="Pass", min=50.0, max=100.0),
                ThresholdBand(name="Fail", min=0.0, max=49.99),
            ],
            zone_bands=[
                ThresholdBand(name="green", min=50.0, max=100.0, label="OK"),
                ThresholdBand(name="red", min=0.0, max=49.99, label="Not OK"),
            ],
        )
        assert classify_rating(60.0, ScaleType.CUSTOM, scale).letter_grade == "Pass"
        failed = classify_rating(-3.0, ScaleType.CUSTOM, scale)
        assert (failed.letter_grade, failed.zone_label) == ("Fail", "Not OK")


# ── rate_asset ────────────────────────────────────────────────────────────────

class TestRateAsset:
    def test_blended_overall(self):
        rating = rate_asset([80.0, 90.0], [10.0])
        assert rating.condition.score == pytest.approx(85.0)
        assert rating.fci.score == pytest.approx(10.0)
        assert rating.overall.score == pytest.approx(0.6 * 85.0 + 0.4 * 90.0)

    def test_condition_only(self):
        rating = rate_asset([70.0], [])
        assert rating.fci is None
        assert rating.overall.score == pytest.approx(70.0)

    def test_fci_only(self):
        rating = rate_asset([], [120.0])
        assert rating.overall.score == 0.0

    def test_no_history(self):
        rating = rate_asset([], [])
        assert rating.condition is None and rating.fci is None and rating.overall is None

    def test_gap_between_bands_falls_back(self):
        rating = rate_asset([79.995], [])
        assert rating.overall.letter_grade == "F"
        assert rating.overall.zone == Zone.RED


# ── rate_project ──────────────────────────────────────────────────────────────

class TestRateProject:
    def test_aggregates_assets(self):
        ratings = [
            rate_asset([95.0], [5.0]),    # overall 95 → A, green
            rate_asset([70.0], []),       # overall 70 → C-, yellow
            rate_asset([], []),           # unrated
        ]
        project = rate_project(ratings)

        assert project.assessed_assets == 3
        assert project.portfolio.score == pytest.approx(82.5)
        assert project.portfolio.letter_grade == "B-"
        assert project.portfolio.zone == Zone.GREEN
        assert project.avg_condition_score == pytest.approx(82.5)
        assert project.avg_fci_score == pytest.approx(5.0)
        assert project.zone_distribution == {
            Zone.GREEN: 1, Zone.YELLOW: 1, Zone.ORANGE: 0, Zone.RED: 0,
        }
        assert project.grade_distribution == {"A": 1, "C": 1}

    def test_no_overall_scores(self):
        project = rate_project([rate_asset([], [])])
        assert project.portfolio is None
        assert project.avg_fci_score is None
        assert sum(project.zone_distribution.values()) == 0

    def test_empty_input(self):
        with pytest.raises(NotFoundError):
            rate_project([])


class TestThresholdBand:
    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError):
            ThresholdBand(name="bad", min=10.0, max=5.0)

    def test_zone_names_validated(self):
        with pytest.raises(ValidationError):
            RatingScale(
                scale_type=ScaleType.CUSTOM,
                letter_bands=[ThresholdBand(name="A", min=0.0, max=100.0)],
                zone_bands=[ThresholdBand(name="purple", min=0.0, max=100.0)],
            )
