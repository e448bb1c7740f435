"""
Tests for capital_planner/investment/analysis.py.

What we test
------------
build_cash_flows():         inflation escalation per year; horizon >= 1.
determine_recommendation(): each band and the priority order between them.
analyze():
  - 100k invested, 25k/year for 10 years at 5% → payback 4.0, NPV > 0, proceed.
  - Non-positive annual flow → infinite payback, no IRR, reject.
  - Empty series and mismatched horizon are rejected.
  - Values are unrounded; presentation() rounds and maps inf payback to None.
create_investment_analysis():
  - Net annual flow = savings + avoidance − operating − maintenance.
"""

from __future__ import annotations

import math

import pytest

from capital_planner.exceptions import InvalidInputError
from capital_planner.investment.analysis import (
    analyze,
    build_cash_flows,
    create_investment_analysis,
    determine_recommendation,
)
from capital_planner.models.investment import InvestmentAnalysisInput
from capital_planner.taxonomy.planning_taxonomy import Recommendation


class TestBuildCashFlows:
    def test_flat_without_inflation(self):
        assert build_cash_flows(1_000.0, 3) == [1_000.0, 1_000.0, 1_000.0]

    def test_escalates_from_year_one(self):
        flows = build_cash_flows(1_000.0, 2, inflation_rate=10.0)
        assert flows == pytest.approx([1_100.0, 1_210.0])

    def test_horizon_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            build_cash_flows(1_000.0, 0)


class TestDetermineRecommendation:
    @pytest.mark.parametrize(
        ("npv", "roi", "payback", "expected"),
        [
            (1.0, 20.0, 4.0, Recommendation.PROCEED),
            (1.0, 20.0, 6.0, Recommendation.REQUIRES_REVIEW),
            (1.0, 10.0, 2.0, Recommendation.REQUIRES_REVIEW),
            (-1.0, 20.0, 2.0, Recommendation.REJECT),
            (1.0, -2.0, math.inf, Recommendation.REJECT),
            (0.0, 0.0, math.inf, Recommendation.DEFER),
            (1.0, 3.0, 2.0, Recommendation.DEFER),
        ],
    )
    def test_bands(self, npv, roi, payback, expected):
        assert determine_recommendation(npv, roi, payback) == expected

    def test_custom_thresholds(self):
        assert (
            determine_recommendation(1.0, 12.0, 4.0, proceed_min_roi=10.0)
            == Recommendation.PROCEED
        )


class TestAnalyze:
    def test_reference_case_proceeds(self):
        result = analyze(100_000.0, [25_000.0] * 10, 5.0, analysis_horizon_years=10)
        assert result.payback_period == pytest.approx(4.0)
        assert result.npv > 0
        assert result.roi == pytest.approx(150.0)
        assert result.benefit_cost_ratio == pytest.approx(2.5)
        assert result.irr == pytest.approx(21.41, abs=0.05)
        assert result.recommendation == Recommendation.PROCEED
        assert result.analyzed_at is not None

    def test_no_positive_flow(self):
        result = analyze(50_000.0, [-1_000.0] * 5, 5.0)
        assert result.payback_period == math.inf
        assert not result.has_payback
        assert result.irr is None
        assert result.recommendation == Recommendation.REJECT

    def test_empty_series(self):
        with pytest.raises(InvalidInputError):
            analyze(1_000.0, [], 5.0)

    def test_horizon_mismatch(self):
        with pytest.raises(InvalidInputError):
            analyze(1_000.0, [100.0] * 3, 5.0, analysis_horizon_years=4)

    def test_presentation_rounds(self):
        result = analyze(100_000.0, [25_000.0] * 10, 5.0)
        shown = result.presentation()
        assert shown["npv"] == round(result.npv, 2)
        assert shown["payback_period"] == 4.0
        assert shown["recommendation"] == "proceed"

    def test_presentation_no_payback(self):
        shown = analyze(10.0, [0.0], 5.0).presentation()
        assert shown["payback_period"] is None
        assert shown["irr"] is None


class TestCreateInvestmentAnalysis:
    def test_net_flow_from_components(self):
        params = InvestmentAnalysisInput(
            initial_investment=100_000.0,
            annual_energy_savings=20_000.0,
            annual_cost_avoidance=10_000.0,
            annual_operating_cost=3_000.0,
            annual_maintenance_cost=2_000.0,
            discount_rate=5.0,
            analysis_horizon_years=10,
        )
        assert params.annual_net_cash_flow == pytest.approx(25_000.0)
        result = create_investment_analysis(params)
        assert result.payback_period == pytest.approx(4.0)
        assert result.recommendation == Recommendation.PROCEED

    def test_inflation_lifts_npv(self):
        base = dict(
            initial_investment=100_000.0,
            annual_energy_savings=12_000.0,
            discount_rate=5.0,
            analysis_horizon_years=10,
        )
        flat = create_investment_analysis(InvestmentAnalysisInput(**base))
        inflated = create_investment_analysis(
            InvestmentAnalysisInput(**base, inflation_rate=3.0)
        )
        assert inflated.npv > flat.npv
        assert inflated.payback_period == flat.payback_period

    def test_thresholds_forwarded(self):
        params = InvestmentAnalysisInput(
            initial_investment=100_000.0,
            annual_energy_savings=25_000.0,
            discount_rate=5.0,
            analysis_horizon_years=10,
        )
        result = create_investment_analysis(params, proceed_max_payback=3.0)
        assert result.recommendation == Recommendation.REQUIRES_REVIEW

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            InvestmentAnalysisInput(
                initial_investment=-1.0, discount_rate=5.0, analysis_horizon_years=1
            )
