"""
Liability forecasting from the portfolio snapshot time series.

Modules
-------
trend      : deterioration_rate() — annualized FCI drift between the oldest
             and newest snapshot.
forecaster : forecast() + forecast_all_scenarios() — multi-year projections
             of cost, FCI, failure probability, risk and confidence.
portfolio  : portfolio_fci() + build_snapshot() + target_progress()
             + compare_to_benchmark() — snapshot construction and KPIs.
"""
