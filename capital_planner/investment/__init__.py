"""
Single-investment financial analysis.

Modules
-------
metrics  : npv(), irr(), payback_period(), roi(), benefit_cost_ratio(),
           total_cost_of_ownership() — pure numeric functions.
analysis : build_cash_flows() + determine_recommendation() + analyze()
           — turns investment facts into an InvestmentAnalysisResult.
"""
