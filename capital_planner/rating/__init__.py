"""
Rating classifier: maps numeric scores onto letter grades and traffic-light zones.

Modules
-------
thresholds : default letter/zone tables for the standard (higher is better)
             and FCI (lower is better) scales, plus ``default_scale()``.
classifier : classify() — linear scan over threshold tables with a
             worst-grade fallback; classify_rating(), rate_asset() and
             rate_project().
"""
