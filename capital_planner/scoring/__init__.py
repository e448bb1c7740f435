"""
Project prioritization: composite scoring, ranking, and the priority-score cache.

Modules
-------
composite   : compute_composite_score() + normalize_weights()
              + compare_weighting_scenarios() — pure functions, no DB or I/O.
ranker      : rank_projects() + named_criterion_scores()
              + cost_effectiveness() — pure ordering and rank assignment.
deficiency  : deficiency_priority_score() — severity/priority weights plus
              cost and age bonuses, capped at 100.
coordinator : RankingCoordinator — loads criteria and scores from the store,
              runs a recalculation epoch, and serves ranked lists from the
              cache only.
"""
