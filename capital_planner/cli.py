"""
Capital Planner — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute the action (DB init, recalculation, analysis, forecast).
  5. Report the result to stdout.

Install and run::

    pip install -e .
    capital-planner --help
    capital-planner init-db
    capital-planner recalculate-scores --normalize
    capital-planner show-rankings --limit 10
    capital-planner analyze-investment --investment 100000 --savings 25000 \\
        --discount-rate 5 --years 10
    capital-planner run-forecast --years 5 --scenario most_likely
    capital-planner classify-rating 72.5 --scale condition
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="capital-planner",
    help="Capital planning decision engine: prioritization, investment analysis, forecasting.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from capital_planner.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from capital_planner.utils.logging import configure_logging
    configure_logging(config.logging)


def _open_db(config, db_path: Optional[str] = None):
    """Open the configured database, honouring ``--db-path``."""
    from capital_planner.db.connection import get_connection

    return get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    )


def _exit_on_domain_error(exc: Exception) -> None:
    typer.echo(f"[ERROR] {exc}", err=True)
    raise typer.Exit(code=1)


def _fmt(value: Optional[float], digits: int = 2) -> str:
    return "n/a" if value is None else f"{value:,.{digits}f}"


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Initialize the SQLite database and apply the full schema.

    Safe to run multiple times; also runs pending migrations.
    """
    from capital_planner.db.connection import get_connection
    from capital_planner.db.migrations import run_migrations
    from capital_planner.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file (default: config/default.toml)."
    ),
    show_full: bool = typer.Option(False, "--full", help="Print the full config as JSON."),
) -> None:
    """Validate the configuration file and print parsed values."""
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:      {config.database.db_path}")
    typer.echo(f"  Ranked criteria:    {', '.join(config.scoring.ranked_criteria)}")
    typer.echo(f"  Forecast lookback:  {config.forecast.lookback_months} months")
    typer.echo(f"  Default inflation:  {config.forecast.default_inflation_pct}%")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@app.command("normalize-weights")
def normalize_weights(
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Rescale active criterion weights so they sum to 100."""
    from capital_planner.scoring.coordinator import RankingCoordinator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_db(config, db_path) as conn:
        weights = RankingCoordinator(conn).normalize_weights()

    for criterion_id, weight in weights.items():
        typer.echo(f"  criterion {criterion_id}: {weight:.4f}")
    typer.echo(f"[OK] {len(weights)} active criteria normalized.")


@app.command("recalculate-scores")
def recalculate_scores(
    normalize: bool = typer.Option(
        False, "--normalize", help="Normalize weights before scoring."
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Score and rank every scoreable project into a new cache epoch."""
    from capital_planner.exceptions import CapitalPlannerError
    from capital_planner.pipeline.recalculate import RecalculateScoresStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = RecalculateScoresStage(config=config, db_path=db_path)
    try:
        run = stage.run(normalize=normalize)
    except CapitalPlannerError as exc:
        _exit_on_domain_error(exc)

    summary = stage.last_summary
    typer.echo(f"Epoch {summary.epoch_id}: {summary.processed} ranked, {summary.failed} failed.")
    for failure in summary.failures:
        typer.echo(f"  [SKIP] project {failure.project_id}: {failure.error}")
    typer.echo(f"[OK] run_slug={run.run_slug}")


@app.command("show-rankings")
def show_rankings(
    limit: Optional[int] = typer.Option(None, "--limit", help="Maximum rows."),
    min_score: Optional[float] = typer.Option(None, "--min-score"),
    max_score: Optional[float] = typer.Option(None, "--max-score"),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Print the cached ranking of the latest complete epoch."""
    from capital_planner.exceptions import CapitalPlannerError
    from capital_planner.scoring.coordinator import RankingCoordinator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_db(config, db_path) as conn:
        try:
            ranked = RankingCoordinator(conn).get_ranked_projects(
                min_score=min_score, max_score=max_score, limit=limit
            )
        except CapitalPlannerError as exc:
            _exit_on_domain_error(exc)

    if not ranked:
        typer.echo("No ranked projects. Run `capital-planner recalculate-scores` first.")
        return

    typer.echo(f"{'Rank':>4}  {'Score':>7}  {'Cost-eff.':>9}  Project")
    for row in ranked:
        typer.echo(
            f"{row.rank:>4}  {row.composite_score:>7.2f}  "
            f"{_fmt(row.cost_effectiveness_score):>9}  {row.project_name}"
        )


def _change_criterion(criterion_id: int, enable: bool, reason, db_path, config_path) -> None:
    from capital_planner.exceptions import CapitalPlannerError
    from capital_planner.scoring.coordinator import RankingCoordinator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_db(config, db_path) as conn:
        coordinator = RankingCoordinator(
            conn,
            ranked_criteria=config.scoring.ranked_criteria,
            cost_effectiveness_unit=config.scoring.cost_effectiveness_unit,
        )
        try:
            if enable:
                result = coordinator.enable_criterion(criterion_id, reason)
            else:
                result = coordinator.disable_criterion(criterion_id, reason)
        except CapitalPlannerError as exc:
            _exit_on_domain_error(exc)

    typer.echo(result.message)
    for cid, weight in result.normalized_weights.items():
        typer.echo(f"  criterion {cid}: {weight:.4f}")


@app.command("disable-criterion")
def disable_criterion(
    criterion_id: int = typer.Argument(..., help="Criterion to disable."),
    reason: Optional[str] = typer.Option(None, "--reason"),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Disable a criterion, renormalize the remaining weights and recalculate."""
    _change_criterion(criterion_id, False, reason, db_path, config_path)


@app.command("enable-criterion")
def enable_criterion(
    criterion_id: int = typer.Argument(..., help="Criterion to re-enable."),
    reason: Optional[str] = typer.Option(None, "--reason"),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Re-enable a disabled criterion, renormalize and recalculate."""
    _change_criterion(criterion_id, True, reason, db_path, config_path)


@app.command("analyze-investment")
def analyze_investment(
    investment: float = typer.Option(..., "--investment", help="Initial investment."),
    discount_rate: float = typer.Option(..., "--discount-rate", help="Discount rate in percent."),
    years: int = typer.Option(..., "--years", help="Analysis horizon in years."),
    savings: float = typer.Option(0.0, "--savings", help="Annual energy savings."),
    avoidance: float = typer.Option(0.0, "--avoidance", help="Annual cost avoidance."),
    operating: float = typer.Option(0.0, "--operating", help="Annual operating cost."),
    maintenance: float = typer.Option(0.0, "--maintenance", help="Annual maintenance cost."),
    inflation: float = typer.Option(0.0, "--inflation", help="Annual escalation in percent."),
    project_id: Optional[int] = typer.Option(
        None, "--project-id", help="Persist the analysis against this project."
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Compute NPV, IRR, payback, ROI and benefit-cost ratio for one investment."""
    from pydantic import ValidationError

    from capital_planner.exceptions import CapitalPlannerError
    from capital_planner.investment.analysis import create_investment_analysis
    from capital_planner.models.investment import InvestmentAnalysisInput

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        params = InvestmentAnalysisInput(
            project_id=project_id,
            initial_investment=investment,
            annual_operating_cost=operating,
            annual_maintenance_cost=maintenance,
            annual_energy_savings=savings,
            annual_cost_avoidance=avoidance,
            discount_rate=discount_rate,
            analysis_horizon_years=years,
            inflation_rate=inflation,
        )
        inv = config.investment
        result = create_investment_analysis(
            params,
            irr_initial_guess=inv.irr_initial_guess,
            irr_max_iterations=inv.irr_max_iterations,
            irr_tolerance=inv.irr_tolerance,
            proceed_min_roi=inv.proceed_min_roi,
            proceed_max_payback=inv.proceed_max_payback,
            review_min_roi=inv.review_min_roi,
        )
    except (ValidationError, CapitalPlannerError) as exc:
        _exit_on_domain_error(exc)

    if project_id is not None:
        from capital_planner.db.repositories.investment_repo import (
            InvestmentAnalysisRepository,
        )

        with _open_db(config, db_path) as conn:
            analysis_id = InvestmentAnalysisRepository(conn).insert(params, result)
        typer.echo(f"Saved as analysis {analysis_id}.")

    typer.echo(json.dumps(result.presentation(), indent=2))


@app.command("run-forecast")
def run_forecast(
    years: Optional[int] = typer.Option(None, "--years", help="Forecast horizon in years."),
    scenario: Optional[str] = typer.Option(
        None, "--scenario", help="best_case | most_likely | worst_case (default: all)."
    ),
    company_id: Optional[int] = typer.Option(None, "--company-id"),
    inflation: Optional[float] = typer.Option(
        None, "--inflation", help="Override inflation in percent."
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config."),
) -> None:
    """Forecast liabilities from the snapshot history and persist the points."""
    from capital_planner.exceptions import CapitalPlannerError
    from capital_planner.pipeline.forecast import ForecastStage
    from capital_planner.taxonomy.planning_taxonomy import ScenarioType

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        scenario_type = ScenarioType(scenario) if scenario else None
    except ValueError:
        typer.echo(
            f"[ERROR] Unknown scenario '{scenario}'. "
            f"Choose from {[s.value for s in ScenarioType]}.",
            err=True,
        )
        raise typer.Exit(code=1)

    try:
        run = ForecastStage(config=config, db_path=db_path).run(
            forecast_years=years,
            scenario_type=scenario_type,
            company_id=company_id,
            inflation_rate_pct=inflation,
        )
    except CapitalPlannerError as exc:
        _exit_on_domain_error(exc)

    typer.echo(f"[OK] {run.rows_processed} forecast point(s) written | run_id={run.run_id}")


@app.command("classify-rating")
def classify_rating(
    score: float = typer.Argument(..., help="Score to classify."),
    scale: str = typer.Option("condition", "--scale", help="fci | condition | esg | overall | custom"),
) -> None:
    """Map a score onto a letter grade and zone."""
    from capital_planner.rating.classifier import classify_rating as _classify
    from capital_planner.taxonomy.planning_taxonomy import ScaleType

    try:
        scale_type = ScaleType(scale)
    except ValueError:
        typer.echo(
            f"[ERROR] Unknown scale '{scale}'. Choose from {[s.value for s in ScaleType]}.",
            err=True,
        )
        raise typer.Exit(code=1)

    result = _classify(score, scale_type)
    typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
