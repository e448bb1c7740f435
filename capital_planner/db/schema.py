"""
SQLite schema DDL — all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Table creation order respects foreign key dependencies:
  1. projects               (no FKs)
  2. criteria               (no FKs)
  3. criterion_scores       (→ projects, criteria)
  4. recalculation_epochs   (no FKs)
  5. priority_scores        (→ projects, recalculation_epochs)
  6. investment_analyses    (→ projects)
  7. portfolio_snapshots    (no FKs; append-only)
  8. run_metadata           (no FKs)
  9. forecast_points        (→ run_metadata; append-only)

``priority_scores`` holds one row per project (upsert by ``project_id``).
Every row is stamped with the epoch that wrote it; readers only see rows of
the latest ``complete`` epoch.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_PROJECTS = """
CREATE TABLE IF NOT EXISTS projects (
    project_id                INTEGER PRIMARY KEY AUTOINCREMENT,
    name                      TEXT    NOT NULL,
    deferred_maintenance_cost REAL,
    created_at                TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_CRITERIA = """
CREATE TABLE IF NOT EXISTS criteria (
    criterion_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name           TEXT    NOT NULL UNIQUE,
    category       TEXT    NOT NULL DEFAULT 'general',
    weight         REAL    NOT NULL CHECK (weight >= 0 AND weight <= 100),
    is_active      INTEGER NOT NULL DEFAULT 1,
    status         TEXT    NOT NULL DEFAULT 'active',
    display_order  INTEGER NOT NULL DEFAULT 0,
    description    TEXT,
    updated_at     TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_CRITERION_SCORES = """
CREATE TABLE IF NOT EXISTS criterion_scores (
    project_id     INTEGER NOT NULL REFERENCES projects(project_id),
    criterion_id   INTEGER NOT NULL REFERENCES criteria(criterion_id),
    score          REAL    NOT NULL CHECK (score >= 0 AND score <= 10),
    justification  TEXT,
    updated_at     TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    PRIMARY KEY (project_id, criterion_id)
);
"""

_DDL_RECALCULATION_EPOCHS = """
CREATE TABLE IF NOT EXISTS recalculation_epochs (
    epoch_id            INTEGER PRIMARY KEY AUTOINCREMENT,
    status              TEXT    NOT NULL DEFAULT 'running',
    started_at          TEXT    NOT NULL,
    finished_at         TEXT,
    projects_processed  INTEGER NOT NULL DEFAULT 0,
    projects_failed     INTEGER NOT NULL DEFAULT 0
);
"""

_DDL_PRIORITY_SCORES = """
CREATE TABLE IF NOT EXISTS priority_scores (
    project_id               INTEGER PRIMARY KEY REFERENCES projects(project_id),
    epoch_id                 INTEGER NOT NULL REFERENCES recalculation_epochs(epoch_id),
    composite_score          REAL    NOT NULL,
    rank                     INTEGER NOT NULL,
    criterion_scores         TEXT    NOT NULL DEFAULT '{}',
    total_cost               REAL,
    cost_effectiveness_score REAL,
    calculated_at            TEXT    NOT NULL
);
"""

_DDL_PRIORITY_SCORES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_priority_epoch_rank
    ON priority_scores(epoch_id, rank);
"""

_DDL_INVESTMENT_ANALYSES = """
CREATE TABLE IF NOT EXISTS investment_analyses (
    analysis_id              INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id               INTEGER REFERENCES projects(project_id),
    asset_id                 INTEGER,
    analysis_type            TEXT    NOT NULL,
    initial_investment       REAL    NOT NULL,
    annual_operating_cost    REAL    NOT NULL DEFAULT 0,
    annual_maintenance_cost  REAL    NOT NULL DEFAULT 0,
    annual_energy_savings    REAL    NOT NULL DEFAULT 0,
    annual_cost_avoidance    REAL    NOT NULL DEFAULT 0,
    discount_rate            REAL    NOT NULL,
    analysis_horizon_years   INTEGER NOT NULL,
    inflation_rate           REAL    NOT NULL DEFAULT 0,
    net_present_value        REAL    NOT NULL,
    internal_rate_of_return  REAL,
    return_on_investment     REAL    NOT NULL,
    payback_period_years     REAL,
    benefit_cost_ratio       REAL    NOT NULL,
    recommendation           TEXT    NOT NULL,
    analyzed_at              TEXT    NOT NULL
);
"""

_DDL_PORTFOLIO_SNAPSHOTS = """
CREATE TABLE IF NOT EXISTS portfolio_snapshots (
    snapshot_id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    snapshot_date               TEXT    NOT NULL,
    company_id                  INTEGER,
    total_replacement_value     REAL    NOT NULL DEFAULT 0,
    total_repair_cost           REAL    NOT NULL DEFAULT 0,
    portfolio_fci               REAL    NOT NULL DEFAULT 0,
    portfolio_ci                REAL,
    total_assets                INTEGER NOT NULL DEFAULT 0,
    assets_good_condition       INTEGER NOT NULL DEFAULT 0,
    assets_fair_condition       INTEGER NOT NULL DEFAULT 0,
    assets_poor_condition       INTEGER NOT NULL DEFAULT 0,
    total_deficiencies          INTEGER NOT NULL DEFAULT 0,
    critical_deficiencies       INTEGER NOT NULL DEFAULT 0,
    high_priority_deficiencies  INTEGER NOT NULL DEFAULT 0,
    inflation_rate              REAL,
    discount_rate               REAL
);
"""

_DDL_PORTFOLIO_SNAPSHOTS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_snapshots_company_date
    ON portfolio_snapshots(company_id, snapshot_date);
"""

_DDL_RUN_METADATA = """
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL,
    finished_at     TEXT
);
"""

_DDL_FORECAST_POINTS = """
CREATE TABLE IF NOT EXISTS forecast_points (
    forecast_id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id                         INTEGER REFERENCES run_metadata(run_id),
    company_id                     INTEGER,
    project_id                     INTEGER,
    asset_id                       INTEGER,
    forecast_date                  TEXT    NOT NULL,
    forecast_year                  INTEGER NOT NULL,
    horizon_years                  INTEGER NOT NULL,
    scenario_type                  TEXT    NOT NULL,
    predicted_maintenance_cost     REAL    NOT NULL,
    predicted_repair_cost          REAL    NOT NULL,
    predicted_replacement_cost     REAL    NOT NULL,
    predicted_capital_requirement  REAL    NOT NULL,
    predicted_fci                  REAL    NOT NULL,
    failure_probability            REAL    NOT NULL,
    risk_score                     REAL    NOT NULL,
    confidence_level               REAL    NOT NULL,
    prediction_model               TEXT    NOT NULL
);
"""

_DDL_FORECAST_POINTS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_forecast_scenario_year
    ON forecast_points(scenario_type, forecast_year);
"""

_ALL_DDL: list[str] = [
    _DDL_PROJECTS,
    _DDL_CRITERIA,
    _DDL_CRITERION_SCORES,
    _DDL_RECALCULATION_EPOCHS,
    _DDL_PRIORITY_SCORES,
    _DDL_PRIORITY_SCORES_INDEXES,
    _DDL_INVESTMENT_ANALYSES,
    _DDL_PORTFOLIO_SNAPSHOTS,
    _DDL_PORTFOLIO_SNAPSHOTS_INDEXES,
    _DDL_RUN_METADATA,
    _DDL_FORECAST_POINTS,
    _DDL_FORECAST_POINTS_INDEXES,
]

ALL_TABLE_NAMES: list[str] = [
    "projects",
    "criteria",
    "criterion_scores",
    "recalculation_epochs",
    "priority_scores",
    "investment_analyses",
    "portfolio_snapshots",
    "run_metadata",
    "forecast_points",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes. Idempotent.

    Args:
        conn: Open SQLite connection.
    """
    logger.info("Applying database schema (%d DDL blocks)...", len(_ALL_DDL))
    for ddl in _ALL_DDL:
        conn.executescript(ddl)
    conn.commit()
    logger.info("Schema applied successfully.")


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return the names of all user tables, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' "
        "AND name NOT LIKE 'sqlite_%' ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return the names of all user indexes, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' "
        "AND name NOT LIKE 'sqlite_%' ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]
