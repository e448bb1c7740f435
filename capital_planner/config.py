"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``CAPITAL_PLANNER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

CLI commands and pipeline stages receive an ``AppConfig`` instance. The numeric
engines themselves take plain keyword arguments whose defaults match the
values below, so they can be called without any configuration at all.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/capital_planner.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class ScoringConfig(BaseModel):
    """Composite scoring and ranking settings.

    ``ranked_criteria`` maps an active criterion's display name to the cache
    column that holds its raw score for quick filtering in ranked lists.
    Criteria not listed here are still scored; they just have no dedicated
    column in the cache.
    """

    model_config = ConfigDict(frozen=True)

    ranked_criteria: dict[str, str] = {
        "Urgency": "urgency_score",
        "Mission Criticality": "mission_criticality_score",
        "Safety": "safety_score",
        "Code Compliance": "compliance_score",
        "Energy Savings": "energy_savings_score",
    }
    cost_effectiveness_unit: float = 1000.0

    @field_validator("cost_effectiveness_unit")
    @classmethod
    def validate_unit(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"cost_effectiveness_unit must be > 0, got {v}.")
        return v


class InvestmentConfig(BaseModel):
    """IRR solver bounds and recommendation thresholds."""

    model_config = ConfigDict(frozen=True)

    irr_initial_guess: float = 0.10
    irr_max_iterations: int = 100
    irr_tolerance: float = 1e-4
    proceed_min_roi: float = 15.0
    proceed_max_payback: float = 5.0
    review_min_roi: float = 5.0

    @field_validator("irr_max_iterations")
    @classmethod
    def validate_iterations(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"irr_max_iterations must be in [1, 100], got {v}.")
        return v


class ForecastConfig(BaseModel):
    """Liability forecast settings."""

    model_config = ConfigDict(frozen=True)

    lookback_months: int = 24
    default_years: int = 5
    default_inflation_pct: float = 2.5
    confidence_step: float = 10.0
    scenario_multipliers: dict[str, float] = {
        "best_case": 0.7,
        "most_likely": 1.0,
        "worst_case": 1.3,
    }

    @field_validator("scenario_multipliers")
    @classmethod
    def validate_multipliers(cls, v: dict[str, float]) -> dict[str, float]:
        missing = {"best_case", "most_likely", "worst_case"} - set(v)
        if missing:
            raise ValueError(f"scenario_multipliers missing {sorted(missing)}.")
        if not 0.0 < v["best_case"] < 1.0 == v["most_likely"] < v["worst_case"]:
            raise ValueError(
                "scenario_multipliers must satisfy 0 < best_case < 1.0 == most_likely "
                f"< worst_case, got {v}."
            )
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/capital_planner.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    scoring: ScoringConfig = ScoringConfig()
    investment: InvestmentConfig = InvestmentConfig()
    forecast: ForecastConfig = ForecastConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CAPITAL_PLANNER_* env vars to the raw config dict.

    Supported overrides:
      CAPITAL_PLANNER_DB_PATH    → raw["database"]["db_path"]
      CAPITAL_PLANNER_LOG_LEVEL  → raw["logging"]["level"]
      CAPITAL_PLANNER_DEBUG      → raw["debug"]
    """
    if db_path := os.environ.get("CAPITAL_PLANNER_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("CAPITAL_PLANNER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("CAPITAL_PLANNER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        investment=InvestmentConfig(**raw.get("investment", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
