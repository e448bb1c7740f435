"""Tests for SQLite schema and migrations: idempotency, tables, indexes, constraints."""

from __future__ import annotations

import sqlite3

import pytest

from capital_planner.db.migrations import MIGRATIONS, run_migrations
from capital_planner.db.schema import (
    ALL_TABLE_NAMES,
    apply_schema,
    get_existing_indexes,
    get_existing_tables,
)


class TestApplySchema:
    def test_all_tables_created(self, in_memory_db):
        tables = get_existing_tables(in_memory_db)
        for expected_table in ALL_TABLE_NAMES:
            assert expected_table in tables, (
                f"Expected table '{expected_table}' not found. Found: {tables}"
            )

    def test_idempotent_double_apply(self, in_memory_db):
        apply_schema(in_memory_db)
        assert len(get_existing_tables(in_memory_db)) >= len(ALL_TABLE_NAMES)

    def test_key_indexes_created(self, in_memory_db):
        indexes = get_existing_indexes(in_memory_db)
        for idx in [
            "idx_priority_epoch_rank",
            "idx_snapshots_company_date",
            "idx_forecast_scenario_year",
            "idx_criteria_audit_criterion",
        ]:
            assert idx in indexes, f"Expected index '{idx}' not found. Found: {indexes}"


class TestMigrations:
    def test_audit_table_added(self, in_memory_db):
        assert "criteria_audit_log" in get_existing_tables(in_memory_db)

    def test_versions_recorded(self, in_memory_db):
        rows = in_memory_db.execute("SELECT version_id FROM schema_versions;").fetchall()
        assert {row[0] for row in rows} == set(MIGRATIONS)

    def test_second_run_applies_nothing(self, in_memory_db):
        assert run_migrations(in_memory_db) == 0


class TestConstraints:
    def test_fk_enforcement_is_on(self, in_memory_db):
        row = in_memory_db.execute("PRAGMA foreign_keys;").fetchone()
        assert row[0] == 1

    def test_score_for_unknown_project_rejected(self, in_memory_db):
        in_memory_db.execute("INSERT INTO criteria (name, weight) VALUES ('Urgency', 100);")
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO criterion_scores (project_id, criterion_id, score) VALUES (99, 1, 5);"
            )

    @pytest.mark.parametrize("weight", [-1.0, 100.5])
    def test_weight_range_checked(self, in_memory_db, weight):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO criteria (name, weight) VALUES ('X', ?);", (weight,)
            )

    def test_score_range_checked(self, in_memory_db):
        in_memory_db.execute("INSERT INTO projects (name) VALUES ('P');")
        in_memory_db.execute("INSERT INTO criteria (name, weight) VALUES ('U', 100);")
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO criterion_scores (project_id, criterion_id, score) VALUES (1, 1, 11);"
            )
