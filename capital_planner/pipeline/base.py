"""
Abstract base class for all pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` inserts a ``RunMetadata`` record (status ``started``), calls
     ``_execute()``, then updates the record with the final status.
  4. ``_execute()`` is the stage-specific implementation.

The run row is written before ``_execute()`` so rows produced by the stage
(e.g. forecast points) can reference ``run.run_id``.

Usage::

    class MyStage(PipelineStage):
        stage_name = "forecast"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    stage = MyStage(config=app_config)
    run = stage.run(forecast_years=5)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from capital_planner.config import AppConfig
from capital_planner.models.meta import RunMetadata
from capital_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for all pipeline stages.

    Attributes:
        stage_name: String identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
        db_path: Path to the SQLite database (defaults to ``config.database.db_path``).
    """

    stage_name: str

    def __init__(
        self,
        config: AppConfig,
        db_path: str | None = None,
    ) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path

    def run(self, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Args:
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed``
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(mode="json"),
            started_at=utcnow(),
        )
        logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)
        self._persist_run(run)

        try:
            rows = self._execute(run=run, **kwargs)
            run.status = "success"
            run.rows_processed = rows
            run.finished_at = utcnow()
            logger.info(
                "Stage [%s] completed | rows=%d | run_slug=%s",
                self.stage_name, rows, run.run_slug,
            )

        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._persist_run(run)
            raise

        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of rows/records processed.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> None:
        """Insert or update the ``RunMetadata`` record.

        Errors are logged rather than raised so a bookkeeping failure never
        masks the stage's own error.
        """
        try:
            from capital_planner.db.connection import get_connection
            from capital_planner.db.repositories.run_repo import RunMetadataRepository

            with get_connection(
                self.db_path,
                wal_mode=self.config.database.wal_mode,
                busy_timeout_ms=self.config.database.busy_timeout_ms,
            ) as conn:
                repo = RunMetadataRepository(conn)
                if run.run_id is None:
                    run.run_id = repo.insert_run(run)
                else:
                    repo.update_run(run)
        except Exception as exc:
            logger.error(
                "Failed to persist RunMetadata for run_slug=%s: %s",
                run.run_slug, exc,
            )
