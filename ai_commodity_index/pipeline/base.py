"""
Shared run wrapper for the index, accuracy, ranking and ingest stages.

Each subclass implements ``_execute(run, **kwargs) -> int`` (rows written).
``run(**kwargs)`` wraps it in a ``RunMetadata`` audit record that is stored
once on success or failure. A failing stage is recorded with its error and
the exception propagates to the caller (CLI or scheduler).

Usage::

    stage = CompositeIndexStage(config=app_config)
    run = stage.run(now=datetime(2025, 6, 1, tzinfo=timezone.utc))
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod

from ai_commodity_index.config import AppConfig
from ai_commodity_index.db.connection import get_connection
from ai_commodity_index.db.repositories.run_repo import RunMetadataRepository
from ai_commodity_index.models.meta import RunMetadata

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """A named unit of pipeline work bound to one database."""

    stage_name: str

    def __init__(self, config: AppConfig, db_path: str | None = None) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path

    def run(self, **kwargs) -> RunMetadata:
        """Execute the stage and return its finished run record."""
        run = RunMetadata.begin(self.stage_name, self.config.model_dump())
        context = {"stage": self.stage_name, "run_slug": run.run_slug}
        logger.info("Stage [%s] starting", self.stage_name, extra=context)

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.fail(exc)
            logger.error("Stage [%s] FAILED: %s", self.stage_name, exc, extra=context)
            self._persist_run(run)
            raise

        run.succeed(rows)
        logger.info(
            "Stage [%s] completed | rows=%d | %.2fs",
            self.stage_name, rows, run.duration_seconds or 0.0, extra=context,
        )
        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        ...

    def _connection(self):
        db = self.config.database
        return get_connection(
            self.db_path, wal_mode=db.wal_mode, busy_timeout_ms=db.busy_timeout_ms,
        )

    def _persist_run(self, run: RunMetadata) -> None:
        # A storage error here must not replace the stage's own exception.
        try:
            with self._connection() as conn:
                run.run_id = RunMetadataRepository(conn).insert_run(run)
        except sqlite3.Error as exc:
            logger.error("Could not store run record %s: %s", run.run_slug, exc)
