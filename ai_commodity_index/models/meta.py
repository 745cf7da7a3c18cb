"""
Audit record for one pipeline stage run.

A run starts as ``"started"`` and ends exactly once, as ``"success"`` (with a
row count) or ``"failed"`` (with the error text). ``config_snapshot`` holds the
``AppConfig`` dump in effect, so any stored index snapshot or ranking can be
traced to the settings that produced it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, field_validator

from ai_commodity_index.utils.time_utils import utcnow

VALID_PIPELINE_STAGES = frozenset({
    "composite_index", "accuracy_metrics", "model_ranking", "price_ingest",
})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """One row of ``run_metadata``; mutable until the run finishes.

    ``run_id`` stays ``None`` until the repository inserts the row.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    run_id: Optional[int] = None
    run_slug: str
    pipeline_stage: str
    status: str = "started"
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @classmethod
    def begin(cls, stage: str, config_snapshot: dict[str, Any]) -> "RunMetadata":
        """Open a new run for ``stage`` with a fresh UUID slug."""
        return cls(
            run_slug=str(uuid4()),
            pipeline_stage=stage,
            config_snapshot=config_snapshot,
            started_at=utcnow(),
        )

    def succeed(self, rows: int) -> None:
        self.rows_processed = rows
        self.finished_at = utcnow()
        self.status = "success"

    def fail(self, error: BaseException | str) -> None:
        self.error_message = str(error)
        self.finished_at = utcnow()
        self.status = "failed"

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"pipeline_stage '{v}' is not a known stage: {sorted(VALID_PIPELINE_STAGES)}"
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(f"status '{v}' must be one of {sorted(VALID_RUN_STATUSES)}")
        return v
