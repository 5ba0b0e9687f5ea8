"""Progress update schema streamed to progress observers."""

from __future__ import annotations

from pydantic import Field, model_validator

from locsync_schemas.base import BaseSchema
from locsync_schemas.events import ProgressEvent
from locsync_schemas.primitives import RunId, StageStatus, SyncStage, Timestamp


class ProgressUpdate(BaseSchema):
    """Incremental progress update suitable for logs or streaming."""

    run_id: RunId = Field(..., description="Run identifier")
    event: ProgressEvent = Field(..., description="Progress event name in snake_case")
    timestamp: Timestamp = Field(..., description="Update timestamp")
    stage: SyncStage | None = Field(None, description="Associated stage")
    stage_status: StageStatus | None = Field(
        None, description="Stage status for this update"
    )
    completed: int | None = Field(None, ge=0, description="Completed unit count")
    total: int | None = Field(None, ge=0, description="Total unit count when known")
    message: str | None = Field(None, description="Optional progress message")

    @model_validator(mode="after")
    def _validate_payload(self) -> ProgressUpdate:
        if self.stage_status is not None and self.stage is None:
            raise ValueError("stage is required when stage_status is provided")
        if self.completed is not None and self.total is not None:
            if self.completed > self.total:
                raise ValueError("completed cannot exceed total")
        if self.total is not None and self.completed is None:
            raise ValueError("completed is required when total is provided")
        return self
