"""JSONL log entry schema for sync events."""

from __future__ import annotations

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import (
    EventName,
    JsonValue,
    LogLevel,
    RunId,
    SyncStage,
    Timestamp,
)


class LogEntry(BaseSchema):
    """Single log line in JSONL format."""

    timestamp: Timestamp = Field(
        ..., description="ISO-8601 timestamp for the log entry"
    )
    level: LogLevel = Field(..., description="Log level")
    event: EventName = Field(..., description="Event name")
    run_id: RunId = Field(..., description="Sync run identifier")
    stage: SyncStage | None = Field(None, description="Sync stage if applicable")
    message: str = Field(..., min_length=1, description="Log message")
    data: dict[str, JsonValue] | None = Field(None, description="Structured event data")
