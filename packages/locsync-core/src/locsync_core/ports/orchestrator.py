"""Protocol definitions and helpers for sync orchestration."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.events import (
    StageEventData,
    StageEventSuffix,
    SyncCompletedData,
    SyncEvent,
    SyncFailedData,
    SyncStartedData,
)
from locsync_schemas.logs import LogEntry
from locsync_schemas.primitives import (
    JsonValue,
    LogLevel,
    RunId,
    SyncStage,
    SyncStatus,
    Timestamp,
)
from locsync_schemas.progress import ProgressUpdate
from locsync_schemas.responses import ErrorDetails, ErrorResponse


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Protocol for emitting JSONL log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Emit a log entry."""
        raise NotImplementedError


@runtime_checkable
class ProgressSinkProtocol(Protocol):
    """Protocol for emitting progress updates."""

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Emit a progress update."""
        raise NotImplementedError


class SyncErrorCode(StrEnum):
    """Categorized error codes for invocation-wide sync failures."""

    MISSING_SOURCE_LOCALE = "missing_source_locale"
    NO_TARGET_LOCALES = "no_target_locales"
    MISSING_CREDENTIALS = "missing_credentials"
    BRANCH_UNRESOLVABLE = "branch_unresolvable"
    UPLOAD_FAILED = "upload_failed"
    ENQUEUE_FAILED = "enqueue_failed"
    DOWNLOAD_FAILED = "download_failed"


class SyncErrorDetails(BaseSchema):
    """Detailed sync error context."""

    stage: SyncStage | None = Field(None, description="Stage associated with error")
    branch_name: str | None = Field(None, description="Branch name if applicable")
    reason: str | None = Field(None, description="Additional error context")


class SyncErrorInfo(BaseSchema):
    """Structured sync error data."""

    code: SyncErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: SyncErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert sync error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.stage is not None:
            details = ErrorDetails(
                field="stage",
                provided=self.details.stage.value,
                valid_options=None,
            )
        return ErrorResponse(
            code=self.code.value, message=self.message, details=details
        )


class SyncError(Exception):
    """Sync error with structured details."""

    def __init__(self, info: SyncErrorInfo) -> None:
        """Initialize the sync error.

        Args:
            info: Structured sync error information.
        """
        super().__init__(info.message)
        self.info = info


def build_sync_started_log(
    timestamp: Timestamp, run_id: RunId, stages: list[SyncStage], unit_count: int
) -> LogEntry:
    """Build a log entry for sync start.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Sync run identifier.
        stages: Planned stages for the run.
        unit_count: Number of content units handed in.

    Returns:
        LogEntry: Structured sync start log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=SyncEvent.STARTED,
        run_id=run_id,
        stage=None,
        message="Sync started",
        data=SyncStartedData(stages=stages, unit_count=unit_count).model_dump(
            mode="json", exclude_none=True
        ),
    )


def build_sync_completed_log(
    timestamp: Timestamp, run_id: RunId, status: SyncStatus
) -> LogEntry:
    """Build a log entry for sync completion.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Sync run identifier.
        status: Final sync status.

    Returns:
        LogEntry: Structured sync completion log entry.
    """
    level = LogLevel.INFO if status == SyncStatus.SUCCEEDED else LogLevel.WARN
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=SyncEvent.COMPLETED,
        run_id=run_id,
        stage=None,
        message="Sync completed",
        data=SyncCompletedData(status=status).model_dump(
            mode="json", exclude_none=True
        ),
    )


def build_sync_failed_log(
    timestamp: Timestamp,
    run_id: RunId,
    message: str,
    error_code: str,
    why: str,
) -> LogEntry:
    """Build a log entry for sync failure.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Sync run identifier.
        message: Failure message.
        error_code: Error code describing the failure.
        why: Reason for the failure.

    Returns:
        LogEntry: Structured sync failure log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=SyncEvent.FAILED,
        run_id=run_id,
        stage=None,
        message=message,
        data=SyncFailedData(error_code=error_code, why=why).model_dump(
            mode="json", exclude_none=True
        ),
    )


def build_stage_event_name(stage: SyncStage, suffix: StageEventSuffix) -> str:
    """Build a stage-specific event name.

    Args:
        stage: Stage name.
        suffix: Event suffix (e.g., started, completed).

    Returns:
        str: Event name in snake_case.
    """
    return f"{stage.value}_{suffix.value}"


def build_stage_log(
    timestamp: Timestamp,
    run_id: RunId,
    stage: SyncStage,
    event_suffix: StageEventSuffix,
    message: str,
    data: dict[str, JsonValue] | None = None,
    level: LogLevel = LogLevel.INFO,
) -> LogEntry:
    """Build a log entry for a stage lifecycle event.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Sync run identifier.
        stage: Stage name.
        event_suffix: Event suffix (started/completed/failed/skipped).
        message: Log message.
        data: Structured event data.
        level: Log level.

    Returns:
        LogEntry: Structured stage log entry.
    """
    payload = StageEventData(stage=stage).model_dump(mode="json")
    extra = {key: value for key, value in (data or {}).items() if key != "stage"}
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=build_stage_event_name(stage, event_suffix),
        run_id=run_id,
        stage=stage,
        message=message,
        data={**payload, **extra},
    )
