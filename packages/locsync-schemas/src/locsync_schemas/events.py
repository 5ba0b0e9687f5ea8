"""Event taxonomy and structured payloads for sync observability."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import SyncStage, SyncStatus


class SyncEvent(StrEnum):
    """Event names for the sync lifecycle."""

    STARTED = "sync_started"
    COMPLETED = "sync_completed"
    FAILED = "sync_failed"


class StageEventSuffix(StrEnum):
    """Suffixes for stage lifecycle events."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ProgressEvent(StrEnum):
    """Event names for progress updates."""

    SYNC_STARTED = "sync_started"
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"
    STAGE_STARTED = "stage_started"
    STAGE_PROGRESS = "stage_progress"
    STAGE_COMPLETED = "stage_completed"
    STAGE_FAILED = "stage_failed"


class BranchEvent(StrEnum):
    """Event names emitted while resolving branches."""

    RESOLVED = "branch_resolved"
    FALLBACK = "branch_fallback"
    CREATED = "branch_created"


class UploadEvent(StrEnum):
    """Event names emitted by the upload stage."""

    MOVES_DETECTED = "moves_detected"
    MOVES_FAILED = "moves_failed"
    RETRY = "upload_retry"


class PollEvent(StrEnum):
    """Event names emitted by the poll stage."""

    STATUS_CHECK_FAILED = "status_check_failed"
    TIMED_OUT = "poll_timed_out"
    TRANSLATION_FAILED = "translation_failed"
    RETRANSLATION_FAILED = "retranslation_failed"


class DownloadEvent(StrEnum):
    """Event names emitted by the download stage."""

    RETRY = "download_retry"
    FILE_FAILED = "download_file_failed"
    LOCALE_DIRS_CLEARED = "locale_dirs_cleared"
    LOCALE_DIRS_CLEAR_FAILED = "locale_dirs_clear_failed"
    LEDGER_UPDATED = "ledger_updated"
    LEDGER_READ_FAILED = "ledger_read_failed"
    LEDGER_WRITE_FAILED = "ledger_write_failed"


class SyncStartedData(BaseSchema):
    """Payload for sync start events."""

    stages: list[SyncStage] = Field(..., description="Planned stages for the run")
    unit_count: int = Field(..., ge=0, description="Content units handed in")


class SyncCompletedData(BaseSchema):
    """Payload for sync completion events."""

    status: SyncStatus = Field(..., description="Final sync status")


class SyncFailedData(BaseSchema):
    """Payload for sync failure events."""

    error_code: str = Field(..., min_length=1, description="Error code")
    why: str = Field(..., min_length=1, description="Reason for failure")


class StageEventData(BaseSchema):
    """Payload for stage lifecycle events."""

    stage: SyncStage = Field(..., description="Stage name")


class DownloadRetryData(BaseSchema):
    """Payload for download retry events."""

    attempt: int = Field(..., ge=1, description="Attempt about to run")
    pending: int = Field(..., ge=1, description="Files still to download")
    delay_s: float = Field(..., ge=0, description="Backoff before the attempt")
