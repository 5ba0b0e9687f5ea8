"""Ports consumed by the sync stages and the adapters that fulfil them."""

from locsync_core.ports.api import (
    RETRYABLE_API_ERROR_CODES,
    ApiError,
    ApiErrorCode,
    ApiErrorDetails,
    ApiErrorInfo,
    TranslationApiProtocol,
    is_retryable_api_error,
)
from locsync_core.ports.ledger import (
    LedgerError,
    LedgerErrorCode,
    LedgerErrorDetails,
    LedgerErrorInfo,
    LedgerStoreProtocol,
)
from locsync_core.ports.orchestrator import (
    LogSinkProtocol,
    ProgressSinkProtocol,
    SyncError,
    SyncErrorCode,
    SyncErrorDetails,
    SyncErrorInfo,
    build_stage_event_name,
    build_stage_log,
    build_sync_completed_log,
    build_sync_failed_log,
    build_sync_started_log,
)
from locsync_core.ports.output import (
    OutputError,
    OutputErrorCode,
    OutputErrorDetails,
    OutputErrorInfo,
    OutputPathResolver,
    OutputWriterProtocol,
)
from locsync_core.ports.vcs import BranchDetectorProtocol

__all__ = [
    "RETRYABLE_API_ERROR_CODES",
    "ApiError",
    "ApiErrorCode",
    "ApiErrorDetails",
    "ApiErrorInfo",
    "BranchDetectorProtocol",
    "LedgerError",
    "LedgerErrorCode",
    "LedgerErrorDetails",
    "LedgerErrorInfo",
    "LedgerStoreProtocol",
    "LogSinkProtocol",
    "OutputError",
    "OutputErrorCode",
    "OutputErrorDetails",
    "OutputErrorInfo",
    "OutputPathResolver",
    "OutputWriterProtocol",
    "ProgressSinkProtocol",
    "SyncError",
    "SyncErrorCode",
    "SyncErrorDetails",
    "SyncErrorInfo",
    "TranslationApiProtocol",
    "build_stage_event_name",
    "build_stage_log",
    "build_sync_completed_log",
    "build_sync_failed_log",
    "build_sync_started_log",
    "is_retryable_api_error",
]
