"""locsync-core: Sync engine logic for locsync."""

from locsync_core.branches import BranchResolver
from locsync_core.identity import (
    build_content_unit,
    compute_file_id,
    compute_version_id,
    hash_text,
)
from locsync_core.moves import detect_moves
from locsync_core.orchestrator import SyncOrchestrator
from locsync_core.ports import (
    ApiError,
    ApiErrorCode,
    ApiErrorInfo,
    BranchDetectorProtocol,
    LedgerError,
    LedgerStoreProtocol,
    LogSinkProtocol,
    OutputError,
    OutputPathResolver,
    OutputWriterProtocol,
    ProgressSinkProtocol,
    SyncError,
    SyncErrorCode,
    SyncErrorInfo,
    TranslationApiProtocol,
)
from locsync_core.retry import backoff_delay, run_with_retries
from locsync_core.telemetry import SyncTelemetry, now_timestamp
from locsync_core.tracker import FileStatusTracker

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ApiErrorCode",
    "ApiErrorInfo",
    "BranchDetectorProtocol",
    "BranchResolver",
    "FileStatusTracker",
    "LedgerError",
    "LedgerStoreProtocol",
    "LogSinkProtocol",
    "OutputError",
    "OutputPathResolver",
    "OutputWriterProtocol",
    "ProgressSinkProtocol",
    "SyncError",
    "SyncErrorCode",
    "SyncErrorInfo",
    "SyncOrchestrator",
    "SyncTelemetry",
    "TranslationApiProtocol",
    "__version__",
    "backoff_delay",
    "build_content_unit",
    "compute_file_id",
    "compute_version_id",
    "detect_moves",
    "hash_text",
    "now_timestamp",
    "run_with_retries",
]
