"""Primitive types and enums shared across locsync schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
LOCALE_PATTERN = r"^[A-Za-z]{2,3}(?:-[A-Za-z0-9]{2,8})*$"
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
SHA256_PATTERN = r"^[a-f0-9]{64}$"

type FileId = Annotated[str, Field(min_length=1)]
type VersionId = Annotated[str, Field(min_length=1)]
type BranchId = Annotated[str, Field(min_length=1)]
type JobId = Annotated[str, Field(min_length=1)]
type RunId = Annotated[str, Field(min_length=1)]
type ContentHash = Annotated[str, Field(pattern=SHA256_PATTERN)]
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type LanguageCode = Annotated[str, Field(pattern=LOCALE_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]


class SyncStage(StrEnum):
    """Sync pipeline stage names."""

    BRANCH = "branch"
    UPLOAD = "upload"
    ENQUEUE = "enqueue"
    POLL = "poll"
    DOWNLOAD = "download"


SYNC_STAGE_ORDER = [
    SyncStage.BRANCH,
    SyncStage.UPLOAD,
    SyncStage.ENQUEUE,
    SyncStage.POLL,
    SyncStage.DOWNLOAD,
]


class FileFormat(StrEnum):
    """File formats a content unit can carry."""

    GTJSON = "GTJSON"
    JSON = "JSON"
    YAML = "YAML"
    MDX = "MDX"
    MD = "MD"
    TS = "TS"
    JS = "JS"
    HTML = "HTML"
    TXT = "TXT"


class DataFormat(StrEnum):
    """Message syntax used inside a content unit."""

    JSX = "JSX"
    ICU = "ICU"
    I18NEXT = "I18NEXT"
    STRING = "STRING"


class JobStatus(StrEnum):
    """Remote translation job states."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"


class TrackerState(StrEnum):
    """Collections of the file status tracker."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    FAILED = "failed"
    SKIPPED = "skipped"


class StageStatus(StrEnum):
    """Stage execution status values."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SyncStatus(StrEnum):
    """Overall outcome of a sync invocation."""

    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class LogLevel(StrEnum):
    """Log level values for JSONL logs."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    FILE = "file"
    NOOP = "noop"
