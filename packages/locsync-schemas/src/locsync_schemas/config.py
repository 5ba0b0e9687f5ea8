"""Configuration schemas for locsync runs."""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import LanguageCode, LogLevel, LogSinkType

DEFAULT_API_BASE_URL = "https://api2.gtx.dev"
DEFAULT_LEDGER_PATH = ".locsync/versions.json"


class LogSinkConfig(BaseSchema):
    """Configuration for a single log sink."""

    type: LogSinkType = Field(..., description="Log sink type (console|file|noop)")
    path: str | None = Field(None, description="Output path for file sinks")
    level: LogLevel | None = Field(
        None,
        description="Minimum level written (file: debug, console: info by default)",
    )

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> LogSinkType:
        if isinstance(value, LogSinkType):
            return value
        if isinstance(value, str):
            return LogSinkType(value)
        return value  # type: ignore[return-value]

    @field_validator("level", mode="before")
    @classmethod
    def _coerce_level(cls, value: object) -> LogLevel | None:
        if isinstance(value, str):
            return LogLevel(value)
        return value  # type: ignore[return-value]


class LoggingConfig(BaseSchema):
    """Logging configuration for sync runs."""

    sinks: list[LogSinkConfig] = Field(
        default_factory=lambda: [LogSinkConfig(type=LogSinkType.CONSOLE)],
        min_length=1,
        description="Log sinks to enable",
    )

    @model_validator(mode="after")
    def validate_sink_types(self) -> LoggingConfig:
        """Ensure log sink types are unique.

        Returns:
            LoggingConfig: Validated logging configuration.

        Raises:
            ValueError: If sink types are duplicated.
        """
        sink_types = [sink.type for sink in self.sinks]
        if len(set(sink_types)) != len(sink_types):
            raise ValueError("log sinks must not contain duplicates")
        return self


class ApiConfig(BaseSchema):
    """Remote translation service connection settings."""

    base_url: str = Field(
        DEFAULT_API_BASE_URL, min_length=1, description="API base URL"
    )
    project_id: str = Field(..., min_length=1, description="Remote project id")
    api_key_env: str = Field(
        "LOCSYNC_API_KEY",
        min_length=1,
        description="Environment variable holding the API key",
    )
    timeout_s: float = Field(60.0, gt=0, description="Request timeout in seconds")


class LanguageConfig(BaseSchema):
    """Language settings for a run."""

    source_language: LanguageCode = Field(..., description="Source language code")
    target_languages: list[LanguageCode] = Field(
        ..., min_length=1, description="Target language codes"
    )

    @model_validator(mode="after")
    def validate_language_pairs(self) -> LanguageConfig:
        """Ensure target languages are unique and exclude source.

        Returns:
            LanguageConfig: Validated language configuration.

        Raises:
            ValueError: If targets are duplicated or include the source language.
        """
        unique_targets = set(self.target_languages)
        if len(unique_targets) != len(self.target_languages):
            raise ValueError("target_languages must be unique")
        if self.source_language in unique_targets:
            raise ValueError("source_language cannot be in target_languages")
        return self


class BranchOptions(BaseSchema):
    """Branch resolution settings."""

    enabled: bool = Field(False, description="Track translations per branch")
    auto_detect: bool = Field(
        True, description="Detect branch names from version control"
    )
    remote_name: str = Field("origin", min_length=1, description="VCS remote name")
    current_branch: str | None = Field(
        None, description="Explicit branch name override"
    )
    default_branch_name: str = Field(
        "main",
        min_length=1,
        description="Name used when the default branch must be created",
    )


class EnqueueConfig(BaseSchema):
    """Enqueue request settings."""

    publish: bool = Field(False, description="Publish translations when ready")
    require_approval: bool = Field(
        False, description="Stage output pending human sign-off"
    )
    force: bool = Field(False, description="Force retranslation of unchanged files")
    model_provider: str | None = Field(None, description="Preferred model provider")


class RetryConfig(BaseSchema):
    """Retry policy for external requests."""

    max_retries: int = Field(3, ge=0, description="Maximum retry attempts")
    backoff_s: float = Field(1.0, gt=0, description="Initial backoff in seconds")
    max_backoff_s: float = Field(
        30.0, gt=0, description="Maximum backoff delay in seconds"
    )


class PollConfig(BaseSchema):
    """Job status polling settings."""

    interval_s: float = Field(5.0, gt=0, description="Seconds between checks")
    timeout_s: float = Field(
        600.0, ge=0, description="Seconds to wait before giving up"
    )


class DownloadConfig(BaseSchema):
    """Artifact download settings."""

    retry: RetryConfig = Field(
        default_factory=RetryConfig, description="Batch retry policy"
    )
    force_download: bool = Field(
        False, description="Download even when the ledger shows the file current"
    )
    clear_locale_dirs: bool = Field(
        False, description="Experimental: clear target locale dirs before writing"
    )
    clear_locale_dirs_exclude: list[str] = Field(
        default_factory=list, description="Glob patterns kept when clearing"
    )


class SyncConfig(BaseSchema):
    """Top-level configuration for one sync invocation."""

    project_dir: str = Field(".", min_length=1, description="Project root directory")
    ledger_path: str = Field(
        DEFAULT_LEDGER_PATH,
        min_length=1,
        description="Version ledger path, relative to the project root",
    )
    api: ApiConfig = Field(..., description="Remote service settings")
    languages: LanguageConfig = Field(..., description="Language settings")
    branches: BranchOptions = Field(
        default_factory=BranchOptions, description="Branch resolution settings"
    )
    enqueue: EnqueueConfig = Field(
        default_factory=EnqueueConfig, description="Enqueue settings"
    )
    poll: PollConfig = Field(default_factory=PollConfig, description="Poll settings")
    download: DownloadConfig = Field(
        default_factory=DownloadConfig, description="Download settings"
    )
    upload_retry: RetryConfig = Field(
        default_factory=RetryConfig, description="Upload request retry policy"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging settings"
    )
