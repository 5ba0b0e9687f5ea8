"""Result summary schemas for a completed sync invocation."""

from __future__ import annotations

from pydantic import Field, model_validator

from locsync_schemas.base import BaseSchema
from locsync_schemas.branches import Branch
from locsync_schemas.primitives import LanguageCode, RunId, SyncStatus
from locsync_schemas.responses import ErrorResponse


class UploadSummary(BaseSchema):
    """Partition counts produced by the upload stage."""

    uploaded: int = Field(0, ge=0, description="Units sent to the service")
    already_known: int = Field(0, ge=0, description="Units the service already had")
    moved: int = Field(0, ge=0, description="Units migrated from an old path")
    failed_moves: int = Field(
        0, ge=0, description="Migrations that failed and fell back to upload"
    )

    @property
    def total(self) -> int:
        """Return the number of units accounted for."""
        return self.uploaded + self.already_known + self.moved


class FailedTranslation(BaseSchema):
    """Translation that did not reach the project."""

    file_name: str = Field(..., min_length=1, description="Source file path")
    locale: LanguageCode = Field(..., description="Target locale")
    reason: str | None = Field(None, description="Failure reason when known")


class DownloadSummary(BaseSchema):
    """Counts produced by the download stage."""

    downloaded: int = Field(0, ge=0, description="Files written this run")
    up_to_date: int = Field(
        0, ge=0, description="Files skipped because the ledger matched disk"
    )
    skipped: int = Field(
        0, ge=0, description="Files excluded by the output path resolver"
    )
    failed: list[FailedTranslation] = Field(
        default_factory=list, description="Files still failing after retries"
    )
    written_paths: list[str] = Field(
        default_factory=list, description="Output paths written this run"
    )


class SyncSummary(BaseSchema):
    """Caller-visible outcome of one sync invocation."""

    run_id: RunId = Field(..., description="Run identifier")
    status: SyncStatus = Field(..., description="Overall outcome")
    branch: Branch | None = Field(None, description="Branch the run wrote to")
    upload: UploadSummary | None = Field(None, description="Upload stage counts")
    enqueued_jobs: int = Field(0, ge=0, description="Jobs created this run")
    completed: int = Field(0, ge=0, description="Translations ready this run")
    pending: int = Field(
        0, ge=0, description="Translations still in progress at timeout"
    )
    failed_translations: list[FailedTranslation] = Field(
        default_factory=list, description="Translations that failed remotely"
    )
    download: DownloadSummary | None = Field(
        None, description="Download stage counts"
    )
    error: ErrorResponse | None = Field(
        None, description="Invocation-wide error when the run failed"
    )

    @model_validator(mode="after")
    def validate_status(self) -> SyncSummary:
        """Ensure failed runs carry an error and succeeded runs do not.

        Returns:
            SyncSummary: Validated summary.

        Raises:
            ValueError: If error presence does not match the status.
        """
        if self.status == SyncStatus.FAILED and self.error is None:
            raise ValueError("failed runs must include an error")
        if self.status == SyncStatus.SUCCEEDED and self.error is not None:
            raise ValueError("succeeded runs must not include an error")
        return self
