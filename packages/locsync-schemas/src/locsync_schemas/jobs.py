"""Translation job schemas."""

from __future__ import annotations

from pydantic import Field, model_validator

from locsync_schemas.base import BaseSchema
from locsync_schemas.files import FileKey
from locsync_schemas.primitives import (
    BranchId,
    FileId,
    JobId,
    JobStatus,
    LanguageCode,
    VersionId,
)


class EnqueueOptions(BaseSchema):
    """Options applied to one enqueue request."""

    source_locale: LanguageCode = Field(..., description="Source locale")
    target_locales: list[LanguageCode] = Field(
        ..., min_length=1, description="Locales to translate into"
    )
    publish: bool = Field(False, description="Publish translations when ready")
    require_approval: bool = Field(
        False, description="Stage output pending human sign-off"
    )
    force: bool = Field(
        False, description="Bypass the server-side unchanged-content skip"
    )
    model_provider: str | None = Field(None, description="Preferred model provider")

    @model_validator(mode="after")
    def validate_locales(self) -> EnqueueOptions:
        """Ensure target locales are unique and exclude the source.

        Returns:
            EnqueueOptions: Validated options.

        Raises:
            ValueError: If targets are duplicated or include the source locale.
        """
        if len(set(self.target_locales)) != len(self.target_locales):
            raise ValueError("target_locales must be unique")
        if self.source_locale in self.target_locales:
            raise ValueError("source_locale cannot be in target_locales")
        return self


class Job(BaseSchema):
    """Translation job for one file version and one target locale."""

    job_id: JobId = Field(..., description="Remote job identifier")
    source_file_id: FileId = Field(..., description="Source file identifier")
    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    branch_id: BranchId = Field(..., description="Branch identifier")
    target_locale: LanguageCode = Field(..., description="Target locale")
    force: bool = Field(False, description="Whether the job bypassed dedup")
    model_provider: str | None = Field(None, description="Model provider used")

    @property
    def key(self) -> FileKey:
        """Return the tuple key of the artifact this job produces."""
        return FileKey(
            self.branch_id, self.file_id, self.version_id, self.target_locale
        )


class EnqueueResult(BaseSchema):
    """Jobs created by one enqueue request."""

    jobs: list[Job] = Field(default_factory=list, description="Created jobs")
    locales: list[LanguageCode] = Field(
        default_factory=list, description="Locales covered by the request"
    )
    message: str | None = Field(None, description="Server message")


class JobStatusRecord(BaseSchema):
    """Remote status of one translation job."""

    job_id: JobId = Field(..., description="Remote job identifier")
    status: JobStatus = Field(..., description="Job state")
    error: str | None = Field(None, description="Failure reason if failed")
