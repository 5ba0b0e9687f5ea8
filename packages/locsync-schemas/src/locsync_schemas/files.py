"""File addressing schemas exchanged between sync stages and the remote API."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import (
    BranchId,
    DataFormat,
    FileFormat,
    FileId,
    LanguageCode,
    Timestamp,
    VersionId,
)


class FileKey(NamedTuple):
    """Address of one translated artifact."""

    branch_id: str
    file_id: str
    version_id: str
    locale: str


class FileReference(BaseSchema):
    """Minimal cross-stage address of an uploaded source file."""

    file_id: FileId = Field(..., description="Hash of the file name")
    version_id: VersionId = Field(..., description="Hash of the content")
    branch_id: BranchId = Field(..., description="Branch the file lives on")
    file_name: str = Field(..., min_length=1, description="Source file path")
    file_format: FileFormat = Field(..., description="Container format")
    data_format: DataFormat = Field(..., description="Message syntax")
    locale: LanguageCode | None = Field(None, description="Source locale")


class OrphanedFile(BaseSchema):
    """Server-known file that is absent from this run's local set."""

    file_id: FileId = Field(..., description="Remote file identifier")
    version_id: VersionId = Field(..., description="Latest remote version")
    file_name: str = Field(..., min_length=1, description="Last known file name")


class FileMove(BaseSchema):
    """Detected rename carrying existing translations to a new path."""

    old_file_id: FileId = Field(..., description="Orphaned file identifier")
    new_file_id: FileId = Field(..., description="Local file identifier")
    new_file_name: str = Field(..., min_length=1, description="Local file name")


class FileMoveResult(BaseSchema):
    """Outcome of one server-side migration."""

    old_file_id: FileId = Field(..., description="Orphaned file identifier")
    new_file_id: FileId = Field(..., description="Local file identifier")
    success: bool = Field(..., description="Whether the migration succeeded")
    error: str | None = Field(None, description="Failure reason")


class SourceFileQuery(BaseSchema):
    """Lookup key for an existing source file record."""

    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    branch_id: BranchId = Field(..., description="Branch identifier")


class TranslatedFileQuery(SourceFileQuery):
    """Lookup key for an existing translated file record."""

    locale: LanguageCode = Field(..., description="Target locale")

    @property
    def key(self) -> FileKey:
        """Return the tuple key for this query."""
        return FileKey(self.branch_id, self.file_id, self.version_id, self.locale)


class SourceFileRecord(BaseSchema):
    """Source file version the remote service already holds."""

    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    branch_id: BranchId = Field(..., description="Branch identifier")
    file_name: str | None = Field(None, description="File name if reported")


class TranslatedFileRecord(BaseSchema):
    """Translated artifact state reported by the remote service."""

    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    branch_id: BranchId = Field(..., description="Branch identifier")
    locale: LanguageCode = Field(..., description="Target locale")
    completed_at: Timestamp | None = Field(
        None, description="Completion timestamp; null while not ready"
    )

    @property
    def key(self) -> FileKey:
        """Return the tuple key for this record."""
        return FileKey(self.branch_id, self.file_id, self.version_id, self.locale)


class FileQueryResult(BaseSchema):
    """Matched source and translated file records."""

    source_files: list[SourceFileRecord] = Field(
        default_factory=list, description="Matched source file records"
    )
    translated_files: list[TranslatedFileRecord] = Field(
        default_factory=list, description="Matched translated file records"
    )


class SourceFileUpload(BaseSchema):
    """Source file payload sent to the remote service."""

    file_name: str = Field(..., min_length=1, description="Source file path")
    file_format: FileFormat = Field(..., description="Container format")
    data_format: DataFormat = Field(..., description="Message syntax")
    content: str = Field(..., description="Source content")
    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    branch_id: BranchId = Field(..., description="Branch identifier")
    locale: LanguageCode = Field(..., description="Source locale")
    incoming_branch_id: BranchId | None = Field(
        None, description="Lineage hint: most recently merged branch"
    )
    checked_out_branch_id: BranchId | None = Field(
        None, description="Lineage hint: branch this one was created from"
    )


class TargetFile(BaseSchema):
    """One source file version paired with one target locale."""

    branch_id: BranchId = Field(..., description="Branch identifier")
    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    locale: LanguageCode = Field(..., description="Target locale")
    file_name: str = Field(..., min_length=1, description="Source file path")

    @property
    def key(self) -> FileKey:
        """Return the tuple key for this target."""
        return FileKey(self.branch_id, self.file_id, self.version_id, self.locale)

    def to_query(self) -> TranslatedFileQuery:
        """Build the translated file lookup for this target.

        Returns:
            TranslatedFileQuery: Query addressing this target.
        """
        return TranslatedFileQuery(
            file_id=self.file_id,
            version_id=self.version_id,
            branch_id=self.branch_id,
            locale=self.locale,
        )


class DownloadedFile(BaseSchema):
    """Translated artifact returned by the batch download endpoint."""

    branch_id: BranchId = Field(..., description="Branch identifier")
    file_id: FileId = Field(..., description="File identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    locale: LanguageCode = Field(..., description="Target locale")
    data: str = Field(..., description="Translated file content")

    @property
    def key(self) -> FileKey:
        """Return the tuple key for this artifact."""
        return FileKey(self.branch_id, self.file_id, self.version_id, self.locale)
