"""Version ledger schemas for delivered translations."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.files import FileKey
from locsync_schemas.primitives import (
    BranchId,
    ContentHash,
    FileId,
    LanguageCode,
    Timestamp,
    VersionId,
)

LEDGER_FORMAT_VERSION = 1


class LedgerRecord(BaseSchema):
    """Delivery metadata for one (branch, file, version, locale)."""

    updated_at: Timestamp = Field(..., description="Last successful delivery time")
    post_process_hash: ContentHash = Field(
        ..., description="Hash of the file content as written to disk"
    )


class VersionLedgerEntry(BaseSchema):
    """Flat view of one ledger record."""

    file_id: FileId = Field(..., description="File identifier")
    branch_id: BranchId = Field(..., description="Branch identifier")
    version_id: VersionId = Field(..., description="Version identifier")
    locale: LanguageCode = Field(..., description="Target locale")
    updated_at: Timestamp = Field(..., description="Last successful delivery time")
    post_process_hash: ContentHash = Field(
        ..., description="Hash of the file content as written to disk"
    )

    @property
    def key(self) -> FileKey:
        """Return the tuple key for this entry."""
        return FileKey(self.branch_id, self.file_id, self.version_id, self.locale)


type LocaleRecords = dict[str, LedgerRecord]
type VersionRecords = dict[str, LocaleRecords]
type FileRecords = dict[str, VersionRecords]


class VersionLedger(BaseSchema):
    """Persisted map of branch -> file -> version -> locale -> record."""

    version: int = Field(
        LEDGER_FORMAT_VERSION, ge=1, description="Ledger file format version"
    )
    branches: dict[str, FileRecords] = Field(
        default_factory=dict, description="Delivered records keyed by branch"
    )

    def get(self, key: FileKey) -> LedgerRecord | None:
        """Look up the record for a file key.

        Returns:
            LedgerRecord | None: Stored record if present.
        """
        return (
            self.branches.get(key.branch_id, {})
            .get(key.file_id, {})
            .get(key.version_id, {})
            .get(key.locale)
        )

    def entries(self) -> Iterator[VersionLedgerEntry]:
        """Iterate all records as flat entries.

        Yields:
            VersionLedgerEntry: One entry per stored record.
        """
        for branch_id, files in self.branches.items():
            for file_id, versions in files.items():
                for version_id, locales in versions.items():
                    for locale, record in locales.items():
                        yield VersionLedgerEntry(
                            file_id=file_id,
                            branch_id=branch_id,
                            version_id=version_id,
                            locale=locale,
                            updated_at=record.updated_at,
                            post_process_hash=record.post_process_hash,
                        )
