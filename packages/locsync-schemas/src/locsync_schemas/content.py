"""Content unit schema handed to the sync engine by source extractors."""

from __future__ import annotations

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import (
    BranchId,
    DataFormat,
    FileFormat,
    FileId,
    LanguageCode,
    VersionId,
)


class ContentUnit(BaseSchema):
    """One extracted source file ready for translation.

    ``file_id`` is the hash of ``file_name`` and ``version_id`` the hash of
    ``content``. Renaming a file changes only ``file_id``; editing it changes
    only ``version_id``.
    """

    file_name: str = Field(
        ..., min_length=1, description="Project-relative source file path"
    )
    file_format: FileFormat = Field(..., description="Container format")
    data_format: DataFormat = Field(..., description="Message syntax")
    content: str = Field(..., description="Stable extracted source text")
    file_id: FileId = Field(..., description="Hash of the file name")
    version_id: VersionId = Field(..., description="Hash of the content")
    locale: LanguageCode = Field(..., description="Source locale of the content")
    branch_id: BranchId | None = Field(
        None, description="Branch override; defaults to the resolved branch"
    )
