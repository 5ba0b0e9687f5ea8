"""Stable identifiers for source files and their content."""

from __future__ import annotations

import hashlib

from locsync_schemas.content import ContentUnit
from locsync_schemas.primitives import (
    BranchId,
    ContentHash,
    DataFormat,
    FileFormat,
    FileId,
    LanguageCode,
    VersionId,
)


def hash_text(value: str | bytes) -> ContentHash:
    """Return the SHA-256 hex digest of text or bytes.

    Text is encoded as UTF-8 so the digest is identical across machines.

    Returns:
        ContentHash: Lowercase hex digest.
    """
    data = value.encode("utf-8") if isinstance(value, str) else value
    return hashlib.sha256(data).hexdigest()


def compute_file_id(file_name: str) -> FileId:
    """Compute the identifier of a logical file from its project-relative path.

    Returns:
        FileId: Hash of the file name.
    """
    return hash_text(file_name)


def compute_version_id(content: str | bytes) -> VersionId:
    """Compute the identifier of one exact piece of content.

    Returns:
        VersionId: Hash of the content.
    """
    return hash_text(content)


def build_content_unit(
    *,
    file_name: str,
    content: str,
    file_format: FileFormat,
    data_format: DataFormat,
    locale: LanguageCode,
    branch_id: BranchId | None = None,
) -> ContentUnit:
    """Build a content unit with identifiers derived from its name and content.

    Args:
        file_name: Project-relative source file path.
        content: Extracted source text.
        file_format: Container format.
        data_format: Message syntax.
        locale: Source locale.
        branch_id: Optional branch override.

    Returns:
        ContentUnit: Unit ready for the upload stage.
    """
    return ContentUnit(
        file_name=file_name,
        file_format=file_format,
        data_format=data_format,
        content=content,
        file_id=compute_file_id(file_name),
        version_id=compute_version_id(content),
        locale=locale,
        branch_id=branch_id,
    )
