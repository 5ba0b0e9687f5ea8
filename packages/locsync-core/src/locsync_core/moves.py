"""Rename detection by matching local content against orphaned files."""

from __future__ import annotations

from collections.abc import Iterable

from locsync_schemas.content import ContentUnit
from locsync_schemas.files import FileMove, OrphanedFile
from locsync_schemas.primitives import VersionId


def detect_moves(
    local_units: Iterable[ContentUnit], orphaned_files: Iterable[OrphanedFile]
) -> list[FileMove]:
    """Pair local units with orphans that carry identical content.

    Each orphan is consumed at most once. When several local units share the
    content of one orphan, the first unit in iteration order takes it. When
    several orphans share one version, the first one listed is matched.

    Args:
        local_units: Units of the current run.
        orphaned_files: Server-known files absent from the local set.

    Returns:
        list[FileMove]: Detected moves in local iteration order.
    """
    by_version: dict[VersionId, OrphanedFile] = {}
    for orphan in orphaned_files:
        by_version.setdefault(orphan.version_id, orphan)

    moves: list[FileMove] = []
    for unit in local_units:
        orphan = by_version.get(unit.version_id)
        if orphan is None or orphan.file_id == unit.file_id:
            continue
        moves.append(
            FileMove(
                old_file_id=orphan.file_id,
                new_file_id=unit.file_id,
                new_file_name=unit.file_name,
            )
        )
        del by_version[unit.version_id]
    return moves
