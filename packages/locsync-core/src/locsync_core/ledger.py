"""Version ledger bookkeeping for delivered translations."""

from __future__ import annotations

from locsync_schemas.files import FileKey
from locsync_schemas.ledger import LedgerRecord, VersionLedger
from locsync_schemas.primitives import ContentHash, Timestamp


def record_delivery(
    ledger: VersionLedger,
    key: FileKey,
    *,
    post_process_hash: ContentHash,
    updated_at: Timestamp,
) -> LedgerRecord:
    """Store or overwrite the delivery record for a file key.

    Returns:
        LedgerRecord: The record now stored for the key.
    """
    record = LedgerRecord(updated_at=updated_at, post_process_hash=post_process_hash)
    versions = ledger.branches.setdefault(key.branch_id, {}).setdefault(
        key.file_id, {}
    )
    versions.setdefault(key.version_id, {})[key.locale] = record
    return record


def is_up_to_date(
    ledger: VersionLedger, key: FileKey, disk_hash: ContentHash | None
) -> bool:
    """Return whether the file on disk is exactly what was last delivered."""
    if disk_hash is None:
        return False
    record = ledger.get(key)
    return record is not None and record.post_process_hash == disk_hash
