"""Unit tests for sync data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from locsync_schemas.branches import Branch
from locsync_schemas.content import ContentUnit
from locsync_schemas.events import ProgressEvent
from locsync_schemas.files import FileKey, TargetFile, TranslatedFileRecord
from locsync_schemas.jobs import EnqueueOptions
from locsync_schemas.ledger import LedgerRecord, VersionLedger
from locsync_schemas.primitives import (
    DataFormat,
    FileFormat,
    StageStatus,
    SyncStage,
    SyncStatus,
)
from locsync_schemas.progress import ProgressUpdate
from locsync_schemas.responses import ErrorResponse
from locsync_schemas.results import SyncSummary

HASH = "a" * 64


@pytest.mark.unit
def test_content_is_never_stripped() -> None:
    """Whitespace in content and names survives validation."""
    unit = ContentUnit(
        file_name=" spaced.json",
        file_format=FileFormat.JSON,
        data_format=DataFormat.ICU,
        content="  padded\n",
        file_id="f",
        version_id="v",
        locale="en",
    )

    assert unit.content == "  padded\n"
    assert unit.file_name == " spaced.json"


@pytest.mark.unit
def test_wire_payloads_use_camel_case() -> None:
    """Remote records parse from camelCase JSON and dump back to it."""
    record = TranslatedFileRecord.model_validate_json(
        '{"fileId": "f", "versionId": "v", "branchId": "b", "locale": "es",'
        ' "completedAt": "2026-10-18T12:00:00Z", "unknownField": 1}'
    )

    assert record.key == FileKey("b", "f", "v", "es")
    assert record.model_dump(by_alias=True)["completedAt"] == "2026-10-18T12:00:00Z"


@pytest.mark.unit
def test_file_key_is_a_tuple() -> None:
    """Keys compare by value and cannot collide on delimiters."""
    target = TargetFile(
        branch_id="b:1", file_id="f", version_id="v", locale="es", file_name="x"
    )

    assert target.key == ("b:1", "f", "v", "es")
    assert target.key != FileKey("b", "1:f", "v", "es")
    assert target.to_query().key == target.key


@pytest.mark.unit
def test_enqueue_options_reject_source_in_targets() -> None:
    """The source locale is never a translation target."""
    with pytest.raises(ValidationError):
        EnqueueOptions(source_locale="en", target_locales=["en", "es"])


@pytest.mark.unit
def test_progress_update_requires_stage_for_status() -> None:
    """A stage status without a stage is rejected."""
    with pytest.raises(ValidationError):
        ProgressUpdate(
            run_id="run",
            event=ProgressEvent.STAGE_STARTED,
            timestamp="2026-10-18T12:00:00Z",
            stage_status=StageStatus.RUNNING,
        )


@pytest.mark.unit
def test_progress_update_bounds_completed_by_total() -> None:
    """Completed counts cannot exceed the total."""
    with pytest.raises(ValidationError):
        ProgressUpdate(
            run_id="run",
            event=ProgressEvent.STAGE_PROGRESS,
            timestamp="2026-10-18T12:00:00Z",
            stage=SyncStage.POLL,
            completed=3,
            total=2,
        )


@pytest.mark.unit
def test_summary_error_matches_status() -> None:
    """Failed runs carry an error; succeeded runs never do."""
    error = ErrorResponse(code="download_failed", message="nothing delivered")
    with pytest.raises(ValidationError):
        SyncSummary(run_id="run", status=SyncStatus.FAILED)
    with pytest.raises(ValidationError):
        SyncSummary(run_id="run", status=SyncStatus.SUCCEEDED, error=error)

    summary = SyncSummary(
        run_id="run",
        status=SyncStatus.FAILED,
        branch=Branch(id="b", name="main"),
        error=error,
    )
    assert summary.error == error


@pytest.mark.unit
def test_ledger_round_trips_through_json() -> None:
    """The ledger file uses camelCase record fields."""
    ledger = VersionLedger(
        branches={
            "b": {
                "f": {
                    "v": {
                        "es": LedgerRecord(
                            updated_at="2026-10-18T12:00:00Z",
                            post_process_hash=HASH,
                        )
                    }
                }
            }
        }
    )

    dumped = ledger.model_dump(mode="json", by_alias=True)
    restored = VersionLedger.model_validate_json(ledger.model_dump_json(by_alias=True))

    assert dumped["branches"]["b"]["f"]["v"]["es"]["postProcessHash"] == HASH
    assert restored.get(FileKey("b", "f", "v", "es")) == ledger.get(
        FileKey("b", "f", "v", "es")
    )
    assert restored.get(FileKey("b", "f", "v", "fr")) is None
    assert [entry.locale for entry in restored.entries()] == ["es"]


@pytest.mark.unit
def test_ledger_rejects_malformed_hash() -> None:
    """Post-process hashes are SHA-256 hex digests."""
    with pytest.raises(ValidationError):
        LedgerRecord(updated_at="2026-10-18T12:00:00Z", post_process_hash="nope")
