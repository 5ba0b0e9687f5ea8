"""Unit tests for the upload stage."""

from __future__ import annotations

import pytest

from locsync_core.ports.api import ApiErrorCode
from locsync_core.ports.orchestrator import SyncError, SyncErrorCode
from locsync_core.stages.upload import UploadResult, upload_sources
from locsync_core.telemetry import SyncTelemetry
from locsync_schemas.branches import Branch, BranchContext
from locsync_schemas.config import RetryConfig
from locsync_schemas.content import ContentUnit
from locsync_schemas.events import UploadEvent
from locsync_schemas.files import OrphanedFile
from tests.helpers.builders import make_unit
from tests.helpers.fakes import (
    MAIN,
    FakeClock,
    FakeTranslationApi,
    RecordingLogSink,
    api_error,
)

CONTEXT = BranchContext(current_branch=MAIN)


async def _upload(
    units: list[ContentUnit],
    api: FakeTranslationApi,
    telemetry: SyncTelemetry,
    clock: FakeClock | None = None,
    context: BranchContext = CONTEXT,
) -> UploadResult:
    return await upload_sources(
        units,
        context,
        api=api,
        telemetry=telemetry,
        source_locale="en",
        retry=RetryConfig(max_retries=2, backoff_s=1.0),
        sleep=(clock or FakeClock()).sleep,
    )


def _orphan_of(unit: ContentUnit, old_name: str) -> OrphanedFile:
    old = make_unit(old_name, unit.content)
    return OrphanedFile(
        file_id=old.file_id, version_id=old.version_id, file_name=old_name
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_new_units_are_uploaded(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """Units unknown to the service are uploaded on the current branch."""
    units = [make_unit("home.json", "{}"), make_unit("about.json", '{"a": 1}')]

    result = await _upload(units, api, telemetry)

    assert result.summary.uploaded == 2
    assert [ref.file_id for ref in result.references] == [
        unit.file_id for unit in units
    ]
    assert {upload.branch_id for upload in api.uploads} == {MAIN.id}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_second_run_uploads_nothing(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """Re-running with identical units and no server change is a no-op upload."""
    units = [make_unit("home.json", "{}"), make_unit("about.json", '{"a": 1}')]
    await _upload(units, api, telemetry)

    again = await _upload(units, api, telemetry)

    assert again.summary.uploaded == 0
    assert again.summary.already_known == 2
    assert len(again.references) == 2
    assert api.call_names().count("upload_source_files") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_moved_file_is_migrated_not_uploaded(
    api: FakeTranslationApi,
    telemetry: SyncTelemetry,
    log_sink: RecordingLogSink,
) -> None:
    """A renamed file keeps its translations through a server-side move."""
    unit = make_unit("pages/home.json", '{"title": "Home"}')
    api.orphans.append(_orphan_of(unit, "home.json"))

    result = await _upload([unit], api, telemetry)

    assert result.summary.moved == 1
    assert result.summary.uploaded == 0
    assert "upload_source_files" not in api.call_names()
    assert [move.new_file_id for move in result.moves] == [unit.file_id]
    assert UploadEvent.MOVES_DETECTED in log_sink.events()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_migration_degrades_to_upload(
    api: FakeTranslationApi,
    telemetry: SyncTelemetry,
    log_sink: RecordingLogSink,
) -> None:
    """A migration the service rejects is uploaded instead, with a warning."""
    unit = make_unit("pages/home.json", '{"title": "Home"}')
    api.orphans.append(_orphan_of(unit, "home.json"))
    api.failed_moves.add(unit.file_id)

    result = await _upload([unit], api, telemetry)

    assert result.summary.uploaded == 1
    assert result.summary.moved == 0
    assert result.summary.failed_moves == 1
    assert UploadEvent.MOVES_FAILED in log_sink.events()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_move_request_error_degrades_every_move(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """A failed migration request never aborts the upload."""
    unit = make_unit("pages/home.json", '{"title": "Home"}')
    api.orphans.append(_orphan_of(unit, "home.json"))
    api.errors["process_file_moves"].append(api_error(ApiErrorCode.SERVER_ERROR))

    result = await _upload([unit], api, telemetry)

    assert result.summary.uploaded == 1
    assert result.summary.failed_moves == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_every_unit_is_counted_once(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """Uploaded, already-known and moved partitions add up to the input."""
    known = make_unit("known.json", "known")
    moved = make_unit("new/moved.json", "moved")
    fresh = make_unit("fresh.json", "fresh")
    api.source_records.add((MAIN.id, known.file_id, known.version_id))
    api.orphans.append(_orphan_of(moved, "old/moved.json"))
    units = [known, moved, fresh]

    result = await _upload(units, api, telemetry)

    summary = result.summary
    assert (summary.uploaded, summary.already_known, summary.moved) == (1, 1, 1)
    assert summary.total == len(units)
    assert sorted(ref.file_id for ref in result.references) == sorted(
        unit.file_id for unit in units
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_lineage_hints_are_sent(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """Uploads carry the incoming and checked-out branch ids."""
    context = BranchContext(
        current_branch=Branch(id="br-feature", name="feature"),
        incoming_branch=Branch(id="br-dev", name="dev"),
        checked_out_branch=MAIN,
    )

    await _upload([make_unit("home.json", "{}")], api, telemetry, context=context)

    upload = api.uploads[0]
    assert upload.branch_id == "br-feature"
    assert upload.incoming_branch_id == "br-dev"
    assert upload.checked_out_branch_id == MAIN.id


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transient_upload_error_is_retried(
    api: FakeTranslationApi,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    log_sink: RecordingLogSink,
) -> None:
    """A server error on upload is retried after the backoff delay."""
    api.errors["upload_source_files"].append(api_error(ApiErrorCode.SERVER_ERROR))

    result = await _upload([make_unit("home.json", "{}")], api, telemetry, clock)

    assert result.summary.uploaded == 1
    assert clock.sleeps == [1.0]
    assert UploadEvent.RETRY in log_sink.events()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_query_failure_raises_upload_failed(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """Without the existence queries the stage cannot partition and aborts."""
    api.errors["get_orphaned_files"].append(api_error(ApiErrorCode.UNAUTHORIZED))

    with pytest.raises(SyncError) as exc_info:
        await _upload([make_unit("home.json", "{}")], api, telemetry)

    assert exc_info.value.info.code == SyncErrorCode.UPLOAD_FAILED
    assert "upload_source_files" not in api.call_names()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_input_makes_no_calls(
    api: FakeTranslationApi, telemetry: SyncTelemetry
) -> None:
    """Nothing to upload means no remote traffic."""
    result = await _upload([], api, telemetry)

    assert result.references == []
    assert api.calls == []
