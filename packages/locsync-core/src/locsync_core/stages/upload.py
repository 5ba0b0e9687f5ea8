"""Upload stage: send only the content the service does not already hold."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import cast

from locsync_core.moves import detect_moves
from locsync_core.ports.api import (
    ApiError,
    TranslationApiProtocol,
    is_retryable_api_error,
)
from locsync_core.ports.orchestrator import (
    SyncError,
    SyncErrorCode,
    SyncErrorDetails,
    SyncErrorInfo,
)
from locsync_core.retry import SleepFn, run_with_retries
from locsync_core.telemetry import SyncTelemetry
from locsync_schemas.branches import Branch, BranchContext
from locsync_schemas.config import RetryConfig
from locsync_schemas.content import ContentUnit
from locsync_schemas.events import UploadEvent
from locsync_schemas.files import (
    FileMove,
    FileMoveResult,
    FileReference,
    SourceFileQuery,
    SourceFileUpload,
)
from locsync_schemas.primitives import BranchId, FileId, LanguageCode, SyncStage
from locsync_schemas.results import UploadSummary


@dataclass(slots=True)
class UploadResult:
    """References for every input unit plus the partition counts."""

    references: list[FileReference] = field(default_factory=list)
    summary: UploadSummary = field(default_factory=UploadSummary)
    moves: list[FileMove] = field(default_factory=list)


async def upload_sources(
    units: list[ContentUnit],
    context: BranchContext,
    *,
    api: TranslationApiProtocol,
    telemetry: SyncTelemetry,
    source_locale: LanguageCode,
    model_provider: str | None = None,
    retry: RetryConfig | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> UploadResult:
    """Partition units into already-known, moved and new, then upload the new.

    Every input unit is represented exactly once in the returned references:
    uploaded units by the service's reference and skipped units by a
    reference synthesized from the unit itself.

    Args:
        units: Content units for this run.
        context: Resolved branch context.
        api: Translation service client.
        telemetry: Telemetry emitter for the run.
        source_locale: Locale of the source content.
        model_provider: Optional preferred model provider.
        retry: Retry policy for the upload request.
        sleep: Suspension primitive used between retries.

    Returns:
        UploadResult: References and partition counts.

    Raises:
        SyncError: If the existence queries or the upload itself fail.
    """
    if not units:
        await telemetry.stage_skipped(SyncStage.UPLOAD, "No files to upload")
        return UploadResult()

    branch_id = context.current_branch.id
    await telemetry.stage_started(SyncStage.UPLOAD, total=len(units))

    query_error: ApiError | None = None
    try:
        async with asyncio.TaskGroup() as group:
            known_task = group.create_task(
                api.query_file_data(
                    source_files=[
                        SourceFileQuery(
                            file_id=unit.file_id,
                            version_id=unit.version_id,
                            branch_id=_branch_of(unit, branch_id),
                        )
                        for unit in units
                    ]
                )
            )
            orphans_task = group.create_task(
                api.get_orphaned_files(branch_id, [unit.file_id for unit in units])
            )
    except* ApiError as group_error:
        query_error = cast(ApiError, group_error.exceptions[0])
    if query_error is not None:
        await telemetry.stage_failed(
            SyncStage.UPLOAD, f"Could not query existing files: {query_error}"
        )
        raise _upload_failed(
            "Could not query existing files", query_error
        ) from query_error

    known = {
        (record.branch_id, record.file_id, record.version_id)
        for record in known_task.result().source_files
    }
    moves = detect_moves(units, orphans_task.result())
    moved_ids = await _process_moves(moves, branch_id, api=api, telemetry=telemetry)

    to_upload: list[ContentUnit] = []
    skipped: list[ContentUnit] = []
    already_known = 0
    moved = 0
    for unit in units:
        if (_branch_of(unit, branch_id), unit.file_id, unit.version_id) in known:
            already_known += 1
            skipped.append(unit)
        elif unit.file_id in moved_ids:
            moved += 1
            skipped.append(unit)
        else:
            to_upload.append(unit)

    uploaded: list[FileReference] = []
    if to_upload:
        payload = [
            SourceFileUpload(
                file_name=unit.file_name,
                file_format=unit.file_format,
                data_format=unit.data_format,
                content=unit.content,
                file_id=unit.file_id,
                version_id=unit.version_id,
                branch_id=_branch_of(unit, branch_id),
                locale=source_locale,
                incoming_branch_id=_branch_id(context.incoming_branch),
                checked_out_branch_id=_branch_id(context.checked_out_branch),
            )
            for unit in to_upload
        ]

        async def _on_retry(attempt: int, delay: float, error: Exception) -> None:
            await telemetry.warn(
                UploadEvent.RETRY,
                f"Upload failed, retrying in {delay:.1f}s: {error}",
                stage=SyncStage.UPLOAD,
                data={"attempt": attempt, "delay_s": delay},
            )

        try:
            uploaded = await run_with_retries(
                lambda: api.upload_source_files(
                    payload,
                    source_locale=source_locale,
                    model_provider=model_provider,
                ),
                policy=retry or RetryConfig(),
                is_retryable=is_retryable_api_error,
                sleep=sleep,
                on_retry=_on_retry,
            )
        except ApiError as exc:
            await telemetry.stage_failed(SyncStage.UPLOAD, f"Upload failed: {exc}")
            raise _upload_failed("Source upload failed", exc) from exc

    references = [*uploaded, *(_reference_for(unit, branch_id) for unit in skipped)]
    summary = UploadSummary(
        uploaded=len(to_upload),
        already_known=already_known,
        moved=moved,
        failed_moves=len(moves) - len(moved_ids),
    )
    await telemetry.stage_completed(
        SyncStage.UPLOAD,
        _completion_message(summary),
        data=summary.model_dump(mode="json"),
    )
    return UploadResult(references=references, summary=summary, moves=moves)


async def _process_moves(
    moves: list[FileMove],
    branch_id: BranchId,
    *,
    api: TranslationApiProtocol,
    telemetry: SyncTelemetry,
) -> set[FileId]:
    """Request migrations and return the new file ids that succeeded."""
    if not moves:
        return set()
    await telemetry.log(
        UploadEvent.MOVES_DETECTED,
        f"Detected {len(moves)} moved file(s), preserving translations",
        stage=SyncStage.UPLOAD,
        data={"moves": len(moves)},
    )
    results: list[FileMoveResult] = []
    try:
        results = await api.process_file_moves(moves, branch_id)
    except ApiError as exc:
        await telemetry.warn(
            UploadEvent.MOVES_FAILED,
            f"Failed to migrate moved files, uploading them instead: {exc}",
            stage=SyncStage.UPLOAD,
            data={"failed": len(moves)},
        )
        return set()
    moved_ids = {result.new_file_id for result in results if result.success}
    failed = len(moves) - len(moved_ids)
    if failed > 0:
        await telemetry.warn(
            UploadEvent.MOVES_FAILED,
            f"Failed to migrate {failed} moved file(s)",
            stage=SyncStage.UPLOAD,
            data={"failed": failed},
        )
    return moved_ids


def _branch_of(unit: ContentUnit, branch_id: BranchId) -> BranchId:
    return unit.branch_id if unit.branch_id is not None else branch_id


def _branch_id(branch: Branch | None) -> BranchId | None:
    return None if branch is None else branch.id


def _reference_for(unit: ContentUnit, branch_id: BranchId) -> FileReference:
    return FileReference(
        file_id=unit.file_id,
        version_id=unit.version_id,
        branch_id=_branch_of(unit, branch_id),
        file_name=unit.file_name,
        file_format=unit.file_format,
        data_format=unit.data_format,
        locale=unit.locale,
    )


def _completion_message(summary: UploadSummary) -> str:
    message = f"Uploaded {summary.uploaded} file(s)"
    if summary.moved:
        message += f" ({summary.moved} moved)"
    if summary.already_known:
        message += f", {summary.already_known} already up to date"
    return message


def _upload_failed(message: str, error: ApiError) -> SyncError:
    return SyncError(
        SyncErrorInfo(
            code=SyncErrorCode.UPLOAD_FAILED,
            message=f"{message}: {error}",
            details=SyncErrorDetails(
                stage=SyncStage.UPLOAD, branch_name=None, reason=error.info.code.value
            ),
        )
    )
