"""Enqueue stage: request translation jobs for uploaded files."""

from __future__ import annotations

from locsync_core.ports.api import ApiError, TranslationApiProtocol
from locsync_core.ports.orchestrator import (
    SyncError,
    SyncErrorCode,
    SyncErrorDetails,
    SyncErrorInfo,
)
from locsync_core.telemetry import SyncTelemetry
from locsync_schemas.files import FileReference
from locsync_schemas.jobs import EnqueueOptions, EnqueueResult
from locsync_schemas.primitives import SyncStage


async def enqueue_translations(
    refs: list[FileReference],
    options: EnqueueOptions,
    *,
    api: TranslationApiProtocol,
    telemetry: SyncTelemetry,
) -> EnqueueResult:
    """Request one job per reference and target locale in a single call.

    The request is not retried here; the service deduplicates by content
    hash, so re-running a sync never creates duplicate work.

    Args:
        refs: References produced by the upload stage.
        options: Locales and job flags.
        api: Translation service client.
        telemetry: Telemetry emitter for the run.

    Returns:
        EnqueueResult: Created jobs and the locales they cover.

    Raises:
        SyncError: If the service rejects the request.
    """
    if not refs:
        await telemetry.stage_skipped(SyncStage.ENQUEUE, "No files to translate")
        return EnqueueResult(jobs=[], locales=list(options.target_locales))

    await telemetry.stage_started(
        SyncStage.ENQUEUE, total=len(refs) * len(options.target_locales)
    )
    try:
        result = await api.enqueue_files(refs, options)
    except ApiError as exc:
        await telemetry.stage_failed(SyncStage.ENQUEUE, f"Enqueue failed: {exc}")
        raise SyncError(
            SyncErrorInfo(
                code=SyncErrorCode.ENQUEUE_FAILED,
                message=f"Could not enqueue translations: {exc}",
                details=SyncErrorDetails(
                    stage=SyncStage.ENQUEUE,
                    branch_name=None,
                    reason=exc.info.code.value,
                ),
            )
        ) from exc

    message = result.message or f"Enqueued {len(result.jobs)} translation job(s)"
    await telemetry.stage_completed(
        SyncStage.ENQUEUE,
        message,
        data={"jobs": len(result.jobs), "locales": list(result.locales)},
    )
    return result
