"""Poll stage: wait for translation jobs to reach a terminal state."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from locsync_core.ports.api import ApiError, TranslationApiProtocol
from locsync_core.retry import SleepFn
from locsync_core.telemetry import SyncTelemetry
from locsync_core.tracker import FileStatusTracker
from locsync_schemas.events import PollEvent
from locsync_schemas.files import FileKey, FileReference, TargetFile
from locsync_schemas.jobs import Job, JobStatusRecord
from locsync_schemas.primitives import (
    JobId,
    JobStatus,
    LanguageCode,
    SyncStage,
    TrackerState,
)

DEFAULT_POLL_INTERVAL_S = 5.0

_JOB_STATE_TRANSITIONS = {
    JobStatus.COMPLETED: TrackerState.COMPLETED,
    JobStatus.FAILED: TrackerState.FAILED,
    JobStatus.UNKNOWN: TrackerState.SKIPPED,
}


@dataclass(slots=True)
class PollResult:
    """Tracker state after polling and whether every target succeeded."""

    tracker: FileStatusTracker
    success: bool
    timed_out: bool = False


def build_targets(
    refs: Iterable[FileReference], locales: Iterable[LanguageCode]
) -> list[TargetFile]:
    """Pair every reference with every target locale.

    Returns:
        list[TargetFile]: Targets in reference-major order.
    """
    locale_list = list(locales)
    return [
        TargetFile(
            branch_id=ref.branch_id,
            file_id=ref.file_id,
            version_id=ref.version_id,
            locale=locale,
            file_name=ref.file_name,
        )
        for ref in refs
        for locale in locale_list
    ]


async def poll_jobs(
    targets: list[TargetFile],
    jobs: list[Job],
    *,
    api: TranslationApiProtocol,
    telemetry: SyncTelemetry,
    timeout_s: float,
    interval_s: float = DEFAULT_POLL_INTERVAL_S,
    force_retranslation: bool = False,
    tracker: FileStatusTracker | None = None,
    monotonic: Callable[[], float] = time.monotonic,
    sleep: SleepFn = asyncio.sleep,
) -> PollResult:
    """Track every target until it completes, fails or the timeout elapses.

    Targets that already have a completed translation start in
    ``completed``; targets with a job start in ``in_progress``; the rest are
    ``skipped``. Job status is then checked on interval boundaries measured
    from the start of the stage. When ``force_retranslation`` polls jobs for
    already completed targets, those targets stay in ``completed`` whatever
    the job reports.

    Args:
        targets: Every (file, locale) pair of the run.
        jobs: Jobs returned by the enqueue stage.
        api: Translation service client.
        telemetry: Telemetry emitter for the run.
        timeout_s: Seconds to wait before giving up.
        interval_s: Seconds between status checks.
        force_retranslation: Keep polling even when nothing is in progress.
        tracker: Tracker to fill; a new one is created when omitted.
        monotonic: Monotonic clock in seconds.
        sleep: Suspension primitive between checks.

    Returns:
        PollResult: The tracker plus the success and timeout flags.
    """
    tracker = tracker if tracker is not None else FileStatusTracker()
    start = monotonic()
    await telemetry.stage_started(SyncStage.POLL, total=len(targets))

    by_key = {target.key: target for target in targets}
    job_keys: dict[JobId, FileKey] = {
        job.job_id: job.key for job in jobs if job.key in by_key
    }
    keys_with_jobs = set(job_keys.values())

    ready = await _initially_completed(targets, api=api, telemetry=telemetry)
    for target in targets:
        if target.key in ready:
            tracker.mark(target, TrackerState.COMPLETED)
        elif target.key in keys_with_jobs:
            tracker.mark(target, TrackerState.IN_PROGRESS)
        else:
            tracker.mark(target, TrackerState.SKIPPED)

    pending_jobs = {
        job_id: key
        for job_id, key in job_keys.items()
        if force_retranslation or tracker.state_of(key) == TrackerState.IN_PROGRESS
    }
    await _report_progress(tracker, telemetry, total=len(targets))

    if not force_retranslation and not tracker.in_progress:
        return await _finish(tracker, telemetry, timed_out=False)

    delay = interval_s - ((monotonic() - start) % interval_s)
    timed_out = False
    while pending_jobs:
        await sleep(delay)
        delay = interval_s
        statuses: list[JobStatusRecord] = []
        try:
            statuses = await api.check_job_status(list(pending_jobs))
        except ApiError as exc:
            await telemetry.error(
                PollEvent.STATUS_CHECK_FAILED,
                f"Error checking job status: {exc}",
                stage=SyncStage.POLL,
            )
        for status in statuses:
            key = pending_jobs.get(status.job_id)
            state = _JOB_STATE_TRANSITIONS.get(status.status)
            if key is None or state is None:
                continue
            del pending_jobs[status.job_id]
            if tracker.state_of(key) == TrackerState.COMPLETED:
                # An existing translation stays deliverable.
                if state == TrackerState.FAILED:
                    target = tracker.completed[key]
                    await telemetry.warn(
                        PollEvent.RETRANSLATION_FAILED,
                        "Retranslation failed, keeping existing translation: "
                        f"{target.file_name} [{target.locale}]",
                        stage=SyncStage.POLL,
                        data={"file_name": target.file_name, "locale": target.locale},
                    )
                continue
            tracker.move(key, state)
        await _report_progress(tracker, telemetry, total=len(targets))

        if not pending_jobs:
            break
        if monotonic() - start >= timeout_s:
            timed_out = True
            break

    return await _finish(tracker, telemetry, timed_out=timed_out)


async def _initially_completed(
    targets: list[TargetFile],
    *,
    api: TranslationApiProtocol,
    telemetry: SyncTelemetry,
) -> set[FileKey]:
    if not targets:
        return set()
    try:
        result = await api.query_file_data(
            translated_files=[target.to_query() for target in targets]
        )
    except ApiError as exc:
        await telemetry.warn(
            PollEvent.STATUS_CHECK_FAILED,
            f"Could not query existing translations: {exc}",
            stage=SyncStage.POLL,
        )
        return set()
    return {
        record.key
        for record in result.translated_files
        if record.completed_at is not None
    }


async def _report_progress(
    tracker: FileStatusTracker, telemetry: SyncTelemetry, *, total: int
) -> None:
    done = len(tracker.completed) + len(tracker.failed) + len(tracker.skipped)
    await telemetry.stage_progress(
        SyncStage.POLL,
        completed=done,
        total=total,
        message=f"[{done}/{total}] translations completed",
    )


async def _finish(
    tracker: FileStatusTracker, telemetry: SyncTelemetry, *, timed_out: bool
) -> PollResult:
    for target in tracker.failed.values():
        await telemetry.error(
            PollEvent.TRANSLATION_FAILED,
            f"Translation failed: {target.file_name} [{target.locale}]",
            stage=SyncStage.POLL,
            data={"file_name": target.file_name, "locale": target.locale},
        )
    counts = {state.value: count for state, count in tracker.counts().items()}
    if timed_out:
        await telemetry.warn(
            PollEvent.TIMED_OUT,
            "Timed out waiting for translation jobs",
            stage=SyncStage.POLL,
            data=dict(counts),
        )
    success = not timed_out and not tracker.failed
    if success:
        await telemetry.stage_completed(
            SyncStage.POLL, "All translations ready", data=dict(counts)
        )
    else:
        await telemetry.stage_failed(
            SyncStage.POLL,
            "Timed out waiting for translations"
            if timed_out
            else f"{len(tracker.failed)} translation(s) failed",
            data=dict(counts),
        )
    return PollResult(tracker=tracker, success=success, timed_out=timed_out)
