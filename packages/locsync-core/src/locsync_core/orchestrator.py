"""Sync orchestrator: run the branch, upload, enqueue, poll and download stages."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from uuid import uuid4

from locsync_core.branches import BranchResolver
from locsync_core.ports.api import TranslationApiProtocol
from locsync_core.ports.ledger import LedgerStoreProtocol
from locsync_core.ports.orchestrator import (
    LogSinkProtocol,
    ProgressSinkProtocol,
    SyncError,
    SyncErrorCode,
    SyncErrorDetails,
    SyncErrorInfo,
)
from locsync_core.ports.output import OutputPathResolver, OutputWriterProtocol
from locsync_core.ports.vcs import BranchDetectorProtocol
from locsync_core.retry import SleepFn
from locsync_core.stages.download import DownloadResult, download_translations
from locsync_core.stages.enqueue import enqueue_translations
from locsync_core.stages.poll import PollResult, build_targets, poll_jobs
from locsync_core.stages.upload import upload_sources
from locsync_core.telemetry import SyncTelemetry, now_timestamp
from locsync_core.tracker import FileStatusTracker
from locsync_schemas.branches import BranchContext
from locsync_schemas.config import SyncConfig
from locsync_schemas.content import ContentUnit
from locsync_schemas.files import TargetFile
from locsync_schemas.jobs import EnqueueOptions
from locsync_schemas.primitives import (
    SYNC_STAGE_ORDER,
    BranchId,
    LanguageCode,
    RunId,
    SyncStage,
    SyncStatus,
    Timestamp,
    TrackerState,
)
from locsync_schemas.results import FailedTranslation, SyncSummary, UploadSummary


class SyncOrchestrator:
    """Run one sync invocation against a single translation service client.

    Stages run strictly in sequence and each receives the previous stage's
    full output. Invocation-wide failures raise ``SyncError``; per-file
    problems are reported in the returned ``SyncSummary``.
    """

    def __init__(
        self,
        *,
        config: SyncConfig,
        api: TranslationApiProtocol,
        writer: OutputWriterProtocol,
        ledger_store: LedgerStoreProtocol,
        detector: BranchDetectorProtocol | None = None,
        log_sink: LogSinkProtocol | None = None,
        progress_sink: ProgressSinkProtocol | None = None,
        clock: Callable[[], Timestamp] = now_timestamp,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
        run_id_factory: Callable[[], RunId] = lambda: str(uuid4()),
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Sync configuration.
            api: Translation service client, shared by every stage.
            writer: Output writer for translated files.
            ledger_store: Version ledger store.
            detector: Optional version control branch detector.
            log_sink: Optional sink for JSONL log entries.
            progress_sink: Optional sink for progress updates.
            clock: Timestamp provider.
            monotonic: Monotonic clock used for poll timeouts.
            sleep: Suspension primitive used by polling and retries.
            run_id_factory: Run identifier provider.
        """
        self._config = config
        self._api = api
        self._writer = writer
        self._ledger_store = ledger_store
        self._detector = detector
        self._log_sink = log_sink
        self._progress_sink = progress_sink
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep
        self._run_id_factory = run_id_factory

    async def sync(
        self,
        units: list[ContentUnit],
        resolve_output_path: OutputPathResolver,
        *,
        force_retranslation: bool = False,
    ) -> SyncSummary:
        """Upload changed content, wait for translations and download them.

        Args:
            units: Content units extracted from the project.
            resolve_output_path: Maps (source file name, locale) to a path.
            force_retranslation: Keep polling even when nothing is in progress.

        Returns:
            SyncSummary: Caller-visible outcome of the run.

        Raises:
            SyncError: If the run cannot proceed.
        """
        telemetry = self._telemetry()
        await telemetry.sync_started(list(SYNC_STAGE_ORDER), len(units))
        try:
            self._check_preconditions()
            context = await self._resolve_branch(telemetry)
            languages = self._config.languages
            upload = await upload_sources(
                units,
                context,
                api=self._api,
                telemetry=telemetry,
                source_locale=languages.source_language,
                model_provider=self._config.enqueue.model_provider,
                retry=self._config.upload_retry,
                sleep=self._sleep,
            )
            enqueue = await enqueue_translations(
                upload.references,
                self._enqueue_options(),
                api=self._api,
                telemetry=telemetry,
            )
            poll = await poll_jobs(
                build_targets(upload.references, languages.target_languages),
                enqueue.jobs,
                api=self._api,
                telemetry=telemetry,
                timeout_s=self._config.poll.timeout_s,
                interval_s=self._config.poll.interval_s,
                force_retranslation=force_retranslation,
                monotonic=self._monotonic,
                sleep=self._sleep,
            )
            download: DownloadResult | None = None
            if poll.timed_out and not poll.tracker.completed:
                await telemetry.stage_skipped(
                    SyncStage.DOWNLOAD, "No translations completed before timeout"
                )
            else:
                download = await self._download(
                    poll.tracker, resolve_output_path, telemetry
                )
        except SyncError as exc:
            await _report_failure(telemetry, exc.info)
            raise

        summary = self._summarize(
            telemetry.run_id,
            context,
            poll,
            download,
            upload=upload.summary,
            enqueued_jobs=len(enqueue.jobs),
        )
        await telemetry.sync_completed(summary.status)
        return summary

    async def download_staged(
        self,
        units: list[ContentUnit],
        resolve_output_path: OutputPathResolver,
    ) -> SyncSummary:
        """Download translations for content that was uploaded and staged earlier.

        Every (file, locale) pair is assumed complete; the download stage
        drops pairs the service does not report as completed.

        Args:
            units: Content units whose translations should be delivered.
            resolve_output_path: Maps (source file name, locale) to a path.

        Returns:
            SyncSummary: Caller-visible outcome of the run.

        Raises:
            SyncError: If the branch cannot be resolved.
        """
        telemetry = self._telemetry()
        stages = [SyncStage.BRANCH, SyncStage.DOWNLOAD]
        await telemetry.sync_started(stages, len(units))
        try:
            self._check_preconditions()
            context = await self._resolve_branch(telemetry)
        except SyncError as exc:
            await _report_failure(telemetry, exc.info)
            raise

        branch_id = context.current_branch.id
        tracker = FileStatusTracker()
        for unit in units:
            for locale in self._config.languages.target_languages:
                tracker.mark(
                    _staged_target(unit, locale, branch_id), TrackerState.COMPLETED
                )
        download = await self._download(tracker, resolve_output_path, telemetry)
        summary = self._summarize(
            telemetry.run_id,
            context,
            PollResult(tracker=tracker, success=True),
            download,
            upload=None,
            enqueued_jobs=0,
        )
        await telemetry.sync_completed(summary.status)
        return summary

    def _telemetry(self) -> SyncTelemetry:
        return SyncTelemetry(
            run_id=self._run_id_factory(),
            log_sink=self._log_sink,
            progress_sink=self._progress_sink,
            clock=self._clock,
        )

    def _check_preconditions(self) -> None:
        languages = self._config.languages
        if not languages.source_language:
            raise SyncError(
                SyncErrorInfo(
                    code=SyncErrorCode.MISSING_SOURCE_LOCALE,
                    message="A source locale is required",
                    details=None,
                )
            )
        if not languages.target_languages:
            raise SyncError(
                SyncErrorInfo(
                    code=SyncErrorCode.NO_TARGET_LOCALES,
                    message="At least one target locale is required",
                    details=None,
                )
            )

    async def _resolve_branch(self, telemetry: SyncTelemetry) -> BranchContext:
        await telemetry.stage_started(SyncStage.BRANCH)
        resolver = BranchResolver(
            api=self._api,
            options=self._config.branches,
            telemetry=telemetry,
            detector=self._detector,
        )
        try:
            context = await resolver.resolve()
        except SyncError as exc:
            await telemetry.stage_failed(SyncStage.BRANCH, exc.info.message)
            raise
        await telemetry.stage_completed(
            SyncStage.BRANCH,
            f"Resolved branch '{context.current_branch.name}'",
            data={"branch_id": context.current_branch.id},
        )
        return context

    def _enqueue_options(self) -> EnqueueOptions:
        enqueue = self._config.enqueue
        languages = self._config.languages
        return EnqueueOptions(
            source_locale=languages.source_language,
            target_locales=list(languages.target_languages),
            publish=enqueue.publish,
            require_approval=enqueue.require_approval,
            force=enqueue.force,
            model_provider=enqueue.model_provider,
        )

    async def _download(
        self,
        tracker: FileStatusTracker,
        resolve_output_path: OutputPathResolver,
        telemetry: SyncTelemetry,
    ) -> DownloadResult:
        download = self._config.download
        return await download_translations(
            tracker,
            resolve_output_path,
            api=self._api,
            writer=self._writer,
            ledger_store=self._ledger_store,
            telemetry=telemetry,
            retry=download.retry,
            force_download=download.force_download,
            clear_locale_dirs=download.clear_locale_dirs,
            clear_locale_dirs_exclude=list(download.clear_locale_dirs_exclude),
            sleep=self._sleep,
            clock=self._clock,
        )

    def _summarize(
        self,
        run_id: RunId,
        context: BranchContext,
        poll: PollResult,
        download: DownloadResult | None,
        *,
        upload: UploadSummary | None,
        enqueued_jobs: int,
    ) -> SyncSummary:
        failed_translations = [
            FailedTranslation(file_name=target.file_name, locale=target.locale)
            for target in poll.tracker.failed.values()
        ]
        error = None
        if download is not None and not download.success:
            status = SyncStatus.FAILED
            error = SyncErrorInfo(
                code=SyncErrorCode.DOWNLOAD_FAILED,
                message="No translations could be downloaded",
                details=SyncErrorDetails(
                    stage=SyncStage.DOWNLOAD, branch_name=None, reason=None
                ),
            ).to_error_response()
        elif poll.timed_out:
            status = SyncStatus.TIMED_OUT
        elif failed_translations or (download is not None and download.failed):
            status = SyncStatus.PARTIAL
        else:
            status = SyncStatus.SUCCEEDED
        return SyncSummary(
            run_id=run_id,
            status=status,
            branch=context.current_branch,
            upload=upload,
            enqueued_jobs=enqueued_jobs,
            completed=len(poll.tracker.completed),
            pending=len(poll.tracker.in_progress),
            failed_translations=failed_translations,
            download=None if download is None else download.summary,
            error=error,
        )


def _staged_target(
    unit: ContentUnit, locale: LanguageCode, branch_id: BranchId
) -> TargetFile:
    return TargetFile(
        branch_id=unit.branch_id if unit.branch_id is not None else branch_id,
        file_id=unit.file_id,
        version_id=unit.version_id,
        locale=locale,
        file_name=unit.file_name,
    )


async def _report_failure(telemetry: SyncTelemetry, info: SyncErrorInfo) -> None:
    why = info.message
    if info.details is not None and info.details.reason:
        why = info.details.reason
    await telemetry.sync_failed(info.message, info.code.value, why)
