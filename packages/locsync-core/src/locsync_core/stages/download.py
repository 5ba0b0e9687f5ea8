"""Download stage: deliver completed translations and update the ledger."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import PurePath

from locsync_core.ledger import is_up_to_date, record_delivery
from locsync_core.ports.api import ApiError, TranslationApiProtocol
from locsync_core.ports.ledger import LedgerError, LedgerStoreProtocol
from locsync_core.ports.output import (
    OutputError,
    OutputPathResolver,
    OutputWriterProtocol,
)
from locsync_core.retry import SleepFn, backoff_delay
from locsync_core.telemetry import SyncTelemetry, now_timestamp
from locsync_core.tracker import FileStatusTracker
from locsync_schemas.config import RetryConfig
from locsync_schemas.events import DownloadEvent, DownloadRetryData
from locsync_schemas.files import DownloadedFile, FileKey, TargetFile
from locsync_schemas.ledger import VersionLedger
from locsync_schemas.primitives import (
    ContentHash,
    LanguageCode,
    SyncStage,
    Timestamp,
    TrackerState,
)
from locsync_schemas.results import DownloadSummary, FailedTranslation


@dataclass(slots=True)
class DownloadResult:
    """Outcome of the download stage."""

    success: bool
    summary: DownloadSummary = field(default_factory=DownloadSummary)
    failed: list[TargetFile] = field(default_factory=list)


@dataclass(slots=True)
class _PlannedFile:
    target: TargetFile
    path: str


async def download_translations(
    tracker: FileStatusTracker,
    resolve_output_path: OutputPathResolver,
    *,
    api: TranslationApiProtocol,
    writer: OutputWriterProtocol,
    ledger_store: LedgerStoreProtocol,
    telemetry: SyncTelemetry,
    retry: RetryConfig | None = None,
    force_download: bool = False,
    clear_locale_dirs: bool = False,
    clear_locale_dirs_exclude: list[str] | None = None,
    sleep: SleepFn = asyncio.sleep,
    clock: Callable[[], Timestamp] = now_timestamp,
) -> DownloadResult:
    """Download every completed target and write it to its output path.

    Only keys in ``completed`` are considered. Keys the service no longer
    reports as completed, and keys the resolver declines, move to
    ``skipped``. Files whose ledger record matches the file on disk are left
    alone unless ``force_download`` is set. A partially failed batch is
    retried for the failed subset only, with exponential backoff.

    Args:
        tracker: Tracker produced by the poll stage.
        resolve_output_path: Maps (source file name, locale) to a path.
        api: Translation service client.
        writer: Output writer for the project directory.
        ledger_store: Version ledger store.
        telemetry: Telemetry emitter for the run.
        retry: Batch retry policy.
        force_download: Download even when the ledger shows the file current.
        clear_locale_dirs: Delete files in targeted locale directories first.
        clear_locale_dirs_exclude: Glob patterns kept when clearing.
        sleep: Suspension primitive between retries.
        clock: Timestamp provider for ledger records.

    Returns:
        DownloadResult: Counts, failures and the stage success flag.
    """
    policy = retry or RetryConfig()
    candidates = list(tracker.completed.values())
    if not candidates:
        await telemetry.stage_skipped(SyncStage.DOWNLOAD, "No translations to download")
        return DownloadResult(success=True)

    await telemetry.stage_started(SyncStage.DOWNLOAD, total=len(candidates))
    try:
        file_data = await api.query_file_data(
            translated_files=[target.to_query() for target in candidates]
        )
    except ApiError as exc:
        await telemetry.stage_failed(
            SyncStage.DOWNLOAD, f"Could not query translated files: {exc}"
        )
        return DownloadResult(
            success=False,
            summary=DownloadSummary(failed=_failures(candidates, str(exc))),
            failed=candidates,
        )
    ready = {
        record.key
        for record in file_data.translated_files
        if record.completed_at is not None
    }

    planned: list[_PlannedFile] = []
    skipped = 0
    for target in candidates:
        path = resolve_output_path(target.file_name, target.locale)
        if target.key not in ready or path is None:
            tracker.move(target.key, TrackerState.SKIPPED)
            skipped += 1
            continue
        planned.append(_PlannedFile(target=target, path=path))

    if clear_locale_dirs and planned:
        directories = locale_directories(
            (item.target.file_name, item.path, item.target.locale) for item in planned
        )
        if directories:
            await _clear_directories(
                writer,
                directories,
                list(clear_locale_dirs_exclude or []),
                telemetry,
            )

    ledger = await _load_ledger(ledger_store, telemetry)
    pending: dict[FileKey, _PlannedFile] = {}
    up_to_date = 0
    for item in planned:
        if not force_download and is_up_to_date(
            ledger, item.target.key, await _disk_hash(writer, item.path)
        ):
            up_to_date += 1
            continue
        pending[item.target.key] = item

    written: list[str] = []
    failed: dict[FileKey, tuple[TargetFile, str]] = {}
    attempt = 0
    while pending:
        attempt_error: str | None = None
        downloaded: list[DownloadedFile] = []
        try:
            downloaded = await api.download_files(
                [item.target.to_query() for item in pending.values()]
            )
        except ApiError as exc:
            attempt_error = str(exc)
            if not exc.info.retryable:
                break
        for artifact in downloaded:
            item = pending.pop(artifact.key, None)
            if item is None:
                continue
            try:
                post_process_hash = await writer.write_file(item.path, artifact.data)
            except OutputError as exc:
                failed[artifact.key] = (item.target, str(exc))
                continue
            record_delivery(
                ledger,
                artifact.key,
                post_process_hash=post_process_hash,
                updated_at=clock(),
            )
            written.append(item.path)
        await telemetry.stage_progress(
            SyncStage.DOWNLOAD,
            completed=len(written) + len(failed),
            total=len(written) + len(failed) + len(pending),
        )
        if not pending or attempt >= policy.max_retries:
            break
        attempt += 1
        delay = backoff_delay(attempt, policy)
        await telemetry.warn(
            DownloadEvent.RETRY,
            f"Retrying {len(pending)} file(s) in {delay:.1f}s"
            + (f": {attempt_error}" if attempt_error else ""),
            stage=SyncStage.DOWNLOAD,
            data=DownloadRetryData(
                attempt=attempt + 1, pending=len(pending), delay_s=delay
            ).model_dump(mode="json"),
        )
        await sleep(delay)

    for key, item in pending.items():
        failed[key] = (item.target, "Download failed after retries")
    for target, reason in failed.values():
        await telemetry.error(
            DownloadEvent.FILE_FAILED,
            f"Failed to download {target.file_name} [{target.locale}]: {reason}",
            stage=SyncStage.DOWNLOAD,
            data={"file_name": target.file_name, "locale": target.locale},
        )

    if written:
        await _save_ledger(ledger_store, ledger, telemetry)

    summary = DownloadSummary(
        downloaded=len(written),
        up_to_date=up_to_date,
        skipped=skipped,
        failed=[
            FailedTranslation(
                file_name=target.file_name, locale=target.locale, reason=reason
            )
            for target, reason in failed.values()
        ],
        written_paths=written,
    )
    success = not (failed and not written and not up_to_date)
    message = f"Downloaded {len(written)} file(s)"
    if up_to_date:
        message += f", {up_to_date} already up to date"
    if failed:
        message += f", {len(failed)} failed"
    data = summary.model_dump(mode="json", exclude={"written_paths", "failed"})
    data["failed"] = len(failed)
    if success:
        await telemetry.stage_completed(SyncStage.DOWNLOAD, message, data=data)
    else:
        await telemetry.stage_failed(SyncStage.DOWNLOAD, message, data=data)
    return DownloadResult(
        success=success,
        summary=summary,
        failed=[target for target, _ in failed.values()],
    )


def locale_directories(
    outputs: Iterable[tuple[str, str, LanguageCode]],
) -> dict[str, LanguageCode]:
    """Find the locale directories targeted by a set of output paths.

    Outputs written over their own source file are ignored. The locale
    directory of a path is its shallowest ancestor named after the locale.

    Args:
        outputs: (source file name, output path, locale) triples.

    Returns:
        dict[str, LanguageCode]: Locale directory -> locale it holds.
    """
    directories: dict[str, LanguageCode] = {}
    for source_name, output_path, locale in outputs:
        if output_path == source_name:
            continue
        path = PurePath(output_path)
        parents = path.parts[:-1]
        for index, part in enumerate(parents):
            if part == locale:
                directories[str(PurePath(*parents[: index + 1]))] = locale
                break
    return directories


async def _disk_hash(writer: OutputWriterProtocol, path: str) -> ContentHash | None:
    try:
        return await writer.read_hash(path)
    except OutputError:
        return None


async def _clear_directories(
    writer: OutputWriterProtocol,
    directories: dict[str, LanguageCode],
    exclude: list[str],
    telemetry: SyncTelemetry,
) -> None:
    try:
        deleted = await writer.clear_directories(directories, exclude)
    except OutputError as exc:
        await telemetry.error(
            DownloadEvent.LOCALE_DIRS_CLEAR_FAILED,
            f"Could not clear locale directories, writing anyway: {exc}",
            stage=SyncStage.DOWNLOAD,
            data={"directories": sorted(directories)},
        )
        return
    await telemetry.log(
        DownloadEvent.LOCALE_DIRS_CLEARED,
        f"Cleared {len(deleted)} file(s) from {len(directories)} "
        "locale director(ies)",
        stage=SyncStage.DOWNLOAD,
        data={"directories": sorted(directories), "deleted": len(deleted)},
    )


async def _load_ledger(
    store: LedgerStoreProtocol, telemetry: SyncTelemetry
) -> VersionLedger:
    try:
        return await store.load()
    except LedgerError as exc:
        await telemetry.warn(
            DownloadEvent.LEDGER_READ_FAILED,
            f"Could not read version ledger, starting fresh: {exc}",
            stage=SyncStage.DOWNLOAD,
        )
        return VersionLedger()


async def _save_ledger(
    store: LedgerStoreProtocol, ledger: VersionLedger, telemetry: SyncTelemetry
) -> None:
    try:
        await store.save(ledger)
    except LedgerError as exc:
        await telemetry.error(
            DownloadEvent.LEDGER_WRITE_FAILED,
            f"Could not write version ledger: {exc}",
            stage=SyncStage.DOWNLOAD,
        )
        return
    await telemetry.log(
        DownloadEvent.LEDGER_UPDATED,
        "Version ledger updated",
        stage=SyncStage.DOWNLOAD,
    )


def _failures(targets: list[TargetFile], reason: str) -> list[FailedTranslation]:
    return [
        FailedTranslation(
            file_name=target.file_name, locale=target.locale, reason=reason
        )
        for target in targets
    ]
