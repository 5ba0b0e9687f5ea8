"""Unit tests for the download stage."""

from __future__ import annotations

import pytest

from locsync_core.identity import hash_text
from locsync_core.ledger import record_delivery
from locsync_core.ports.api import ApiErrorCode
from locsync_core.ports.ledger import LedgerError, LedgerErrorCode, LedgerErrorInfo
from locsync_core.ports.output import (
    OutputError,
    OutputErrorCode,
    OutputErrorInfo,
    OutputPathResolver,
)
from locsync_core.stages.download import (
    DownloadResult,
    download_translations,
    locale_directories,
)
from locsync_core.telemetry import SyncTelemetry
from locsync_core.tracker import FileStatusTracker
from locsync_schemas.config import RetryConfig
from locsync_schemas.events import DownloadEvent
from locsync_schemas.files import TargetFile
from locsync_schemas.ledger import VersionLedger
from locsync_schemas.primitives import LanguageCode, TrackerState
from tests.helpers.builders import FIXED_TIMESTAMP, make_target, make_unit
from tests.helpers.fakes import (
    FakeClock,
    FakeTranslationApi,
    InMemoryLedgerStore,
    InMemoryOutputWriter,
    RecordingLogSink,
    api_error,
    translate,
)


def _resolve(file_name: str, locale: LanguageCode) -> str | None:
    return f"locales/{locale}/{file_name}"


def _ledger_error() -> LedgerError:
    return LedgerError(
        LedgerErrorInfo(code=LedgerErrorCode.IO_ERROR, message="disk unavailable")
    )


def _completed(
    api: FakeTranslationApi, count: int, locales: tuple[str, ...] = ("es",)
) -> tuple[FileStatusTracker, list[TargetFile]]:
    tracker = FileStatusTracker()
    targets: list[TargetFile] = []
    for index in range(count):
        unit = make_unit(f"file{index}.json", f"content {index}")
        for locale in locales:
            target = make_target(unit, locale)
            api.completed[target.key] = translate(unit.file_name, locale)
            tracker.mark(target, TrackerState.COMPLETED)
            targets.append(target)
    return tracker, targets


async def _download(
    tracker: FileStatusTracker,
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    *,
    resolve: OutputPathResolver = _resolve,
    force_download: bool = False,
    clear_locale_dirs: bool = False,
    max_retries: int = 3,
) -> DownloadResult:
    return await download_translations(
        tracker,
        resolve,
        api=api,
        writer=writer,
        ledger_store=ledger_store,
        telemetry=telemetry,
        retry=RetryConfig(max_retries=max_retries, backoff_s=1.0),
        force_download=force_download,
        clear_locale_dirs=clear_locale_dirs,
        clear_locale_dirs_exclude=["locales/[locale]/keep.json"],
        sleep=clock.sleep,
        clock=lambda: FIXED_TIMESTAMP,
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_completed_translations_are_written_and_recorded(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """Each completed target is written and gains a ledger entry."""
    tracker, targets = _completed(api, 1, ("es", "fr"))

    result = await _download(tracker, api, writer, ledger_store, telemetry, clock)

    assert result.success is True
    assert result.summary.downloaded == 2
    assert writer.files == {
        "locales/es/file0.json": translate("file0.json", "es"),
        "locales/fr/file0.json": translate("file0.json", "fr"),
    }
    entries = {entry.key: entry for entry in ledger_store.ledger.entries()}
    assert set(entries) == {target.key for target in targets}
    assert entries[targets[0].key].post_process_hash == hash_text(
        translate("file0.json", "es")
    )
    assert entries[targets[0].key].updated_at == FIXED_TIMESTAMP


@pytest.mark.unit
@pytest.mark.asyncio
async def test_declined_and_unready_targets_are_skipped(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """Resolver refusals and missing completions move keys to skipped."""
    tracker, targets = _completed(api, 3)
    del api.completed[targets[1].key]

    def _resolve_some(file_name: str, locale: LanguageCode) -> str | None:
        return None if file_name == "file2.json" else _resolve(file_name, locale)

    result = await _download(
        tracker,
        api,
        writer,
        ledger_store,
        telemetry,
        clock,
        resolve=_resolve_some,
    )

    assert result.summary.downloaded == 1
    assert result.summary.skipped == 2
    assert set(tracker.skipped) == {targets[1].key, targets[2].key}
    assert set(tracker.completed) == {targets[0].key}
    assert list(writer.files) == ["locales/es/file0.json"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_only_failed_subset_is_retried_with_doubling_backoff(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    log_sink: RecordingLogSink,
) -> None:
    """Two of four files fail twice; each retry requests only those two."""
    tracker, targets = _completed(api, 4)
    flaky = {targets[1].key, targets[3].key}
    for key in flaky:
        api.download_misses[key] = 2

    result = await _download(tracker, api, writer, ledger_store, telemetry, clock)

    batches = api.payloads("download_files")
    assert [len(batch) for batch in batches] == [4, 2, 2]
    assert {query.key for query in batches[1]} == flaky
    assert clock.sleeps == [1.0, 2.0]
    assert clock.sleeps[1] == 2 * clock.sleeps[0]
    assert result.summary.downloaded == 4
    assert result.summary.failed == []
    assert log_sink.events().count(DownloadEvent.RETRY) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exhausted_retries_are_reported_not_raised(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    log_sink: RecordingLogSink,
) -> None:
    """Files still failing after the cap are soft failures."""
    tracker, targets = _completed(api, 2)
    api.download_misses[targets[0].key] = 10

    result = await _download(
        tracker, api, writer, ledger_store, telemetry, clock, max_retries=2
    )

    assert result.success is True
    assert result.failed == [targets[0]]
    assert [item.file_name for item in result.summary.failed] == ["file0.json"]
    assert result.summary.downloaded == 1
    assert clock.sleeps == [1.0, 2.0]
    assert DownloadEvent.FILE_FAILED in log_sink.events()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_total_failure_fails_the_stage(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """Zero successes with every file failed is a stage failure."""
    tracker, targets = _completed(api, 2)
    for target in targets:
        api.download_misses[target.key] = 10

    result = await _download(
        tracker, api, writer, ledger_store, telemetry, clock, max_retries=1
    )

    assert result.success is False
    assert len(result.summary.failed) == 2
    assert ledger_store.saves == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_non_retryable_error_stops_retrying(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """An unauthorized batch is not retried."""
    tracker, _ = _completed(api, 1)
    api.errors["download_files"].append(api_error(ApiErrorCode.UNAUTHORIZED))

    result = await _download(tracker, api, writer, ledger_store, telemetry, clock)

    assert result.success is False
    assert api.call_names().count("download_files") == 1
    assert clock.sleeps == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_write_errors_fail_only_that_file(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """A file that cannot be written is reported without retrying the batch."""
    tracker, _ = _completed(api, 2)
    writer.fail_paths.add("locales/es/file1.json")

    result = await _download(tracker, api, writer, ledger_store, telemetry, clock)

    assert result.summary.downloaded == 1
    assert [item.file_name for item in result.summary.failed] == ["file1.json"]
    assert api.call_names().count("download_files") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unchanged_files_are_left_alone(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """A ledger hash matching the file on disk skips the download."""
    tracker, targets = _completed(api, 1)
    content = translate("file0.json", "es")
    writer.files["locales/es/file0.json"] = content
    ledger = VersionLedger()
    record_delivery(
        ledger,
        targets[0].key,
        post_process_hash=hash_text(content),
        updated_at=FIXED_TIMESTAMP,
    )
    store = InMemoryLedgerStore(ledger)

    result = await _download(tracker, api, writer, store, telemetry, clock)
    forced = await _download(
        tracker, api, writer, store, telemetry, clock, force_download=True
    )

    assert result.summary.up_to_date == 1
    assert result.summary.downloaded == 0
    assert result.success is True
    assert forced.summary.downloaded == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_hand_edited_files_are_downloaded_again(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """A file edited after delivery no longer matches the ledger."""
    tracker, targets = _completed(api, 1)
    writer.files["locales/es/file0.json"] = "edited"
    ledger = VersionLedger()
    record_delivery(
        ledger,
        targets[0].key,
        post_process_hash=hash_text(translate("file0.json", "es")),
        updated_at=FIXED_TIMESTAMP,
    )

    result = await _download(
        tracker, api, writer, InMemoryLedgerStore(ledger), telemetry, clock
    )

    assert result.summary.downloaded == 1
    assert writer.files["locales/es/file0.json"] == translate("file0.json", "es")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_clearing_targets_only_this_runs_locale_dirs(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    log_sink: RecordingLogSink,
) -> None:
    """Locale directories are cleared once, before any writes."""
    tracker, _ = _completed(api, 1, ("es", "fr"))
    writer.files["locales/es/stale.json"] = "old"
    writer.files["locales/de/other.json"] = "untouched"

    await _download(
        tracker,
        api,
        writer,
        ledger_store,
        telemetry,
        clock,
        clear_locale_dirs=True,
    )

    assert writer.cleared == [
        ({"locales/es": "es", "locales/fr": "fr"}, ["locales/[locale]/keep.json"])
    ]
    assert "locales/es/stale.json" not in writer.files
    assert writer.files["locales/de/other.json"] == "untouched"
    assert DownloadEvent.LOCALE_DIRS_CLEARED in log_sink.events()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_clearing_failure_still_delivers_translations(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    log_sink: RecordingLogSink,
) -> None:
    """A failed clear is logged and the translations are written anyway."""
    tracker, targets = _completed(api, 1, ("es", "fr"))
    writer.clear_error = OutputError(
        OutputErrorInfo(code=OutputErrorCode.IO_ERROR, message="permission denied")
    )

    result = await _download(
        tracker,
        api,
        writer,
        ledger_store,
        telemetry,
        clock,
        clear_locale_dirs=True,
    )

    assert result.success is True
    assert result.summary.downloaded == 2
    assert set(writer.files) == {"locales/es/file0.json", "locales/fr/file0.json"}
    assert {entry.key for entry in ledger_store.ledger.entries()} == {
        target.key for target in targets
    }
    assert DownloadEvent.LOCALE_DIRS_CLEAR_FAILED in log_sink.events()
    assert DownloadEvent.LOCALE_DIRS_CLEARED not in log_sink.events()


@pytest.mark.unit
def test_locale_directories_skip_in_place_outputs() -> None:
    """Outputs that overwrite their source never mark a directory."""
    directories = locale_directories(
        [
            ("home.json", "home.json", "es"),
            ("home.json", "content/es/nested/es/home.json", "es"),
            ("docs/intro.md", "docs/fr-intro.md", "fr"),
        ]
    )

    assert directories == {"content/es": "es"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ledger_errors_do_not_abort_delivery(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
    log_sink: RecordingLogSink,
) -> None:
    """Unreadable and unwritable ledgers are logged, files still land."""
    tracker, _ = _completed(api, 1)
    ledger_store.load_error = _ledger_error()
    ledger_store.save_error = _ledger_error()

    result = await _download(tracker, api, writer, ledger_store, telemetry, clock)

    assert result.success is True
    assert result.summary.downloaded == 1
    events = log_sink.events()
    assert DownloadEvent.LEDGER_READ_FAILED in events
    assert DownloadEvent.LEDGER_WRITE_FAILED in events


@pytest.mark.unit
@pytest.mark.asyncio
async def test_nothing_completed_skips_the_stage(
    api: FakeTranslationApi,
    writer: InMemoryOutputWriter,
    ledger_store: InMemoryLedgerStore,
    telemetry: SyncTelemetry,
    clock: FakeClock,
) -> None:
    """An empty completed collection makes no calls."""
    result = await _download(
        FileStatusTracker(), api, writer, ledger_store, telemetry, clock
    )

    assert result.success is True
    assert api.calls == []
