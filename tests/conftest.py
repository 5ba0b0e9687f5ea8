"""Common pytest configuration."""

from __future__ import annotations

import pytest

from locsync_core.telemetry import SyncTelemetry
from tests.helpers.builders import FIXED_TIMESTAMP, RUN_ID
from tests.helpers.fakes import (
    FakeClock,
    FakeTranslationApi,
    InMemoryLedgerStore,
    InMemoryOutputWriter,
    RecordingLogSink,
    RecordingProgressSink,
)


@pytest.fixture
def api() -> FakeTranslationApi:
    """Provide an in-memory translation service.

    Returns:
        FakeTranslationApi: Fake with a ``main`` default branch.
    """
    return FakeTranslationApi()


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake monotonic clock and sleep.

    Returns:
        FakeClock: Clock starting at zero.
    """
    return FakeClock()


@pytest.fixture
def log_sink() -> RecordingLogSink:
    """Provide a recording log sink.

    Returns:
        RecordingLogSink: Empty sink.
    """
    return RecordingLogSink()


@pytest.fixture
def progress_sink() -> RecordingProgressSink:
    """Provide a recording progress sink.

    Returns:
        RecordingProgressSink: Empty sink.
    """
    return RecordingProgressSink()


@pytest.fixture
def telemetry(
    log_sink: RecordingLogSink, progress_sink: RecordingProgressSink
) -> SyncTelemetry:
    """Provide telemetry bound to the recording sinks.

    Returns:
        SyncTelemetry: Emitter with a fixed clock.
    """
    return SyncTelemetry(
        run_id=RUN_ID,
        log_sink=log_sink,
        progress_sink=progress_sink,
        clock=lambda: FIXED_TIMESTAMP,
    )


@pytest.fixture
def writer() -> InMemoryOutputWriter:
    """Provide an in-memory output writer.

    Returns:
        InMemoryOutputWriter: Empty writer.
    """
    return InMemoryOutputWriter()


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    """Provide an in-memory ledger store.

    Returns:
        InMemoryLedgerStore: Store holding an empty ledger.
    """
    return InMemoryLedgerStore()
