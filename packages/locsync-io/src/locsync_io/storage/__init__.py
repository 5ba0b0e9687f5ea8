"""Storage adapters for the ledger, logs and progress updates."""

from locsync_io.storage.ledger import FileSystemLedgerStore
from locsync_io.storage.log_sink import (
    DEFAULT_LOG_PATH,
    CompositeLogSink,
    ConsoleLogSink,
    FileLogSink,
    InMemoryLogSink,
    NoopLogSink,
    build_log_sink,
)
from locsync_io.storage.progress_sink import (
    CompositeProgressSink,
    FileSystemProgressSink,
    InMemoryProgressSink,
)

__all__ = [
    "DEFAULT_LOG_PATH",
    "CompositeLogSink",
    "CompositeProgressSink",
    "ConsoleLogSink",
    "FileLogSink",
    "FileSystemLedgerStore",
    "FileSystemProgressSink",
    "InMemoryLogSink",
    "InMemoryProgressSink",
    "NoopLogSink",
    "build_log_sink",
]
