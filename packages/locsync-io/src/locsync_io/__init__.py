"""Adapters for locsync: HTTP API, git, filesystem, and sinks."""

from locsync_io.api import HttpTranslationApi, build_translation_api
from locsync_io.config import ConfigError, load_sync_config
from locsync_io.fs import FileSystemOutputWriter
from locsync_io.paths import TemplateOutputResolver
from locsync_io.storage import (
    CompositeLogSink,
    CompositeProgressSink,
    ConsoleLogSink,
    FileLogSink,
    FileSystemLedgerStore,
    FileSystemProgressSink,
    InMemoryLogSink,
    InMemoryProgressSink,
    NoopLogSink,
    build_log_sink,
)
from locsync_io.vcs import GitBranchDetector

__all__ = [
    "CompositeLogSink",
    "CompositeProgressSink",
    "ConfigError",
    "ConsoleLogSink",
    "FileLogSink",
    "FileSystemLedgerStore",
    "FileSystemOutputWriter",
    "FileSystemProgressSink",
    "GitBranchDetector",
    "HttpTranslationApi",
    "InMemoryLogSink",
    "InMemoryProgressSink",
    "NoopLogSink",
    "TemplateOutputResolver",
    "build_log_sink",
    "build_translation_api",
    "load_sync_config",
]
