"""Log sink adapters for sync events."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

import anyio

from locsync_core.ports.orchestrator import LogSinkProtocol
from locsync_schemas.config import LoggingConfig, LogSinkConfig
from locsync_schemas.logs import LogEntry
from locsync_schemas.primitives import LogLevel, LogSinkType

DEFAULT_LOG_PATH = ".locsync/logs/sync.jsonl"

_LEVEL_RANK = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


def is_enabled(entry: LogEntry, min_level: LogLevel) -> bool:
    """Return whether an entry is at or above the minimum level."""
    return _LEVEL_RANK[entry.level] >= _LEVEL_RANK[min_level]


class FileLogSink(LogSinkProtocol):
    """Appends one JSON object per line to a log file.

    Stages fan requests out concurrently, so appends are serialized to keep
    lines whole.
    """

    def __init__(
        self, path: str | Path, *, min_level: LogLevel = LogLevel.DEBUG
    ) -> None:
        """Initialize the sink with the log file path."""
        self._path = anyio.Path(path)
        self._min_level = min_level
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Return the log file path."""
        return Path(self._path)

    async def emit_log(self, entry: LogEntry) -> None:
        """Append the entry unless it is below the sink's level."""
        if not is_enabled(entry, self._min_level):
            return
        line = entry.model_dump_json(exclude_none=True) + "\n"
        async with self._lock:
            await self._path.parent.mkdir(parents=True, exist_ok=True)
            async with await anyio.open_file(
                self._path, "a", encoding="utf-8"
            ) as handle:
                await handle.write(line)


class ConsoleLogSink(LogSinkProtocol):
    """Writes JSONL entries to a text stream, stderr by default."""

    def __init__(
        self, stream: TextIO | None = None, *, min_level: LogLevel = LogLevel.INFO
    ) -> None:
        """Initialize the console sink.

        Args:
            stream: Stream to write to.
            min_level: Entries below this level are dropped.
        """
        self._stream = stream or sys.stderr
        self._min_level = min_level

    async def emit_log(self, entry: LogEntry) -> None:
        """Write the entry and flush so it shows while a poll is waiting."""
        if not is_enabled(entry, self._min_level):
            return
        print(entry.model_dump_json(exclude_none=True), file=self._stream, flush=True)


class NoopLogSink(LogSinkProtocol):
    """Discards every entry."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Do nothing."""


class InMemoryLogSink(LogSinkProtocol):
    """Keeps entries in a list, for embedding callers and tests."""

    def __init__(self) -> None:
        """Initialize an empty sink."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of the entries received so far."""
        return list(self._entries)

    async def emit_log(self, entry: LogEntry) -> None:
        """Store the entry."""
        self._entries.append(entry)


class CompositeLogSink(LogSinkProtocol):
    """Fans each entry out to several sinks in order."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the composite with its child sinks."""
        self._sinks = tuple(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward the entry to every child sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


def build_log_sink(
    logging_config: LoggingConfig,
    *,
    project_dir: str | Path = ".",
    stream: TextIO | None = None,
) -> LogSinkProtocol:
    """Build the log sink described by the logging configuration.

    File sink paths are resolved against ``project_dir``; a file sink
    without a path writes to ``.locsync/logs/sync.jsonl``.

    Args:
        logging_config: Logging configuration for the run.
        project_dir: Project root for relative log paths.
        stream: Stream for console sinks (stderr when omitted).

    Returns:
        LogSinkProtocol: The single configured sink, or a composite of all.

    Raises:
        ValueError: If an unsupported log sink type is configured.
    """
    sinks = [
        _build_one(sink_config, Path(project_dir), stream)
        for sink_config in logging_config.sinks
    ]
    return sinks[0] if len(sinks) == 1 else CompositeLogSink(sinks)


def _build_one(
    sink_config: LogSinkConfig, project_dir: Path, stream: TextIO | None
) -> LogSinkProtocol:
    if sink_config.type == LogSinkType.FILE:
        return FileLogSink(
            project_dir / (sink_config.path or DEFAULT_LOG_PATH),
            min_level=sink_config.level or LogLevel.DEBUG,
        )
    if sink_config.type == LogSinkType.CONSOLE:
        return ConsoleLogSink(stream, min_level=sink_config.level or LogLevel.INFO)
    if sink_config.type == LogSinkType.NOOP:
        return NoopLogSink()
    raise ValueError(f"Unsupported log sink type: {sink_config.type}")
