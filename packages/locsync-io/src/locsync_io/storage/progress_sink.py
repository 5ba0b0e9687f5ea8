"""Progress sink adapters for sync progress updates."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

import anyio
import orjson

from locsync_core.ports.orchestrator import ProgressSinkProtocol
from locsync_schemas.progress import ProgressUpdate


class FileSystemProgressSink(ProgressSinkProtocol):
    """Appends progress updates to a JSONL file that a watcher can tail."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the sink with the progress file path."""
        self._path = anyio.Path(path)
        self._lock = asyncio.Lock()

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Append the update as one line."""
        line = orjson.dumps(
            update.model_dump(mode="json", exclude_none=True),
            option=orjson.OPT_APPEND_NEWLINE,
        )
        async with self._lock:
            await self._path.parent.mkdir(parents=True, exist_ok=True)
            async with await anyio.open_file(self._path, "ab") as stream:
                await stream.write(line)


class InMemoryProgressSink(ProgressSinkProtocol):
    """Keeps progress updates in a list."""

    def __init__(self) -> None:
        self._updates: list[ProgressUpdate] = []

    @property
    def updates(self) -> list[ProgressUpdate]:
        """Return a copy of the updates received so far."""
        return list(self._updates)

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Store the update."""
        self._updates.append(update)


class CompositeProgressSink(ProgressSinkProtocol):
    """Fans each update out to several sinks in order."""

    def __init__(self, sinks: Iterable[ProgressSinkProtocol]) -> None:
        self._sinks = tuple(sinks)

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Forward the update to every child sink."""
        for sink in self._sinks:
            await sink.emit_progress(update)
