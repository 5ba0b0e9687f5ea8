"""Emit structured sync telemetry to log and progress sinks."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from locsync_core.ports.orchestrator import (
    LogSinkProtocol,
    ProgressSinkProtocol,
    build_stage_log,
    build_sync_completed_log,
    build_sync_failed_log,
    build_sync_started_log,
)
from locsync_schemas.events import ProgressEvent, StageEventSuffix
from locsync_schemas.logs import LogEntry
from locsync_schemas.primitives import (
    JsonValue,
    LogLevel,
    RunId,
    StageStatus,
    SyncStage,
    SyncStatus,
    Timestamp,
)
from locsync_schemas.progress import ProgressUpdate


def now_timestamp() -> Timestamp:
    """Return the current UTC time as an ISO-8601 timestamp."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class SyncTelemetry:
    """Emit sync telemetry for one run to optional log and progress sinks.

    Stages never print. Everything a user might see goes through this
    emitter, and both sinks are optional so the engine runs silently when
    the caller does not subscribe.
    """

    def __init__(
        self,
        *,
        run_id: RunId,
        log_sink: LogSinkProtocol | None = None,
        progress_sink: ProgressSinkProtocol | None = None,
        clock: Callable[[], Timestamp] = now_timestamp,
    ) -> None:
        """Initialize the telemetry emitter.

        Args:
            run_id: Run identifier stamped on every entry.
            log_sink: Optional sink for JSONL log entries.
            progress_sink: Optional sink for progress updates.
            clock: Timestamp provider for telemetry events.
        """
        self.run_id = run_id
        self._log_sink = log_sink
        self._progress_sink = progress_sink
        self._clock = clock

    async def log(
        self,
        event: str,
        message: str,
        *,
        stage: SyncStage | None = None,
        level: LogLevel = LogLevel.INFO,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit a free-form structured log entry."""
        if self._log_sink is None:
            return
        entry = LogEntry(
            timestamp=self._clock(),
            level=level,
            event=str(event),
            run_id=self.run_id,
            stage=stage,
            message=message,
            data=data,
        )
        await self._log_sink.emit_log(entry)

    async def warn(
        self,
        event: str,
        message: str,
        *,
        stage: SyncStage | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit a warning log entry."""
        await self.log(event, message, stage=stage, level=LogLevel.WARN, data=data)

    async def error(
        self,
        event: str,
        message: str,
        *,
        stage: SyncStage | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit an error log entry."""
        await self.log(event, message, stage=stage, level=LogLevel.ERROR, data=data)

    async def sync_started(self, stages: list[SyncStage], unit_count: int) -> None:
        """Report the start of a sync run."""
        timestamp = self._clock()
        await self._emit_log(
            build_sync_started_log(timestamp, self.run_id, stages, unit_count)
        )
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.SYNC_STARTED,
                timestamp=timestamp,
                total=len(stages),
                completed=0,
            )
        )

    async def sync_completed(self, status: SyncStatus) -> None:
        """Report the end of a sync run that produced a summary."""
        timestamp = self._clock()
        await self._emit_log(build_sync_completed_log(timestamp, self.run_id, status))
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.SYNC_COMPLETED,
                timestamp=timestamp,
                message=status.value,
            )
        )

    async def sync_failed(self, message: str, error_code: str, why: str) -> None:
        """Report an invocation-wide failure."""
        timestamp = self._clock()
        await self._emit_log(
            build_sync_failed_log(timestamp, self.run_id, message, error_code, why)
        )
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.SYNC_FAILED,
                timestamp=timestamp,
                message=message,
            )
        )

    async def stage_started(self, stage: SyncStage, total: int | None = None) -> None:
        """Report the start of a stage."""
        timestamp = self._clock()
        await self._emit_log(
            build_stage_log(
                timestamp,
                self.run_id,
                stage,
                StageEventSuffix.STARTED,
                f"{stage.value.capitalize()} stage started",
                data=None if total is None else {"total": total},
            )
        )
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.STAGE_STARTED,
                timestamp=timestamp,
                stage=stage,
                stage_status=StageStatus.RUNNING,
                completed=None if total is None else 0,
                total=total,
            )
        )

    async def stage_progress(
        self,
        stage: SyncStage,
        *,
        completed: int,
        total: int | None = None,
        message: str | None = None,
    ) -> None:
        """Report incremental progress within a stage."""
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.STAGE_PROGRESS,
                timestamp=self._clock(),
                stage=stage,
                stage_status=StageStatus.RUNNING,
                completed=completed,
                total=total,
                message=message,
            )
        )

    async def stage_completed(
        self,
        stage: SyncStage,
        message: str,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Report the successful end of a stage."""
        timestamp = self._clock()
        await self._emit_log(
            build_stage_log(
                timestamp,
                self.run_id,
                stage,
                StageEventSuffix.COMPLETED,
                message,
                data=data,
            )
        )
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.STAGE_COMPLETED,
                timestamp=timestamp,
                stage=stage,
                stage_status=StageStatus.COMPLETED,
                message=message,
            )
        )

    async def stage_failed(
        self,
        stage: SyncStage,
        message: str,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Report the failure of a stage."""
        timestamp = self._clock()
        await self._emit_log(
            build_stage_log(
                timestamp,
                self.run_id,
                stage,
                StageEventSuffix.FAILED,
                message,
                data=data,
                level=LogLevel.ERROR,
            )
        )
        await self._emit_progress(
            ProgressUpdate(
                run_id=self.run_id,
                event=ProgressEvent.STAGE_FAILED,
                timestamp=timestamp,
                stage=stage,
                stage_status=StageStatus.FAILED,
                message=message,
            )
        )

    async def stage_skipped(self, stage: SyncStage, message: str) -> None:
        """Report a stage that had nothing to do."""
        await self._emit_log(
            build_stage_log(
                self._clock(),
                self.run_id,
                stage,
                StageEventSuffix.SKIPPED,
                message,
            )
        )

    async def _emit_log(self, entry: LogEntry) -> None:
        if self._log_sink is not None:
            await self._log_sink.emit_log(entry)

    async def _emit_progress(self, update: ProgressUpdate) -> None:
        if self._progress_sink is not None:
            await self._progress_sink.emit_progress(update)
