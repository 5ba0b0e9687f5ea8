"""Resolve the translation branch a sync run writes to."""

from __future__ import annotations

import asyncio

from locsync_core.ports.api import ApiError, ApiErrorCode, TranslationApiProtocol
from locsync_core.ports.orchestrator import (
    SyncError,
    SyncErrorCode,
    SyncErrorDetails,
    SyncErrorInfo,
)
from locsync_core.ports.vcs import BranchDetectorProtocol
from locsync_core.telemetry import SyncTelemetry
from locsync_schemas.branches import (
    Branch,
    BranchContext,
    BranchQueryResult,
    DetectedBranch,
)
from locsync_schemas.config import BranchOptions
from locsync_schemas.events import BranchEvent
from locsync_schemas.primitives import SyncStage

FALLBACK_WARNING = "Branch auto-detection is disabled or failed. Using default branch."


class BranchResolver:
    """Determine the current, incoming and checked-out branches for a run.

    Name resolution follows a fixed priority: disabled branching uses the
    project default; an explicit override names the current branch; else a
    successful detection does; otherwise the run falls back to the default
    with a warning. The remote registry is queried once for every candidate
    name, and missing branches are created.
    """

    def __init__(
        self,
        *,
        api: TranslationApiProtocol,
        options: BranchOptions,
        telemetry: SyncTelemetry,
        detector: BranchDetectorProtocol | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            api: Translation service client for this invocation.
            options: Branch resolution settings.
            telemetry: Telemetry emitter for the run.
            detector: Version control detector; required for auto-detection.
        """
        self._api = api
        self._options = options
        self._telemetry = telemetry
        self._detector = detector

    async def resolve(self) -> BranchContext:
        """Resolve the branch context for this run.

        Returns:
            BranchContext: Current branch plus optional lineage hints.

        Raises:
            SyncError: If no branch can be found or created.
        """
        if not self._options.enabled:
            query = await self._query([])
            current = await self._default_branch(
                query, self._options.default_branch_name
            )
            return await self._finish(BranchContext(current_branch=current))

        detected: DetectedBranch | None = None
        incoming_names: list[str] = []
        checked_out_names: list[str] = []
        if self._options.auto_detect and self._detector is not None:
            detected, incoming_names, checked_out_names = await self._detect(
                self._detector
            )

        current_name = self._options.current_branch
        if current_name is None and detected is not None:
            current_name = detected.current_branch_name
        # Lineage from the default is only assumed when detection gave nothing
        assume_checked_out_from_default = detected is None
        if detected is None:
            incoming_names = []
            checked_out_names = []

        default_name = self._options.default_branch_name
        if detected is not None and detected.default_branch_name:
            default_name = detected.default_branch_name

        if current_name is None:
            await self._telemetry.warn(
                BranchEvent.FALLBACK, FALLBACK_WARNING, stage=SyncStage.BRANCH
            )
            query = await self._query([])
            current = await self._default_branch(query, default_name)
            return await self._finish(BranchContext(current_branch=current))

        query = await self._query(
            _dedupe([current_name, *incoming_names, *checked_out_names])
        )
        by_name = {branch.name: branch for branch in query.branches}
        current = by_name.get(current_name)
        if current is None:
            creates_default = (
                detected is not None
                and detected.default_branch
                and self._options.current_branch is None
                and query.default_branch is None
            )
            current = await self._create_named(
                current_name, query, default_name, default=creates_default
            )

        incoming = _first_existing(incoming_names, by_name, exclude=current.name)
        checked_out = _first_existing(
            checked_out_names, by_name, exclude=current.name
        )
        if checked_out is None and assume_checked_out_from_default:
            default = query.default_branch
            if default is not None and default.id != current.id:
                checked_out = default
        return await self._finish(
            BranchContext(
                current_branch=current,
                incoming_branch=incoming,
                checked_out_branch=checked_out,
            )
        )

    async def _detect(
        self, detector: BranchDetectorProtocol
    ) -> tuple[DetectedBranch | None, list[str], list[str]]:
        async with asyncio.TaskGroup() as group:
            current_task = group.create_task(detector.detect_current_branch())
            incoming_task = group.create_task(detector.detect_incoming_branches())
            checked_out_task = group.create_task(
                detector.detect_checked_out_branches()
            )
        return (
            current_task.result(),
            incoming_task.result(),
            checked_out_task.result(),
        )

    async def _query(self, names: list[str]) -> BranchQueryResult:
        try:
            return await self._api.query_branch_data(names)
        except ApiError as exc:
            raise _unresolvable(f"Branch lookup failed: {exc}", None) from exc

    async def _default_branch(self, query: BranchQueryResult, name: str) -> Branch:
        if query.default_branch is not None:
            return query.default_branch
        try:
            branch = await self._api.create_branch(name, default=True)
        except ApiError as exc:
            raise _unresolvable(
                f"Default branch '{name}' does not exist and could not be created",
                name,
            ) from exc
        await self._telemetry.log(
            BranchEvent.CREATED,
            f"Created default branch '{branch.name}'",
            stage=SyncStage.BRANCH,
            data={"branch_id": branch.id, "branch_name": branch.name},
        )
        return branch

    async def _create_named(
        self,
        name: str,
        query: BranchQueryResult,
        default_name: str,
        *,
        default: bool,
    ) -> Branch:
        try:
            branch = await self._api.create_branch(name, default=default)
        except ApiError as exc:
            if exc.info.code != ApiErrorCode.POLICY_REJECTED:
                raise _unresolvable(
                    f"Branch '{name}' does not exist and could not be created", name
                ) from exc
            await self._telemetry.warn(
                BranchEvent.FALLBACK,
                f"Branch '{name}' could not be created ({exc}). Using default branch.",
                stage=SyncStage.BRANCH,
                data={"branch_name": name},
            )
            return await self._default_branch(query, default_name)
        await self._telemetry.log(
            BranchEvent.CREATED,
            f"Created branch '{branch.name}'",
            stage=SyncStage.BRANCH,
            data={"branch_id": branch.id, "branch_name": branch.name},
        )
        return branch

    async def _finish(self, context: BranchContext) -> BranchContext:
        await self._telemetry.log(
            BranchEvent.RESOLVED,
            f"Using branch '{context.current_branch.name}'",
            stage=SyncStage.BRANCH,
            data={
                "current_branch": context.current_branch.name,
                "incoming_branch": _branch_name(context.incoming_branch),
                "checked_out_branch": _branch_name(context.checked_out_branch),
            },
        )
        return context


def _dedupe(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


def _first_existing(
    names: list[str], by_name: dict[str, Branch], *, exclude: str
) -> Branch | None:
    for name in names:
        if name != exclude and name in by_name:
            return by_name[name]
    return None


def _branch_name(branch: Branch | None) -> str | None:
    return None if branch is None else branch.name


def _unresolvable(message: str, branch_name: str | None) -> SyncError:
    return SyncError(
        SyncErrorInfo(
            code=SyncErrorCode.BRANCH_UNRESOLVABLE,
            message=message,
            details=SyncErrorDetails(
                stage=SyncStage.BRANCH, branch_name=branch_name, reason=None
            ),
        )
    )
