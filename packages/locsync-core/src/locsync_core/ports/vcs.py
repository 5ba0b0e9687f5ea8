"""Port for version control branch detection."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from locsync_schemas.branches import DetectedBranch


@runtime_checkable
class BranchDetectorProtocol(Protocol):
    """Reads branch names from the working copy's version control."""

    async def detect_current_branch(self) -> DetectedBranch | None:
        """Return the current branch, or None when it cannot be determined."""
        raise NotImplementedError

    async def detect_incoming_branches(self) -> list[str]:
        """Return branches recently merged into the current branch, newest first."""
        raise NotImplementedError

    async def detect_checked_out_branches(self) -> list[str]:
        """Return branches the current branch was created from, newest first."""
        raise NotImplementedError
