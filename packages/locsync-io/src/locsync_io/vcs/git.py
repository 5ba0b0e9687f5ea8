"""Git-backed branch detection."""

from __future__ import annotations

import asyncio
import re
import subprocess
from collections.abc import Callable
from pathlib import Path

from locsync_core.ports.vcs import BranchDetectorProtocol
from locsync_schemas.branches import DetectedBranch

type CommandRunner = Callable[[list[str], Path], tuple[int, str, str]]

_MERGE_BRANCH = re.compile(r"^Merge (?:remote-tracking )?branch '([^']+)'")
_MERGE_PULL_REQUEST = re.compile(r"^Merge pull request #\d+ from [^/\s]+/(\S+)")
_CHECKOUT = re.compile(r"^checkout: moving from (\S+) to (\S+)$")

MERGE_HISTORY_LIMIT = 50
REFLOG_HISTORY_LIMIT = 500


def run_command(cmd: list[str], cwd: Path) -> tuple[int, str, str]:
    """Run a command and return exit code, stdout, stderr."""
    try:
        result = subprocess.run(  # noqa: S603
            cmd, cwd=cwd, capture_output=True, text=True
        )
    except OSError as exc:
        return 127, "", str(exc)
    return result.returncode, result.stdout, result.stderr


class GitBranchDetector(BranchDetectorProtocol):
    """Read current, incoming and checked-out branch names from git.

    Every lookup degrades to "nothing detected" when git is unavailable or
    the working copy is not a repository; detection never raises.
    """

    def __init__(
        self,
        cwd: str | Path,
        *,
        remote_name: str = "origin",
        runner: CommandRunner = run_command,
    ) -> None:
        """Initialize the detector.

        Args:
            cwd: Working copy directory.
            remote_name: Remote whose HEAD names the default branch.
            runner: Command runner, replaceable in tests.
        """
        self._cwd = Path(cwd)
        self._remote_name = remote_name
        self._runner = runner

    async def detect_current_branch(self) -> DetectedBranch | None:
        """Return the checked-out branch, or None on detached HEAD or error."""
        current = await self._git("rev-parse", "--abbrev-ref", "HEAD")
        if current is None or current in {"", "HEAD"}:
            return None
        default_name = await self._remote_default_branch()
        return DetectedBranch(
            current_branch_name=current,
            default_branch=default_name is not None and current == default_name,
            default_branch_name=default_name,
        )

    async def detect_incoming_branches(self) -> list[str]:
        """Return branches merged into HEAD, newest first."""
        output = await self._git(
            "log",
            "--merges",
            "--first-parent",
            f"-n{MERGE_HISTORY_LIMIT}",
            "--format=%s",
            "HEAD",
        )
        if not output:
            return []
        names: list[str] = []
        for subject in output.splitlines():
            match = _MERGE_BRANCH.match(subject) or _MERGE_PULL_REQUEST.match(subject)
            if match is not None:
                names.append(match.group(1))
        return list(dict.fromkeys(names))

    async def detect_checked_out_branches(self) -> list[str]:
        """Return branches the current branch was checked out from, newest first."""
        current = await self._git("rev-parse", "--abbrev-ref", "HEAD")
        if current is None or current in {"", "HEAD"}:
            return []
        output = await self._git(
            "reflog", f"-n{REFLOG_HISTORY_LIMIT}", "--format=%gs"
        )
        if not output:
            return []
        names: list[str] = []
        for line in output.splitlines():
            match = _CHECKOUT.match(line)
            if match is None:
                continue
            source, destination = match.groups()
            if destination == current and source != current:
                names.append(source)
        return list(dict.fromkeys(names))

    async def _remote_default_branch(self) -> str | None:
        ref = await self._git(
            "symbolic-ref", "--short", f"refs/remotes/{self._remote_name}/HEAD"
        )
        if not ref:
            return None
        prefix = f"{self._remote_name}/"
        return ref[len(prefix) :] if ref.startswith(prefix) else ref

    async def _git(self, *args: str) -> str | None:
        code, out, _ = await asyncio.to_thread(
            self._runner, ["git", *args], self._cwd
        )
        if code != 0:
            return None
        return out.strip()
