"""Version control adapters."""

from locsync_io.vcs.git import GitBranchDetector, run_command

__all__ = ["GitBranchDetector", "run_command"]
