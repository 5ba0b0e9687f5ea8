"""Sync stages, run in order by the orchestrator."""

from locsync_core.stages.download import (
    DownloadResult,
    download_translations,
    locale_directories,
)
from locsync_core.stages.enqueue import enqueue_translations
from locsync_core.stages.poll import PollResult, build_targets, poll_jobs
from locsync_core.stages.upload import UploadResult, upload_sources

__all__ = [
    "DownloadResult",
    "PollResult",
    "UploadResult",
    "build_targets",
    "download_translations",
    "enqueue_translations",
    "locale_directories",
    "poll_jobs",
    "upload_sources",
]
