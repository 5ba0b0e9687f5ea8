"""Filesystem adapters for translated output."""

from locsync_io.fs.output import FileSystemOutputWriter, expand_locale_patterns

__all__ = ["FileSystemOutputWriter", "expand_locale_patterns"]
