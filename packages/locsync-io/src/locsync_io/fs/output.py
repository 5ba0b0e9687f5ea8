"""Filesystem writer for translated output files."""

from __future__ import annotations

import asyncio
from fnmatch import fnmatch
from pathlib import Path

import anyio

from locsync_core.identity import hash_text
from locsync_core.ports.output import (
    OutputError,
    OutputErrorCode,
    OutputErrorDetails,
    OutputErrorInfo,
    OutputWriterProtocol,
)
from locsync_schemas.primitives import ContentHash, LanguageCode

LOCALE_PLACEHOLDERS = ("[locales]", "[locale]", "{locale}")


class FileSystemOutputWriter(OutputWriterProtocol):
    """Writes translated files below a project directory.

    Relative paths resolve against ``project_dir``; absolute paths are
    used as given.
    """

    def __init__(self, project_dir: str | Path = ".") -> None:
        """Initialize the writer with the project root."""
        self._project_dir = Path(project_dir)

    async def write_file(self, path: str, data: str) -> ContentHash:
        """Write a file, creating parent directories as needed.

        Returns:
            ContentHash: Hash of the content as written.

        Raises:
            OutputError: If the file cannot be written.
        """
        target = anyio.Path(self._resolve(path))
        try:
            await target.parent.mkdir(parents=True, exist_ok=True)
            await target.write_text(data, encoding="utf-8")
        except OSError as exc:
            raise _output_error(path, "write", exc) from exc
        return hash_text(data)

    async def read_hash(self, path: str) -> ContentHash | None:
        """Return the hash of a file on disk, or None if it does not exist.

        Raises:
            OutputError: If an existing file cannot be read.
        """
        target = anyio.Path(self._resolve(path))
        try:
            data = await target.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise _output_error(path, "read", exc) from exc
        return hash_text(data)

    async def clear_directories(
        self, directories: dict[str, LanguageCode], exclude: list[str]
    ) -> list[str]:
        """Delete files below locale directories, keeping excluded paths.

        Missing directories are ignored. Directories left empty are removed,
        the locale directory itself included.

        Raises:
            OutputError: If a file or directory cannot be removed.
        """
        deleted: list[str] = []
        for directory, locale in directories.items():
            patterns = [
                str(self._resolve(pattern))
                for pattern in expand_locale_patterns(exclude, locale)
            ]
            try:
                removed = await asyncio.to_thread(
                    _clear_directory, self._resolve(directory), patterns
                )
            except OSError as exc:
                raise _output_error(directory, "clear", exc) from exc
            deleted.extend(removed)
        return deleted

    def _resolve(self, path: str) -> Path:
        return self._project_dir / path


def expand_locale_patterns(patterns: list[str], locale: LanguageCode) -> list[str]:
    """Substitute the locale into ``[locale]``, ``[locales]`` and ``{locale}``.

    Returns:
        list[str]: Patterns with every placeholder replaced.
    """
    expanded: list[str] = []
    for pattern in patterns:
        for placeholder in LOCALE_PLACEHOLDERS:
            pattern = pattern.replace(placeholder, locale)
        expanded.append(pattern)
    return expanded


def _clear_directory(directory: Path, exclude: list[str]) -> list[str]:
    if not directory.is_dir():
        return []
    deleted: list[str] = []
    for path in sorted(directory.rglob("*"), reverse=True):
        if path.is_dir():
            if not any(path.iterdir()):
                path.rmdir()
            continue
        if any(fnmatch(str(path), pattern) for pattern in exclude):
            continue
        path.unlink()
        deleted.append(str(path))
    if not any(directory.iterdir()):
        directory.rmdir()
    return deleted


def _output_error(path: str, operation: str, exc: OSError) -> OutputError:
    return OutputError(
        OutputErrorInfo(
            code=OutputErrorCode.IO_ERROR,
            message=f"Failed to {operation} {path}: {exc}",
            details=OutputErrorDetails(
                path=path, operation=operation, reason=str(exc)
            ),
        )
    )
