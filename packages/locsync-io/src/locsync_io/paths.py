"""Template-based output path resolution."""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import PurePosixPath

from locsync_schemas.primitives import LanguageCode


class TemplateOutputResolver:
    """Resolve output paths from a template.

    Supported placeholders:

    - ``{locale}`` (or ``[locale]``): target locale code
    - ``{path}``: source file path
    - ``{dir}``: directory of the source file (``.`` at the root)
    - ``{name}``: source file name without extension
    - ``{ext}``: source file extension including the dot

    Files that match none of the ``include`` globs are declined, which
    excludes them from download. An empty include list accepts every file.
    """

    def __init__(self, template: str, include: Iterable[str] = ()) -> None:
        """Initialize the resolver.

        Raises:
            ValueError: If the template has no locale placeholder.
        """
        if "{locale}" not in template and "[locale]" not in template:
            raise ValueError("output template must contain a locale placeholder")
        self._template = template
        self._include = list(include)

    def __call__(self, source_file_name: str, locale: LanguageCode) -> str | None:
        """Return the output path for a source file, or None if excluded."""
        if self._include and not any(
            fnmatch(source_file_name, pattern) for pattern in self._include
        ):
            return None
        source = PurePosixPath(source_file_name)
        replacements = {
            "{locale}": locale,
            "[locale]": locale,
            "{path}": source_file_name,
            "{dir}": str(source.parent),
            "{name}": source.stem,
            "{ext}": source.suffix,
        }
        resolved = self._template
        for placeholder, value in replacements.items():
            resolved = resolved.replace(placeholder, value)
        return str(PurePosixPath(resolved))
