"""Port for writing translated files to the project."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import ContentHash, LanguageCode
from locsync_schemas.responses import ErrorDetails, ErrorResponse

# Maps (source file name, locale) to an output path; None excludes the file.
type OutputPathResolver = Callable[[str, LanguageCode], str | None]


class OutputErrorCode(StrEnum):
    """Error codes raised by output writers."""

    IO_ERROR = "io_error"


class OutputErrorDetails(BaseSchema):
    """Additional context for output writer errors."""

    path: str | None = Field(None, description="Output path")
    operation: str | None = Field(None, description="Writer operation name")
    reason: str | None = Field(None, description="Underlying error text")


class OutputErrorInfo(BaseSchema):
    """Error payload for output writer failures."""

    code: OutputErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: OutputErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert output error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.path is not None:
            details = ErrorDetails(
                field="path", provided=self.details.path, valid_options=None
            )
        return ErrorResponse(
            code=self.code.value, message=self.message, details=details
        )


class OutputError(Exception):
    """Output writer error with structured details."""

    def __init__(self, info: OutputErrorInfo) -> None:
        """Initialize the output error.

        Args:
            info: Structured output error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class OutputWriterProtocol(Protocol):
    """Writes translated files below the project directory."""

    async def write_file(self, path: str, data: str) -> ContentHash:
        """Write a file and return the hash of the content as written."""
        raise NotImplementedError

    async def read_hash(self, path: str) -> ContentHash | None:
        """Return the hash of a file on disk, or None if it does not exist."""
        raise NotImplementedError

    async def clear_directories(
        self, directories: dict[str, LanguageCode], exclude: list[str]
    ) -> list[str]:
        """Delete files below locale directories, keeping excluded paths.

        ``directories`` maps each directory to the locale it holds so that
        ``[locale]`` placeholders in ``exclude`` can be expanded.

        Returns the deleted file paths.
        """
        raise NotImplementedError
