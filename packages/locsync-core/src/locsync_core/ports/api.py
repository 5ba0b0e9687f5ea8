"""Port for the remote translation service."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.branches import Branch, BranchQueryResult
from locsync_schemas.files import (
    DownloadedFile,
    FileMove,
    FileMoveResult,
    FileQueryResult,
    FileReference,
    OrphanedFile,
    SourceFileQuery,
    SourceFileUpload,
    TranslatedFileQuery,
)
from locsync_schemas.jobs import EnqueueOptions, EnqueueResult, JobStatusRecord
from locsync_schemas.primitives import BranchId, FileId, JobId, LanguageCode
from locsync_schemas.responses import ErrorDetails, ErrorResponse


class ApiErrorCode(StrEnum):
    """Error codes raised by translation service adapters."""

    UNAUTHORIZED = "unauthorized"
    POLICY_REJECTED = "policy_rejected"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"
    BAD_REQUEST = "bad_request"
    INVALID_RESPONSE = "invalid_response"


RETRYABLE_API_ERROR_CODES = frozenset({
    ApiErrorCode.RATE_LIMITED,
    ApiErrorCode.SERVER_ERROR,
    ApiErrorCode.TRANSPORT_ERROR,
})


class ApiErrorDetails(BaseSchema):
    """Additional context for translation service errors."""

    operation: str | None = Field(None, description="Remote operation name")
    status_code: int | None = Field(None, description="HTTP status code if any")
    reason: str | None = Field(None, description="Response body or error text")


class ApiErrorInfo(BaseSchema):
    """Error payload for translation service failures."""

    code: ApiErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ApiErrorDetails | None = Field(None, description="Error details")

    @property
    def retryable(self) -> bool:
        """Whether a retry may succeed."""
        return self.code in RETRYABLE_API_ERROR_CODES

    def to_error_response(self) -> ErrorResponse:
        """Convert API error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.operation is not None:
            details = ErrorDetails(
                field="operation",
                provided=self.details.operation,
                valid_options=None,
            )
        return ErrorResponse(
            code=self.code.value, message=self.message, details=details
        )


class ApiError(Exception):
    """Translation service error with structured details."""

    def __init__(self, info: ApiErrorInfo) -> None:
        """Initialize the API error.

        Args:
            info: Structured API error information.
        """
        super().__init__(info.message)
        self.info = info


def is_retryable_api_error(error: Exception) -> bool:
    """Return whether an error is a retryable translation service error."""
    return isinstance(error, ApiError) and error.info.retryable


@runtime_checkable
class TranslationApiProtocol(Protocol):
    """Operations the sync stages consume from the translation service.

    One instance is created per invocation and passed to every stage.
    """

    async def query_branch_data(self, names: list[str]) -> BranchQueryResult:
        """Look up branches by name together with the project default."""
        raise NotImplementedError

    async def create_branch(self, name: str, *, default: bool) -> Branch:
        """Create a branch, or fetch it if it already exists.

        Raises ``ApiError`` with ``policy_rejected`` when the project may not
        create more branches.
        """
        raise NotImplementedError

    async def query_file_data(
        self,
        *,
        source_files: list[SourceFileQuery] | None = None,
        translated_files: list[TranslatedFileQuery] | None = None,
    ) -> FileQueryResult:
        """Return the records the service holds for the queried files."""
        raise NotImplementedError

    async def get_orphaned_files(
        self, branch_id: BranchId, known_file_ids: list[FileId]
    ) -> list[OrphanedFile]:
        """List files on a branch whose ids are not among ``known_file_ids``."""
        raise NotImplementedError

    async def process_file_moves(
        self, moves: list[FileMove], branch_id: BranchId
    ) -> list[FileMoveResult]:
        """Migrate existing translations to renamed files."""
        raise NotImplementedError

    async def upload_source_files(
        self,
        files: list[SourceFileUpload],
        *,
        source_locale: LanguageCode,
        model_provider: str | None = None,
    ) -> list[FileReference]:
        """Upload source files and return their references."""
        raise NotImplementedError

    async def enqueue_files(
        self, refs: list[FileReference], options: EnqueueOptions
    ) -> EnqueueResult:
        """Request translation of every reference into every target locale."""
        raise NotImplementedError

    async def check_job_status(self, job_ids: list[JobId]) -> list[JobStatusRecord]:
        """Return the current status of the given jobs."""
        raise NotImplementedError

    async def download_files(
        self, files: list[TranslatedFileQuery]
    ) -> list[DownloadedFile]:
        """Download a batch of translated files.

        Files the service could not deliver are absent from the result.
        """
        raise NotImplementedError
