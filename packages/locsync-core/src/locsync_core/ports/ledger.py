"""Port for persisting the version ledger."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.ledger import VersionLedger
from locsync_schemas.responses import ErrorDetails, ErrorResponse


class LedgerErrorCode(StrEnum):
    """Error codes raised by ledger stores."""

    IO_ERROR = "io_error"
    SERIALIZATION_ERROR = "serialization_error"
    VALIDATION_ERROR = "validation_error"


class LedgerErrorDetails(BaseSchema):
    """Additional context for ledger store errors."""

    path: str | None = Field(None, description="Ledger path")
    operation: str | None = Field(None, description="Store operation name")
    reason: str | None = Field(None, description="Underlying error text")


class LedgerErrorInfo(BaseSchema):
    """Error payload for ledger store failures."""

    code: LedgerErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: LedgerErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert ledger error info to standard error response.

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


class LedgerError(Exception):
    """Ledger store error with structured details."""

    def __init__(self, info: LedgerErrorInfo) -> None:
        """Initialize the ledger error.

        Args:
            info: Structured ledger error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class LedgerStoreProtocol(Protocol):
    """Loads and saves the version ledger of one project directory."""

    async def load(self) -> VersionLedger:
        """Load the ledger, returning an empty one when none exists."""
        raise NotImplementedError

    async def save(self, ledger: VersionLedger) -> None:
        """Persist the ledger, replacing the previous contents."""
        raise NotImplementedError
