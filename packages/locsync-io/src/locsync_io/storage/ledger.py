"""Filesystem-backed version ledger store."""

from __future__ import annotations

from pathlib import Path

import anyio
import orjson
from pydantic import ValidationError

from locsync_core.ports.ledger import (
    LedgerError,
    LedgerErrorCode,
    LedgerErrorDetails,
    LedgerErrorInfo,
    LedgerStoreProtocol,
)
from locsync_schemas.ledger import VersionLedger


class FileSystemLedgerStore(LedgerStoreProtocol):
    """Version ledger persisted as one JSON document.

    The document is written to a sibling temporary file first and then
    renamed over the ledger, so readers never observe a partial write.
    Concurrent runs against one project directory are not guarded.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store with the ledger path."""
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Return the ledger path."""
        return self._path

    async def load(self) -> VersionLedger:
        """Load the ledger, returning an empty one if the file does not exist.

        Returns:
            VersionLedger: Stored ledger.

        Raises:
            LedgerError: If the file cannot be read or parsed.
        """
        path = anyio.Path(self._path)
        try:
            if not await path.exists():
                return VersionLedger()
            raw = await path.read_bytes()
        except OSError as exc:
            raise self._error(LedgerErrorCode.IO_ERROR, "load", exc) from exc
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise self._error(
                LedgerErrorCode.SERIALIZATION_ERROR, "load", exc
            ) from exc
        try:
            return VersionLedger.model_validate(payload)
        except ValidationError as exc:
            raise self._error(LedgerErrorCode.VALIDATION_ERROR, "load", exc) from exc

    async def save(self, ledger: VersionLedger) -> None:
        """Persist the ledger, replacing the previous contents.

        Raises:
            LedgerError: If the file cannot be written.
        """
        payload = orjson.dumps(
            ledger.model_dump(mode="json", by_alias=True),
            option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
        )
        path = anyio.Path(self._path)
        temp_path = path.with_name(f"{path.name}.tmp")
        try:
            await path.parent.mkdir(parents=True, exist_ok=True)
            await temp_path.write_bytes(payload + b"\n")
            await temp_path.replace(path)
        except OSError as exc:
            raise self._error(LedgerErrorCode.IO_ERROR, "save", exc) from exc

    def _error(
        self, code: LedgerErrorCode, operation: str, exc: Exception
    ) -> LedgerError:
        return LedgerError(
            LedgerErrorInfo(
                code=code,
                message=f"Version ledger {operation} failed: {exc}",
                details=LedgerErrorDetails(
                    path=str(self._path), operation=operation, reason=str(exc)
                ),
            )
        )
