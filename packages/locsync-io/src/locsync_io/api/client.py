"""HTTP adapter for the remote translation service."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import TypeVar

import httpx
from pydantic import Field, ValidationError

from locsync_core.ports.api import (
    ApiError,
    ApiErrorCode,
    ApiErrorDetails,
    ApiErrorInfo,
    TranslationApiProtocol,
)
from locsync_core.ports.orchestrator import SyncError, SyncErrorCode, SyncErrorInfo
from locsync_schemas.base import BaseSchema
from locsync_schemas.branches import Branch, BranchQueryResult
from locsync_schemas.config import ApiConfig
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
from locsync_schemas.jobs import EnqueueOptions, EnqueueResult, Job, JobStatusRecord
from locsync_schemas.primitives import (
    BranchId,
    FileId,
    JobId,
    LanguageCode,
    VersionId,
)

ResponseT = TypeVar("ResponseT", bound=BaseSchema)

API_KEY_HEADER = "x-gt-api-key"
PROJECT_ID_HEADER = "x-gt-project-id"

_STATUS_ERROR_CODES = {
    401: ApiErrorCode.UNAUTHORIZED,
    402: ApiErrorCode.POLICY_REJECTED,
    403: ApiErrorCode.POLICY_REJECTED,
    404: ApiErrorCode.NOT_FOUND,
    429: ApiErrorCode.RATE_LIMITED,
}


class _CreateBranchResponse(BaseSchema):
    branch: Branch


class _OrphanedFilesResponse(BaseSchema):
    orphaned_files: list[OrphanedFile] = Field(default_factory=list)


class _MoveResponse(BaseSchema):
    results: list[FileMoveResult] = Field(default_factory=list)


class _UploadResponse(BaseSchema):
    uploaded_files: list[FileReference] = Field(default_factory=list)


class _JobPayload(BaseSchema):
    source_file_id: FileId
    file_id: FileId
    version_id: VersionId
    branch_id: BranchId
    target_locale: LanguageCode
    force: bool = False
    model_provider: str | None = None


class _EnqueueResponse(BaseSchema):
    job_data: dict[str, _JobPayload] = Field(default_factory=dict)
    locales: list[LanguageCode] = Field(default_factory=list)
    message: str | None = None


class _JobStatusResponse(BaseSchema):
    jobs: list[JobStatusRecord] = Field(default_factory=list)


class _DownloadResponse(BaseSchema):
    files: list[DownloadedFile] = Field(default_factory=list)


class HttpTranslationApi(TranslationApiProtocol):
    """Translation service client speaking JSON over HTTP.

    One instance is built per invocation. The underlying ``httpx.AsyncClient``
    may be injected; otherwise the instance owns one and closes it in
    :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        base_url: str,
        project_id: str,
        api_key: str,
        timeout_s: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service base URL.
            project_id: Remote project identifier.
            api_key: API key sent with every request.
            timeout_s: Request timeout in seconds.
            http_client: Optional pre-configured HTTP client for dependency
                injection.
        """
        self._base_url = base_url.rstrip("/")
        self._headers = {API_KEY_HEADER: api_key, PROJECT_ID_HEADER: project_id}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpTranslationApi:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def query_branch_data(self, names: list[str]) -> BranchQueryResult:
        """Look up branches by name together with the project default.

        Returns:
            BranchQueryResult: Matching branches and the default branch.
        """
        return await self._post(
            "query_branch_data",
            "/v2/project/branches/info",
            {"branchNames": names},
            BranchQueryResult,
        )

    async def create_branch(self, name: str, *, default: bool) -> Branch:
        """Create a branch, or fetch it if it already exists.

        Returns:
            Branch: The created or existing branch.
        """
        response = await self._post(
            "create_branch",
            "/v2/project/branches/create",
            {"branchName": name, "defaultBranch": default},
            _CreateBranchResponse,
        )
        return response.branch

    async def query_file_data(
        self,
        *,
        source_files: list[SourceFileQuery] | None = None,
        translated_files: list[TranslatedFileQuery] | None = None,
    ) -> FileQueryResult:
        """Return the records the service holds for the queried files.

        Returns:
            FileQueryResult: Matched source and translated file records.
        """
        payload: dict[str, object] = {}
        if source_files is not None:
            payload["sourceFiles"] = _dump_all(source_files)
        if translated_files is not None:
            payload["translatedFiles"] = _dump_all(translated_files)
        return await self._post(
            "query_file_data", "/v2/project/files/info", payload, FileQueryResult
        )

    async def get_orphaned_files(
        self, branch_id: BranchId, known_file_ids: list[FileId]
    ) -> list[OrphanedFile]:
        """List files on a branch that the current run does not know.

        Returns:
            list[OrphanedFile]: Orphaned files on the branch.
        """
        response = await self._post(
            "get_orphaned_files",
            "/v2/project/files/orphaned",
            {"branchId": branch_id, "fileIds": known_file_ids},
            _OrphanedFilesResponse,
        )
        return response.orphaned_files

    async def process_file_moves(
        self, moves: list[FileMove], branch_id: BranchId
    ) -> list[FileMoveResult]:
        """Migrate existing translations to renamed files.

        Returns:
            list[FileMoveResult]: Per-move outcome.
        """
        response = await self._post(
            "process_file_moves",
            "/v2/project/files/moves",
            {"branchId": branch_id, "moves": _dump_all(moves)},
            _MoveResponse,
        )
        return response.results

    async def upload_source_files(
        self,
        files: list[SourceFileUpload],
        *,
        source_locale: LanguageCode,
        model_provider: str | None = None,
    ) -> list[FileReference]:
        """Upload source files and return their references.

        Returns:
            list[FileReference]: References for the uploaded files.
        """
        payload: dict[str, object] = {
            "data": [{"source": item} for item in _dump_all(files)],
            "sourceLocale": source_locale,
        }
        if model_provider is not None:
            payload["modelProvider"] = model_provider
        response = await self._post(
            "upload_source_files",
            "/v2/project/files/upload-files",
            payload,
            _UploadResponse,
        )
        return response.uploaded_files

    async def enqueue_files(
        self, refs: list[FileReference], options: EnqueueOptions
    ) -> EnqueueResult:
        """Request translation of every reference into every target locale.

        Returns:
            EnqueueResult: Created jobs and covered locales.
        """
        payload: dict[str, object] = {
            "files": _dump_all(refs),
            **options.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
        response = await self._post(
            "enqueue_files",
            "/v2/project/translations/enqueue",
            payload,
            _EnqueueResponse,
        )
        jobs = [
            Job(job_id=job_id, **job.model_dump())
            for job_id, job in response.job_data.items()
        ]
        return EnqueueResult(
            jobs=jobs, locales=response.locales, message=response.message
        )

    async def check_job_status(self, job_ids: list[JobId]) -> list[JobStatusRecord]:
        """Return the current status of the given jobs.

        Returns:
            list[JobStatusRecord]: Status per job.
        """
        response = await self._post(
            "check_job_status",
            "/v2/project/jobs/info",
            {"jobIds": job_ids},
            _JobStatusResponse,
        )
        return response.jobs

    async def download_files(
        self, files: list[TranslatedFileQuery]
    ) -> list[DownloadedFile]:
        """Download a batch of translated files.

        Returns:
            list[DownloadedFile]: Files the service delivered.
        """
        response = await self._post(
            "download_files",
            "/v2/project/files/download",
            {"files": _dump_all(files)},
            _DownloadResponse,
        )
        return response.files

    async def _post(
        self,
        operation: str,
        path: str,
        payload: Mapping[str, object],
        response_model: type[ResponseT],
    ) -> ResponseT:
        try:
            response = await self._client.post(
                f"{self._base_url}{path}", json=payload, headers=self._headers
            )
        except httpx.TransportError as exc:
            raise _api_error(
                ApiErrorCode.TRANSPORT_ERROR,
                f"{operation} request failed: {exc}",
                operation=operation,
                reason=str(exc),
            ) from exc
        if response.is_error:
            raise _status_error(operation, response)
        try:
            return response_model.model_validate_json(response.content)
        except ValidationError as exc:
            raise _api_error(
                ApiErrorCode.INVALID_RESPONSE,
                f"{operation} returned an unexpected payload",
                operation=operation,
                status_code=response.status_code,
                reason=str(exc),
            ) from exc


def build_translation_api(
    config: ApiConfig,
    *,
    environ: Mapping[str, str] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> HttpTranslationApi:
    """Build the translation service client from configuration.

    Args:
        config: Service connection settings.
        environ: Environment to read the API key from (defaults to os.environ).
        http_client: Optional pre-configured HTTP client.

    Returns:
        HttpTranslationApi: Configured client.

    Raises:
        SyncError: If the API key environment variable is unset or empty.
    """
    env = os.environ if environ is None else environ
    api_key = env.get(config.api_key_env, "").strip()
    if not api_key:
        raise SyncError(
            SyncErrorInfo(
                code=SyncErrorCode.MISSING_CREDENTIALS,
                message=f"Set {config.api_key_env} to the project API key",
                details=None,
            )
        )
    return HttpTranslationApi(
        base_url=config.base_url,
        project_id=config.project_id,
        api_key=api_key,
        timeout_s=config.timeout_s,
        http_client=http_client,
    )


def _dump_all(models: Sequence[BaseSchema]) -> list[dict[str, object]]:
    return [
        model.model_dump(mode="json", by_alias=True, exclude_none=True)
        for model in models
    ]


def _status_error(operation: str, response: httpx.Response) -> ApiError:
    status = response.status_code
    code = _STATUS_ERROR_CODES.get(status)
    if code is None:
        code = ApiErrorCode.SERVER_ERROR if status >= 500 else ApiErrorCode.BAD_REQUEST
    return _api_error(
        code,
        f"{operation} failed with HTTP {status}",
        operation=operation,
        status_code=status,
        reason=response.text[:500] or None,
    )


def _api_error(
    code: ApiErrorCode,
    message: str,
    *,
    operation: str,
    status_code: int | None = None,
    reason: str | None = None,
) -> ApiError:
    return ApiError(
        ApiErrorInfo(
            code=code,
            message=message,
            details=ApiErrorDetails(
                operation=operation, status_code=status_code, reason=reason
            ),
        )
    )
