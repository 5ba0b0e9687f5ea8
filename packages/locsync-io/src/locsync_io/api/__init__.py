"""Translation service adapters."""

from locsync_io.api.client import (
    API_KEY_HEADER,
    PROJECT_ID_HEADER,
    HttpTranslationApi,
    build_translation_api,
)

__all__ = [
    "API_KEY_HEADER",
    "PROJECT_ID_HEADER",
    "HttpTranslationApi",
    "build_translation_api",
]
