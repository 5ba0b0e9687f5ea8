"""End-to-end sync against a temporary project directory."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from locsync_core.identity import hash_text
from locsync_core.orchestrator import SyncOrchestrator
from locsync_io.fs import FileSystemOutputWriter
from locsync_io.paths import TemplateOutputResolver
from locsync_io.storage import FileSystemLedgerStore, InMemoryLogSink
from locsync_schemas.config import SyncConfig
from locsync_schemas.primitives import SyncStatus
from tests.helpers.builders import FIXED_TIMESTAMP, make_unit
from tests.helpers.fakes import FakeClock, FakeTranslationApi, translate

pytestmark = pytest.mark.integration

HOME = make_unit("home.json", '{"title": "Home"}')
TEMPLATE = "locales/{locale}/{name}{ext}"


def _orchestrator(project_dir: Path, api: FakeTranslationApi) -> SyncOrchestrator:
    config = SyncConfig.model_validate(
        {
            "project_dir": str(project_dir),
            "api": {"project_id": "proj-1"},
            "languages": {"source_language": "en", "target_languages": ["es", "fr"]},
            "poll": {"interval_s": 1, "timeout_s": 10},
        },
        strict=False,
    )
    clock = FakeClock()
    return SyncOrchestrator(
        config=config,
        api=api,
        writer=FileSystemOutputWriter(project_dir),
        ledger_store=FileSystemLedgerStore(project_dir / config.ledger_path),
        log_sink=InMemoryLogSink(),
        clock=lambda: FIXED_TIMESTAMP,
        monotonic=clock.monotonic,
        sleep=clock.sleep,
    )


@pytest.mark.asyncio
async def test_sync_writes_locale_files_and_ledger(tmp_path: Path) -> None:
    """Translations land on disk and the ledger records their hashes."""
    api = FakeTranslationApi()

    summary = await _orchestrator(tmp_path, api).sync(
        [HOME], TemplateOutputResolver(TEMPLATE)
    )

    assert summary.status == SyncStatus.SUCCEEDED
    for locale in ("es", "fr"):
        written = tmp_path / "locales" / locale / "home.json"
        assert written.read_text(encoding="utf-8") == translate("home.json", locale)

    ledger_path = tmp_path / ".locsync" / "versions.json"
    ledger = json.loads(ledger_path.read_text(encoding="utf-8"))
    versions = ledger["branches"]["br-main"][HOME.file_id][HOME.version_id]
    assert sorted(versions) == ["es", "fr"]
    assert versions["es"]["postProcessHash"] == hash_text(
        translate("home.json", "es")
    )
    assert versions["es"]["updatedAt"] == FIXED_TIMESTAMP


@pytest.mark.asyncio
async def test_second_sync_leaves_current_files_alone(tmp_path: Path) -> None:
    """Files matching the ledger are not downloaded again."""
    api = FakeTranslationApi()
    resolver = TemplateOutputResolver(TEMPLATE)
    await _orchestrator(tmp_path, api).sync([HOME], resolver)

    summary = await _orchestrator(tmp_path, api).sync([HOME], resolver)

    assert summary.status == SyncStatus.SUCCEEDED
    assert summary.download is not None
    assert summary.download.downloaded == 0
    assert summary.download.up_to_date == 2


@pytest.mark.asyncio
async def test_edited_file_is_downloaded_again(tmp_path: Path) -> None:
    """A locally edited output no longer matches the ledger."""
    api = FakeTranslationApi()
    resolver = TemplateOutputResolver(TEMPLATE)
    await _orchestrator(tmp_path, api).sync([HOME], resolver)
    edited = tmp_path / "locales" / "es" / "home.json"
    edited.write_text("{}", encoding="utf-8")

    summary = await _orchestrator(tmp_path, api).sync([HOME], resolver)

    assert summary.download is not None
    assert summary.download.downloaded == 1
    assert summary.download.up_to_date == 1
    assert edited.read_text(encoding="utf-8") == translate("home.json", "es")
