"""Shared pytest fixtures for app.vault tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from app.vault.services.assets import AssetService
from app.vault.state.asset_directory import JsonAssetDirectory
from app.vault.storage.placer import StoragePlacer


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setenv("MEDIAVAULT_DATA_DIR", str(data_dir))
    monkeypatch.delenv("DOTENV_PATH", raising=False)
    monkeypatch.delenv("MEDIAVAULT_STORAGE_ROOT", raising=False)
    monkeypatch.delenv("MEDIAVAULT_STREAM_CONTENT_TYPE", raising=False)
    monkeypatch.setenv("BASE_URL", "http://media.test/")
    return data_dir


@pytest.fixture(autouse=True)
def _reset_singletons(_isolate_data_dir: Path):
    from app.vault.util.singletons import reset_all_singletons

    reset_all_singletons()
    yield
    reset_all_singletons()


@pytest.fixture()
def data_dir(_isolate_data_dir: Path) -> Path:
    return _isolate_data_dir


@pytest.fixture()
def storage_root(data_dir: Path) -> Path:
    return data_dir / "uploads"


@pytest.fixture()
def placer(storage_root: Path) -> StoragePlacer:
    return StoragePlacer(storage_root)


@pytest.fixture()
async def directory(data_dir: Path):
    store = JsonAssetDirectory(data_dir / "assets")
    await store.open()
    yield store
    await store.close()


@pytest.fixture()
def service(directory: JsonAssetDirectory, placer: StoragePlacer) -> AssetService:
    return AssetService(directory, placer, base_url="http://media.test/")
