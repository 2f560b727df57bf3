"""Tests for the application factory and its lifecycle."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from aiohttp import FormData
from aiohttp.test_utils import TestClient, TestServer

from app.vault import __version__
from app.vault.config import settings as settings_mod
from app.vault.server.app import AppFactory, QuietAccessLogger, create_app
from app.vault.state.asset_directory import JsonAssetDirectory


@pytest.fixture
async def client() -> TestClient:
    app = await create_app()
    async with TestClient(TestServer(app)) as c:
        yield c


@pytest.mark.asyncio
class TestCreateApp:
    async def test_health(self, client: TestClient) -> None:
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok", "version": __version__}

    async def test_dirs_created(self, client: TestClient, data_dir: Path) -> None:
        assert (data_dir / "assets").is_dir()
        assert (data_dir / "uploads").is_dir()

    async def test_upload_then_static_and_stream(self, client: TestClient) -> None:
        form = FormData()
        form.add_field("user_id", "u1")
        form.add_field("file", b"\x89PNG....", filename="pic.png", content_type="image/png")
        resp = await client.post("/upload", data=form)
        assert resp.status == 200
        asset = (await resp.json())["asset"]
        assert asset["file_url"].startswith("http://media.test/uploads/images/")

        static = await client.get(f"/uploads/images/{asset['stored_filename']}")
        assert static.status == 200
        assert await static.read() == b"\x89PNG...."

        stream = await client.get(f"/stream/{asset['id']}", headers={"Range": "bytes=1-3"})
        assert stream.status == 206
        assert await stream.read() == b"PNG"

    async def test_legacy_fixed_content_type(self, monkeypatch) -> None:
        monkeypatch.setenv("MEDIAVAULT_STREAM_CONTENT_TYPE", "video/mp4")
        settings_mod.cfg.reload()
        app = await create_app()
        async with TestClient(TestServer(app)) as c:
            form = FormData()
            form.add_field("file", b"%PDF", filename="a.pdf", content_type="application/pdf")
            asset = (await (await c.post("/upload", data=form)).json())["asset"]
            resp = await c.get(f"/stream/{asset['id']}")
            assert resp.headers["Content-Type"] == "video/mp4"

    async def test_directory_opened_and_closed(self, data_dir: Path) -> None:
        directory = JsonAssetDirectory(data_dir / "records")
        app = await AppFactory(directory=directory).build()
        assert not directory.is_open
        async with TestClient(TestServer(app)):
            assert directory.is_open
        assert not directory.is_open

    async def test_startup_reconcile_purges_when_enabled(self, monkeypatch, data_dir: Path) -> None:
        monkeypatch.setenv("MEDIAVAULT_RECONCILE_PURGE", "true")
        monkeypatch.setenv("MEDIAVAULT_RECONCILE_GRACE", "0")
        settings_mod.cfg.reload()
        stray = data_dir / "uploads" / "videos" / "file-1-1.mp4"
        stray.parent.mkdir(parents=True)
        stray.write_bytes(b"orphan")

        app = await create_app()
        async with TestClient(TestServer(app)):
            task = app["reconcile_task"]
            await task
        assert not stray.exists()


class TestQuietAccessLogger:
    def _log(self, path: str) -> MagicMock:
        inner = MagicMock()
        access = QuietAccessLogger(inner, "%a")
        request = MagicMock(path=path, remote="127.0.0.1", method="GET")
        response = MagicMock(status=200)
        access.log(request, response, 0.01)
        return inner

    def test_health_is_debug(self) -> None:
        assert self._log("/health").log.call_args[0][0] == logging.DEBUG

    def test_other_paths_are_info(self) -> None:
        assert self._log("/stream/abc").log.call_args[0][0] == logging.INFO
