"""HTTP server -- app factory and entry point."""

from __future__ import annotations

import asyncio
import logging

from aiohttp import web
from aiohttp.abc import AbstractAccessLogger

from .. import __version__
from ..config import settings as _settings
from ..config.settings import Settings
from ..services.assets import AssetService
from ..services.reconcile import Reconciler
from ..state.asset_directory import AssetDirectory, JsonAssetDirectory
from ..storage.placer import StoragePlacer
from ..util.async_helpers import cancel_and_wait
from .routes.asset_routes import AssetRoutes

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/health"})

LOG_FORMAT = "%(asctime)s  %(name)s  %(levelname)s  %(message)s"


# ---------------------------------------------------------------------------
# Access logger
# ---------------------------------------------------------------------------


class QuietAccessLogger(AbstractAccessLogger):
    """Demotes health-check log entries to DEBUG."""

    def log(self, request: web.BaseRequest, response: web.StreamResponse, time: float) -> None:
        level = logging.DEBUG if request.path in _QUIET_PATHS else logging.INFO
        self.logger.log(
            level,
            "%s %s %s %s %.3fs",
            request.remote,
            request.method,
            request.path,
            response.status,
            time,
        )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


async def create_app(settings: Settings | None = None) -> web.Application:
    factory = AppFactory(settings)
    return await factory.build()


class AppFactory:
    """Builds the aiohttp application with all dependencies wired.

    The asset directory is constructed here and opened / closed through
    the application's startup and cleanup signals.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        directory: AssetDirectory | None = None,
    ) -> None:
        self._cfg = settings or _settings.cfg
        self._directory = directory or JsonAssetDirectory(self._cfg.records_dir)
        self._placer = StoragePlacer(self._cfg.storage_root)
        self._service = AssetService(
            self._directory,
            self._placer,
            base_url=self._cfg.base_url,
            stream_content_type=self._cfg.stream_content_type,
        )
        self._reconciler = Reconciler(
            self._directory, self._placer, grace_seconds=self._cfg.reconcile_grace,
        )

    @property
    def service(self) -> AssetService:
        return self._service

    async def build(self) -> web.Application:
        self._cfg.ensure_dirs()
        app = web.Application()
        self._register_routes(app)
        self._register_lifecycle(app)
        return app

    # ------------------------------------------------------------------
    # Route registration
    # ------------------------------------------------------------------

    def _register_routes(self, app: web.Application) -> None:
        router = app.router
        AssetRoutes(self._service, chunk_size=self._cfg.stream_chunk_size).register(router)
        router.add_static("/uploads/", path=str(self._cfg.storage_root), name="uploads")
        router.add_get("/health", _health)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _register_lifecycle(self, app: web.Application) -> None:
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)

    async def _on_startup(self, app: web.Application) -> None:
        await self._directory.open()
        app["reconcile_task"] = asyncio.create_task(self._reconcile_loop())

    async def _on_cleanup(self, app: web.Application) -> None:
        await cancel_and_wait(app.get("reconcile_task"))
        await self._directory.close()

    async def _reconcile_loop(self) -> None:
        interval = self._cfg.reconcile_interval
        while True:
            try:
                await self._reconciler.reconcile(purge=self._cfg.reconcile_purge)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Reconcile failed (non-fatal): %s", exc, exc_info=True)
            if interval <= 0:
                return
            await asyncio.sleep(interval)


# ---------------------------------------------------------------------------
# Utility handlers
# ---------------------------------------------------------------------------


async def _health(_req: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "version": __version__})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(port: int | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    cfg = _settings.cfg
    port = port or cfg.port
    logger.info("Starting mediavault on port %d (storage: %s) ...", port, cfg.storage_root)
    web.run_app(create_app(cfg), host=cfg.host, port=port, access_log_class=QuietAccessLogger)


if __name__ == "__main__":
    main()
