"""Application settings -- read from a .env file and environment variables.

All configuration is consolidated here.  The .env file is resolved as
explicit ``DOTENV_PATH`` > ``<data_dir>/.env`` > ``./.env``; values found in
it win over the process environment.  Paths are derived lazily so
tests can point ``MEDIAVAULT_DATA_DIR`` at a temporary directory and
call :func:`reset_all_singletons` to pick the change up.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from dotenv import dotenv_values

from ..util.singletons import register_singleton

_TRUTHY = ("1", "true", "yes")


class Settings:
    """Runtime configuration sourced from .env and environment variables."""

    _DATA_DIR_ENV: ClassVar[str] = "MEDIAVAULT_DATA_DIR"
    _STORAGE_ROOT_ENV: ClassVar[str] = "MEDIAVAULT_STORAGE_ROOT"

    def __init__(self) -> None:
        dotenv = os.getenv("DOTENV_PATH")
        if not dotenv:
            data_dir = os.getenv(self._DATA_DIR_ENV)
            if data_dir:
                dotenv = str(Path(data_dir) / ".env")
            else:
                dotenv = ".env"
        self.env_path = Path(dotenv)
        self.reload()

    def reload(self) -> None:
        """Re-read the .env file and the environment."""
        self._file_values = (
            {k: v for k, v in dotenv_values(self.env_path).items() if v is not None}
            if self.env_path.is_file()
            else {}
        )
        e = self._read

        self.port: int = int(e("RESOURCES_PORT") or "5000")
        self.host: str = e("MEDIAVAULT_HOST") or "0.0.0.0"
        self.base_url: str = e("BASE_URL") or f"http://localhost:{self.port}/"

        self.stream_chunk_size: int = int(e("MEDIAVAULT_STREAM_CHUNK_SIZE") or "65536")
        # Forces one Content-Type for every stream when set (e.g. "video/mp4").
        self.stream_content_type: str = e("MEDIAVAULT_STREAM_CONTENT_TYPE")

        self.reconcile_interval: int = int(e("MEDIAVAULT_RECONCILE_INTERVAL") or "0")
        self.reconcile_grace: int = int(e("MEDIAVAULT_RECONCILE_GRACE") or "3600")
        self.reconcile_purge: bool = e("MEDIAVAULT_RECONCILE_PURGE").lower() in _TRUTHY

    # -- derived paths -----------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return Path(os.getenv(self._DATA_DIR_ENV, str(Path.home() / ".mediavault")))

    @property
    def records_dir(self) -> Path:
        return self.data_dir / "assets"

    @property
    def storage_root(self) -> Path:
        override = self._read(self._STORAGE_ROOT_ENV)
        if override:
            return Path(override)
        return self.data_dir / "uploads"

    # -- helpers -----------------------------------------------------------

    def _read(self, key: str) -> str:
        return (self._file_values.get(key) or os.getenv(key, "")).strip()

    def ensure_dirs(self) -> None:
        for d in (self.data_dir, self.records_dir, self.storage_root):
            d.mkdir(parents=True, exist_ok=True)


# Module-level singleton
cfg = Settings()


def _reset_cfg() -> None:
    global cfg
    cfg = Settings()


register_singleton(_reset_cfg)
