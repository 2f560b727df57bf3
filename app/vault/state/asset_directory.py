"""Asset directory -- metadata records for stored media.

The directory is an explicitly constructed object with an ``open`` /
``close`` lifecycle.  The application factory owns it and passes it to
the components that need it; nothing here is a module-level connection.
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from ..errors import DirectoryError
from ..media.classify import Category
from ..util.async_helpers import run_sync

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@dataclass
class Asset:
    id: str = ""
    category: Category = Category.OTHER
    mime_type: str = ""
    original_name: str = ""
    stored_filename: str = ""
    size: int = 0
    file_url: str = ""
    owner_id: str = ""
    owner_name: str = ""
    title: str = ""
    description: str = ""
    element_type: str = ""
    is_private: bool = False
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        try:
            category = Category(data.get("category", Category.OTHER.value))
        except ValueError:
            category = Category.OTHER
        return cls(
            id=str(data.get("id", "")),
            category=category,
            mime_type=data.get("mime_type", ""),
            original_name=data.get("original_name", ""),
            stored_filename=data.get("stored_filename", ""),
            size=int(data.get("size", 0) or 0),
            file_url=data.get("file_url", ""),
            owner_id=data.get("owner_id", ""),
            owner_name=data.get("owner_name", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            element_type=data.get("element_type", ""),
            is_private=bool(data.get("is_private", False)),
            created_at=float(data.get("created_at", 0) or 0),
        )

    def visible_to(self, viewer_id: str | None) -> bool:
        return not self.is_private or bool(viewer_id and viewer_id == self.owner_id)


class AssetDirectory(ABC):
    """find / insert / delete contract over asset records."""

    async def open(self) -> None:
        """Acquire whatever the backend needs.  Called once at startup."""

    async def close(self) -> None:
        """Release backend resources.  Called once at shutdown."""

    @abstractmethod
    async def insert(self, asset: Asset) -> Asset:
        """Persist *asset*, assigning ``id`` and ``created_at``."""

    @abstractmethod
    async def get(self, asset_id: str) -> Asset | None: ...

    @abstractmethod
    async def delete(self, asset_id: str) -> bool:
        """Remove the record.  Returns ``False`` if it did not exist."""

    @abstractmethod
    async def all(self) -> list[Asset]: ...

    async def list_assets(
        self,
        *,
        category: Category | None = None,
        viewer_id: str | None = None,
    ) -> list[Asset]:
        """Assets visible to *viewer_id*, newest first.

        Public assets are always listed; private ones only for their owner.
        """
        assets = [
            a for a in await self.all()
            if (category is None or a.category == category) and a.visible_to(viewer_id)
        ]
        assets.sort(key=lambda a: a.created_at, reverse=True)
        return assets


class JsonAssetDirectory(AssetDirectory):
    """Directory-backed record store with one JSON file per asset."""

    def __init__(self, directory: Path) -> None:
        self._dir = directory
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        try:
            await run_sync(self._dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryError(f"Cannot open asset directory {self._dir}: {exc}") from exc
        self._open = True
        logger.info("Asset directory opened at %s", self._dir)

    async def close(self) -> None:
        self._open = False
        logger.info("Asset directory closed")

    def _path(self, asset_id: str) -> Path:
        return self._dir / f"{asset_id}.json"

    def _ensure_open(self) -> None:
        if not self._open:
            raise DirectoryError("Asset directory is not open")

    # -- blocking helpers (run in the executor) -----------------------------

    def _load(self, path: Path) -> Asset | None:
        try:
            data = json.loads(path.read_text())
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            logger.warning("Skipping corrupt asset record %s", path.name)
            return None
        except OSError as exc:
            raise DirectoryError(f"Cannot read {path}: {exc}") from exc
        return Asset.from_dict(data)

    def _write(self, asset: Asset) -> None:
        path = self._path(asset.id)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(asset.to_dict(), indent=2) + "\n")
            os.replace(tmp, path)
        except OSError as exc:
            raise DirectoryError(f"Cannot write {path}: {exc}") from exc

    def _unlink(self, asset_id: str) -> bool:
        try:
            self._path(asset_id).unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise DirectoryError(f"Cannot delete record {asset_id}: {exc}") from exc
        return True

    def _load_all(self) -> list[Asset]:
        assets = []
        for path in self._dir.glob("*.json"):
            asset = self._load(path)
            if asset is not None:
                assets.append(asset)
        return assets

    # -- contract -----------------------------------------------------------

    async def insert(self, asset: Asset) -> Asset:
        self._ensure_open()
        if not asset.id:
            asset.id = uuid.uuid4().hex
        if not asset.created_at:
            asset.created_at = time.time()
        await run_sync(self._write, asset)
        return asset

    async def get(self, asset_id: str) -> Asset | None:
        self._ensure_open()
        if not _ID_RE.match(asset_id):
            return None
        return await run_sync(self._load, self._path(asset_id))

    async def delete(self, asset_id: str) -> bool:
        self._ensure_open()
        if not _ID_RE.match(asset_id):
            return False
        return await run_sync(self._unlink, asset_id)

    async def all(self) -> list[Asset]:
        self._ensure_open()
        return await run_sync(self._load_all)
