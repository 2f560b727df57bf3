"""Asset service -- two-phase upload and delete over storage + directory.

Neither operation is transactional.  Upload writes the file first and
inserts the record second; if the insert fails the file is removed again.
Delete unlinks the file first and removes the record second; a file that
is already missing does not block the record removal.  Anything a crash
leaves behind is picked up by :class:`~.reconcile.Reconciler`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..errors import AssetNotFoundError, StorageWriteError
from ..media.classify import Category, classify, guess_content_type
from ..state.asset_directory import Asset, AssetDirectory
from ..storage.placer import Content, PlacedFile, StoragePlacer

logger = logging.getLogger(__name__)

DEFAULT_MIME = "application/octet-stream"


@dataclass
class UploadFields:
    owner_id: str = ""
    owner_name: str = ""
    title: str = ""
    description: str = ""
    element_type: str = ""
    is_private: bool = False

    @classmethod
    def from_form(cls, form: dict[str, str]) -> UploadFields:
        """Build from the multipart text fields of an upload request."""
        return cls(
            owner_id=form.get("user_id", ""),
            owner_name=form.get("user_name", ""),
            title=form.get("title", ""),
            description=form.get("desc", ""),
            element_type=form.get("element_type", ""),
            is_private=form.get("is_private", "") == "true",
        )


@dataclass(frozen=True)
class StagedUpload:
    """A file written to storage that has no record yet."""

    category: Category
    mime_type: str
    original_name: str
    placed: PlacedFile


class AssetService:
    def __init__(
        self,
        directory: AssetDirectory,
        placer: StoragePlacer,
        *,
        base_url: str = "",
        stream_content_type: str = "",
    ) -> None:
        self._directory = directory
        self._placer = placer
        self._base_url = base_url
        self._stream_content_type = stream_content_type

    @property
    def directory(self) -> AssetDirectory:
        return self._directory

    @property
    def placer(self) -> StoragePlacer:
        return self._placer

    # -- upload ------------------------------------------------------------

    async def stage(self, mime_type: str, original_name: str, content: Content) -> StagedUpload:
        """Classify and write the file.  Raises :class:`StorageWriteError`."""
        mime = mime_type or DEFAULT_MIME
        category = classify(mime)
        placed = await self._placer.place(category, original_name, content)
        logger.info(
            "Stored %s as %s/%s (%d bytes)",
            original_name or "<unnamed>", category.directory,
            placed.stored_filename, placed.bytes_written,
        )
        return StagedUpload(category, mime, original_name, placed)

    async def commit(self, staged: StagedUpload, fields: UploadFields) -> Asset:
        """Insert the record for *staged*; discards the file if that fails."""
        asset = Asset(
            category=staged.category,
            mime_type=staged.mime_type,
            original_name=staged.original_name,
            stored_filename=staged.placed.stored_filename,
            size=staged.placed.bytes_written,
            file_url=self.file_url(staged.category, staged.placed.stored_filename),
            owner_id=fields.owner_id,
            owner_name=fields.owner_name,
            title=fields.title,
            description=fields.description,
            element_type=fields.element_type,
            is_private=fields.is_private,
        )
        try:
            return await self._directory.insert(asset)
        except Exception:
            await self.discard(staged)
            raise

    async def discard(self, staged: StagedUpload) -> None:
        """Best-effort removal of a staged file that will never get a record."""
        try:
            await self._placer.remove(staged.category, staged.placed.stored_filename)
        except StorageWriteError:
            logger.error(
                "Could not discard %s; left for reconciliation",
                staged.placed.path, exc_info=True,
            )

    async def upload(
        self, mime_type: str, original_name: str, content: Content, fields: UploadFields,
    ) -> Asset:
        staged = await self.stage(mime_type, original_name, content)
        return await self.commit(staged, fields)

    # -- lookup ------------------------------------------------------------

    async def get(self, asset_id: str) -> Asset:
        asset = await self._directory.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    async def list_assets(
        self, *, category: Category | None = None, viewer_id: str | None = None,
    ) -> list[Asset]:
        return await self._directory.list_assets(category=category, viewer_id=viewer_id)

    def path_of(self, asset: Asset) -> Path:
        return self._placer.path_for(asset.category, asset.stored_filename)

    def file_url(self, category: Category, stored_filename: str) -> str:
        base = self._base_url.rstrip("/")
        return f"{base}/uploads/{category.directory}/{stored_filename}"

    def content_type_for(self, asset: Asset) -> str:
        if self._stream_content_type:
            return self._stream_content_type
        return asset.mime_type or guess_content_type(asset.stored_filename)

    # -- delete ------------------------------------------------------------

    async def delete(self, asset_id: str) -> Asset:
        """Unlink the file, then remove the record.

        Raises :class:`AssetNotFoundError` for unknown ids and
        :class:`StorageWriteError` if the file exists but cannot be removed
        (the record is kept in that case).
        """
        asset = await self.get(asset_id)
        removed = await self._placer.remove(asset.category, asset.stored_filename)
        if not removed:
            logger.warning(
                "Asset %s had no file at %s; removing record anyway",
                asset.id, self.path_of(asset),
            )
        if not await self._directory.delete(asset.id):
            logger.warning("Record for asset %s vanished during delete", asset.id)
        logger.info("Deleted asset %s (%s/%s)", asset.id, asset.category.directory, asset.stored_filename)
        return asset

