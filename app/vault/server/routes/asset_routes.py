"""Asset API routes -- upload, stream, delete and listing."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from aiohttp import BodyPartReader, hdrs, web

from ...errors import AssetNotFoundError, DirectoryError, StorageWriteError, StreamIOError
from ...media.classify import Category
from ...services.assets import AssetService, StagedUpload, UploadFields
from ...streaming.responder import DEFAULT_CHUNK_SIZE, stream_file

logger = logging.getLogger(__name__)

FILE_FIELD = "file"

_CATEGORY_ALIASES: dict[str, Category] = {
    **{c.value: c for c in Category},
    **{c.directory: c for c in Category},
}


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _internal_error() -> web.Response:
    return _error("Internal Server Error", 500)


class AssetRoutes:
    """REST handler for media assets."""

    def __init__(self, service: AssetService, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._service = service
        self._chunk_size = chunk_size

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_post("/upload", self._upload)
        router.add_get("/stream/{asset_id}", self._stream)
        router.add_delete("/delete/{asset_id}", self._delete)
        router.add_get("/assets", self._list)
        router.add_get("/assets/{asset_id}", self._get)

    # -- upload ------------------------------------------------------------

    async def _upload(self, req: web.Request) -> web.Response:
        if not req.content_type.startswith("multipart/"):
            return _error("Expected multipart/form-data", 400)
        try:
            staged, form = await self._read_upload(req)
        except StorageWriteError:
            logger.error("Upload write failed", exc_info=True)
            return _internal_error()
        except Exception:
            logger.error("Upload failed while reading the request", exc_info=True)
            return _internal_error()

        if staged is None:
            return _error(f"No file uploaded (expected field '{FILE_FIELD}')", 400)

        try:
            asset = await self._service.commit(staged, UploadFields.from_form(form))
        except Exception:
            logger.error("Could not record upload %s", staged.placed.stored_filename, exc_info=True)
            return _internal_error()
        return web.json_response({"message": "Asset uploaded successfully", "asset": asset.to_dict()})

    async def _read_upload(self, req: web.Request) -> tuple[StagedUpload | None, dict[str, str]]:
        """Stream the file part to storage and collect the text fields."""
        staged: StagedUpload | None = None
        form: dict[str, str] = {}
        reader = await req.multipart()
        try:
            async for part in reader:
                if not isinstance(part, BodyPartReader):
                    await part.release()
                    continue
                if part.name == FILE_FIELD and part.filename is not None and staged is None:
                    staged = await self._service.stage(
                        part.headers.get(hdrs.CONTENT_TYPE, ""),
                        part.filename,
                        _iter_part(part),
                    )
                elif part.filename is not None:
                    await part.release()
                elif part.name:
                    form[part.name] = await part.text()
        except Exception:
            if staged is not None:
                await self._service.discard(staged)
            raise
        return staged, form

    # -- stream ------------------------------------------------------------

    async def _stream(self, req: web.Request) -> web.StreamResponse:
        asset_id = req.match_info["asset_id"]
        try:
            asset = await self._service.get(asset_id)
        except AssetNotFoundError:
            return _error("Asset not found", 404)
        except DirectoryError:
            logger.error("Lookup of asset %s failed", asset_id, exc_info=True)
            return _internal_error()

        try:
            return await stream_file(
                req,
                self._service.path_of(asset),
                self._service.content_type_for(asset),
                chunk_size=self._chunk_size,
            )
        except StreamIOError as exc:
            if exc.committed:
                raise
            logger.error("Cannot stream asset %s: %s", asset_id, exc)
            return _internal_error()

    # -- delete ------------------------------------------------------------

    async def _delete(self, req: web.Request) -> web.Response:
        asset_id = req.match_info["asset_id"]
        try:
            await self._service.delete(asset_id)
        except AssetNotFoundError:
            return _error("Asset not found", 404)
        except (StorageWriteError, DirectoryError):
            logger.error("Delete of asset %s failed", asset_id, exc_info=True)
            return _internal_error()
        return web.json_response({"message": "Asset deleted successfully"})

    # -- listing -----------------------------------------------------------

    async def _list(self, req: web.Request) -> web.Response:
        raw = req.query.get("category", "")
        category = None
        if raw:
            category = _CATEGORY_ALIASES.get(raw.lower())
            if category is None:
                return _error(
                    f"Unknown category. Valid: {sorted(c.value for c in Category)}", 400,
                )
        try:
            assets = await self._service.list_assets(
                category=category, viewer_id=req.query.get("user_id") or None,
            )
        except DirectoryError:
            logger.error("Listing assets failed", exc_info=True)
            return _internal_error()
        return web.json_response({"assets": [a.to_dict() for a in assets]})

    async def _get(self, req: web.Request) -> web.Response:
        asset_id = req.match_info["asset_id"]
        try:
            asset = await self._service.get(asset_id)
        except AssetNotFoundError:
            return _error("Asset not found", 404)
        except DirectoryError:
            logger.error("Lookup of asset %s failed", asset_id, exc_info=True)
            return _internal_error()
        return web.json_response(asset.to_dict())


async def _iter_part(part: BodyPartReader) -> AsyncIterator[bytes]:
    while True:
        chunk = await part.read_chunk()
        if not chunk:
            return
        yield chunk
