"""Storage placer -- writes uploads to ``<root>/<category dir>/<unique name>``."""

from __future__ import annotations

import logging
import os
import random
import time
from collections.abc import AsyncIterable, AsyncIterator, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

from ..errors import StorageWriteError
from ..media.classify import Category
from ..util.async_helpers import run_sync

logger = logging.getLogger(__name__)

Content = Union[bytes, bytearray, memoryview, AsyncIterable[bytes]]


@dataclass(frozen=True)
class PlacedFile:
    stored_filename: str
    bytes_written: int
    path: Path


class StoragePlacer:
    """Places uploaded byte streams into per-category directories.

    Stored names combine the upload field name, a nanosecond timestamp
    and a random integer.  Uniqueness is probabilistic; files are opened
    in exclusive-create mode so an unlikely collision fails the upload
    instead of overwriting an existing asset.
    """

    def __init__(self, root: Path, field_name: str = "file") -> None:
        self._root = root
        self._field = field_name

    @property
    def root(self) -> Path:
        return self._root

    def directory_for(self, category: Category) -> Path:
        return self._root / category.directory

    def path_for(self, category: Category, stored_filename: str) -> Path:
        return self.directory_for(category) / stored_filename

    def ensure_dir(self, category: Category) -> Path:
        """Create the category directory if needed; safe to race."""
        target = self.directory_for(category)
        target.mkdir(parents=True, exist_ok=True)
        return target

    def make_filename(self, original_name: str) -> str:
        ext = os.path.splitext(original_name or "")[1]
        return f"{self._field}-{time.time_ns()}-{random.randint(0, 999_999_999)}{ext}"

    async def place(
        self, category: Category, original_name: str, content: Content,
    ) -> PlacedFile:
        """Write *content* and return where it landed.

        Raises :class:`StorageWriteError` on any filesystem failure.  A
        partially written file is left in place for the caller to clean up.
        """
        stored = self.make_filename(original_name)
        try:
            directory = await run_sync(self.ensure_dir, category)
            path = directory / stored
            fh: BinaryIO = await run_sync(open, path, "xb")
        except OSError as exc:
            raise StorageWriteError(f"Cannot create {category.directory}/{stored}: {exc}") from exc

        written = 0
        try:
            async for chunk in _iter_chunks(content):
                if chunk:
                    await run_sync(fh.write, chunk)
                    written += len(chunk)
        except OSError as exc:
            raise StorageWriteError(f"Write to {path} failed after {written} bytes: {exc}") from exc
        finally:
            try:
                await run_sync(fh.close)
            except OSError as exc:
                raise StorageWriteError(f"Closing {path} failed: {exc}") from exc

        logger.debug("Placed %s (%d bytes)", path, written)
        return PlacedFile(stored_filename=stored, bytes_written=written, path=path)

    async def remove(self, category: Category, stored_filename: str) -> bool:
        """Unlink a stored file.  Returns ``False`` if it was already gone."""
        path = self.path_for(category, stored_filename)
        try:
            return await run_sync(_unlink, path)
        except OSError as exc:
            raise StorageWriteError(f"Cannot remove {path}: {exc}") from exc

    def iter_files(self) -> Iterator[tuple[Category, Path]]:
        """Yield every regular file stored under a known category directory."""
        for category in Category:
            directory = self.directory_for(category)
            if not directory.is_dir():
                continue
            for child in directory.iterdir():
                if child.is_file():
                    yield category, child


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


async def _iter_chunks(content: Content) -> AsyncIterator[bytes]:
    if isinstance(content, (bytes, bytearray, memoryview)):
        yield bytes(content)
        return
    async for chunk in content:
        yield chunk
