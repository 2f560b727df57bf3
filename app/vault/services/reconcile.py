"""Orphan detection for the non-transactional upload / delete paths.

An *orphan file* sits under the storage root without a record pointing at
it (crash between write and insert, or a failed discard).  An *orphan
record* points at a file that no longer exists (crash between unlink and
record removal, or the file was removed out of band).

Files younger than the grace period are ignored: an upload in progress
has its file on disk before its record exists.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ..media.classify import Category
from ..state.asset_directory import AssetDirectory
from ..storage.placer import StoragePlacer
from ..util.async_helpers import run_sync

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrphanFile:
    category: Category
    stored_filename: str
    size: int = 0
    age: float = 0.0

    @property
    def relative_path(self) -> str:
        return f"{self.category.directory}/{self.stored_filename}"


@dataclass
class AuditResult:
    orphan_files: list[OrphanFile] = field(default_factory=list)
    orphan_records: list[str] = field(default_factory=list)
    checked_files: int = 0
    checked_records: int = 0

    @property
    def clean(self) -> bool:
        return not self.orphan_files and not self.orphan_records


class Reconciler:
    """Compares the storage tree with the asset directory."""

    def __init__(
        self,
        directory: AssetDirectory,
        placer: StoragePlacer,
        *,
        grace_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._directory = directory
        self._placer = placer
        self._grace = grace_seconds
        self._clock = clock

    async def audit(self) -> AuditResult:
        records = await self._directory.all()
        files = await run_sync(self._scan_files)
        now = self._clock()

        referenced = {(a.category, a.stored_filename) for a in records}
        result = AuditResult(checked_files=len(files), checked_records=len(records))

        for category, name, size, mtime in files:
            if (category, name) in referenced:
                continue
            age = now - mtime
            if age < self._grace:
                continue
            result.orphan_files.append(OrphanFile(category, name, size, age))

        on_disk = {(category, name) for category, name, _, _ in files}
        for asset in records:
            if (asset.category, asset.stored_filename) not in on_disk:
                result.orphan_records.append(asset.id)
        return result

    async def purge(self, result: AuditResult) -> int:
        """Remove everything *result* flagged.  Returns the number removed."""
        removed = 0
        for orphan in result.orphan_files:
            if await self._placer.remove(orphan.category, orphan.stored_filename):
                logger.info("Removed orphan file %s", orphan.relative_path)
                removed += 1
        for asset_id in result.orphan_records:
            asset = await self._directory.get(asset_id)
            if asset is None:
                continue
            path = self._placer.path_for(asset.category, asset.stored_filename)
            if await run_sync(path.exists):
                continue
            if await self._directory.delete(asset_id):
                logger.info("Removed orphan record %s", asset_id)
                removed += 1
        return removed

    async def reconcile(self, *, purge: bool = False) -> AuditResult:
        result = await self.audit()
        if result.clean:
            logger.info(
                "Reconcile: %d file(s), %d record(s), no orphans",
                result.checked_files, result.checked_records,
            )
            return result
        logger.warning(
            "Reconcile: %d orphan file(s), %d orphan record(s)",
            len(result.orphan_files), len(result.orphan_records),
        )
        if purge:
            count = await self.purge(result)
            logger.info("Reconcile: purged %d item(s)", count)
        return result

    def _scan_files(self) -> list[tuple[Category, str, int, float]]:
        found = []
        for category, path in self._placer.iter_files():
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            found.append((category, path.name, st.st_size, st.st_mtime))
        return found
