"""Exception hierarchy shared by the storage, streaming and service layers."""

from __future__ import annotations


class VaultError(Exception):
    """Base class for every error raised by mediavault."""


class StorageWriteError(VaultError):
    """Writing or removing a file under the storage root failed."""


class DirectoryError(VaultError):
    """The asset directory could not read or write a record."""


class AssetNotFoundError(VaultError):
    """No record exists for the requested asset id."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Asset not found: {asset_id}")
        self.asset_id = asset_id


class StreamIOError(VaultError):
    """Reading the backing file failed while serving a stream.

    *committed* is true once the status line and headers were sent; the
    response can then only be aborted, not replaced with an error body.
    """

    def __init__(self, message: str, *, committed: bool = False) -> None:
        super().__init__(message)
        self.committed = committed
