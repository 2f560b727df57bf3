"""Filesystem storage for uploaded media."""

from __future__ import annotations

from .placer import PlacedFile, StoragePlacer

__all__ = ["PlacedFile", "StoragePlacer"]
