"""Persistent state -- asset metadata records."""

from __future__ import annotations

from .asset_directory import Asset, AssetDirectory, JsonAssetDirectory

__all__ = ["Asset", "AssetDirectory", "JsonAssetDirectory"]
