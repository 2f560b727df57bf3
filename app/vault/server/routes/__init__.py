"""Server route handlers."""

from __future__ import annotations

from .asset_routes import AssetRoutes

__all__ = ["AssetRoutes"]
