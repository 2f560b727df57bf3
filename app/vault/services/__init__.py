"""Asset lifecycle services."""

from __future__ import annotations

from .assets import AssetService, StagedUpload, UploadFields
from .reconcile import AuditResult, Reconciler

__all__ = ["AssetService", "AuditResult", "Reconciler", "StagedUpload", "UploadFields"]
