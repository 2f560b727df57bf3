"""Media classification."""

from __future__ import annotations

from .classify import EXTENSION_TO_MIME, Category, classify, guess_content_type

__all__ = ["EXTENSION_TO_MIME", "Category", "classify", "guess_content_type"]
