"""Media category classification and MIME-type registry."""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import PurePath

EXTENSION_TO_MIME: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".mkv": "video/x-matroska",
    ".pdf": "application/pdf",
}

_FALLBACK_MIME = "application/octet-stream"


class Category(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    OTHER = "other"

    @property
    def directory(self) -> str:
        """Name of the folder under the storage root holding this category."""
        return _DIRECTORIES[self]


_DIRECTORIES: dict[Category, str] = {
    Category.IMAGE: "images",
    Category.AUDIO: "audio",
    Category.VIDEO: "videos",
    Category.DOCUMENT: "pdf",
    Category.OTHER: "others",
}

# Checked in order; first matching prefix wins.
_PREFIX_RULES: tuple[tuple[str, Category], ...] = (
    ("image/", Category.IMAGE),
    ("audio/", Category.AUDIO),
    ("video/", Category.VIDEO),
    ("application/pdf", Category.DOCUMENT),
)


def classify(mime_type: str | None) -> Category:
    """Map a declared content type to its :class:`Category`.

    Never fails: empty or unrecognised types are ``Category.OTHER``.
    """
    mime = (mime_type or "").strip().lower()
    for prefix, category in _PREFIX_RULES:
        if mime.startswith(prefix):
            return category
    return Category.OTHER


def guess_content_type(filename: str) -> str:
    """Best-effort content type for *filename* based on its extension."""
    suffix = PurePath(filename).suffix.lower()
    return (
        EXTENSION_TO_MIME.get(suffix)
        or mimetypes.guess_type(filename)[0]
        or _FALLBACK_MIME
    )
