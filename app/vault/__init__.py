"""mediavault -- media asset upload, storage and range-aware streaming."""

__version__ = "1.0.0"
