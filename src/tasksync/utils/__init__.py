"""Utility functions."""

from .cancel import CancelToken, SyncCancelledError
from .datetime import from_iso, now_utc, to_iso
from .slug import slugify, unique_slug

__all__ = [
    "CancelToken",
    "SyncCancelledError",
    "from_iso",
    "now_utc",
    "slugify",
    "to_iso",
    "unique_slug",
]
