"""Synchronization engine package."""

from .conflict import needs_update, resolve_conflict
from .engine import SyncEngine, SyncError, resolve_strategy

__all__ = [
    "SyncEngine",
    "SyncError",
    "needs_update",
    "resolve_conflict",
    "resolve_strategy",
]
