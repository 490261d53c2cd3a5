"""Storage backends and session-scoped stores for Codr."""

from .interface import StorageBackend, app_asset_key, session_key
from .local import LocalStorageBackend
from .progress import (
    InMemoryProgressStore,
    ProgressStore,
    SessionState,
    SessionStore,
    StorageProgressStore,
    post_progress,
)

__all__ = [
    "StorageBackend",
    "LocalStorageBackend",
    "app_asset_key",
    "session_key",
    "ProgressStore",
    "InMemoryProgressStore",
    "StorageProgressStore",
    "SessionState",
    "SessionStore",
    "post_progress",
]
