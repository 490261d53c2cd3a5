"""
Artifact storage interface.

Build outputs, progress snapshots and session state are written through a
StorageBackend keyed by slash-separated paths. Every key written on behalf of
a generation run starts with a per-session prefix, so concurrent runs never
touch each other's entries.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

APPS_PREFIX = "apps"
SESSIONS_PREFIX = "sessions"


def app_asset_key(session_id: str, asset_path: str) -> str:
    """Key of a deployed asset: ``apps/{session_id}/{asset_path}``."""
    return f"{APPS_PREFIX}/{session_id}/{asset_path.lstrip('/')}"


def session_key(session_id: str, name: str) -> str:
    """Key of a per-session record: ``sessions/{session_id}/{name}``."""
    return f"{SESSIONS_PREFIX}/{session_id}/{name}"


class StorageBackend(ABC):
    """Abstract blob store for generated apps and session records."""

    @abstractmethod
    async def put_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Store raw bytes under a key.

        Args:
            key: Storage key.
            data: Bytes to store.
            content_type: MIME type recorded with the object.
            metadata: Extra metadata recorded with the object.

        Returns:
            The key the object was stored under.
        """
        ...

    async def put_text(
        self,
        key: str,
        content: str,
        content_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Store UTF-8 text under a key."""
        return await self.put_bytes(key, content.encode("utf-8"), content_type, metadata)

    async def put_model(self, key: str, model: BaseModel, metadata: dict[str, Any] | None = None) -> str:
        """Store a pydantic model as JSON."""
        meta = dict(metadata or {})
        meta["model_type"] = type(model).__name__
        return await self.put_text(key, model.model_dump_json(indent=2), "application/json", meta)

    @abstractmethod
    async def get_bytes(self, key: str) -> bytes:
        """Load the bytes stored under a key.

        Raises:
            FileNotFoundError: If nothing is stored under the key.
        """
        ...

    async def get_text(self, key: str) -> str:
        return (await self.get_bytes(key)).decode("utf-8")

    async def get_model(self, key: str, model_type: type[T]) -> T:
        """Load a pydantic model stored with ``put_model``.

        Raises:
            FileNotFoundError: If nothing is stored under the key.
        """
        return model_type.model_validate_json(await self.get_bytes(key))

    @abstractmethod
    async def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if something was deleted.
        """
        ...

    @abstractmethod
    async def list_keys(self, prefix: str = "") -> list[str]:
        """List stored keys under a prefix, sorted."""
        ...

    @abstractmethod
    async def get_metadata(self, key: str) -> dict[str, Any]:
        """Metadata recorded for a key; empty if none."""
        ...

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key under a prefix.

        Returns:
            Number of keys deleted.
        """
        deleted = 0
        for key in await self.list_keys(prefix):
            if await self.delete(key):
                deleted += 1
        return deleted

    @staticmethod
    def compute_hash(data: bytes) -> str:
        """SHA-256 hex digest of the data."""
        return hashlib.sha256(data).hexdigest()

    @abstractmethod
    def get_local_path(self, key: str) -> Path | None:
        """Filesystem path of a stored key, for backends that have one."""
        ...
