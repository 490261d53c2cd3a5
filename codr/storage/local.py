"""
Local filesystem storage backend.

Objects are plain files below ``base_path``; metadata (content type, size,
hash) lives in a ``.meta.json`` sidecar next to each object.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..core.logging import get_logger
from .interface import StorageBackend

logger = get_logger(__name__)

METADATA_SUFFIX = ".meta.json"


class LocalStorageBackend(StorageBackend):
    """Filesystem-backed artifact store for development and single hosts."""

    def __init__(self, base_path: Path) -> None:
        """Initialize local storage.

        Args:
            base_path: Directory all keys are stored under.
        """
        self.base_path = Path(base_path).resolve()

    def _path_for(self, key: str) -> Path:
        """Map a key to a path inside ``base_path``.

        Keys that would resolve outside the base directory are flattened into
        a single file name inside it.
        """
        clean_key = key.lstrip("/\\").replace("..", "").replace(":", "")
        path = (self.base_path / clean_key).resolve()
        try:
            path.relative_to(self.base_path)
        except ValueError:
            path = self.base_path / clean_key.replace("/", "_").replace("\\", "_")
        return path

    def _meta_path_for(self, key: str) -> Path:
        return self._path_for(key + METADATA_SUFFIX)

    @staticmethod
    async def _write_atomic(path: Path, data: bytes) -> None:
        # Readers never observe a partially written object
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp_path, path)

    async def put_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        path = self._path_for(key)
        await self._write_atomic(path, data)

        meta = dict(metadata or {})
        meta.update({
            "key": key,
            "content_type": content_type or "application/octet-stream",
            "size_bytes": len(data),
            "hash": self.compute_hash(data),
            "stored_at": datetime.utcnow().isoformat(),
        })
        await self._write_atomic(
            self._meta_path_for(key), json.dumps(meta, indent=2, default=str).encode("utf-8")
        )

        logger.debug("Object stored", key=key, size_bytes=len(data))
        return key

    async def get_bytes(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise FileNotFoundError(f"Key not found: {key}")
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    async def delete(self, key: str) -> bool:
        path = self._path_for(key)
        meta_path = self._meta_path_for(key)

        deleted = False
        if path.is_file():
            await aiofiles.os.remove(path)
            deleted = True
        if meta_path.is_file():
            await aiofiles.os.remove(meta_path)
        return deleted

    async def list_keys(self, prefix: str = "") -> list[str]:
        root = self._path_for(prefix) if prefix else self.base_path
        if not root.exists():
            return []

        keys = []
        for path in root.rglob("*"):
            if not path.is_file() or path.name.endswith(METADATA_SUFFIX) or path.name.endswith(".tmp"):
                continue
            keys.append(path.relative_to(self.base_path).as_posix())
        return sorted(keys)

    async def get_metadata(self, key: str) -> dict[str, Any]:
        meta_path = self._meta_path_for(key)
        if not meta_path.is_file():
            return {}
        async with aiofiles.open(meta_path, "r", encoding="utf-8") as f:
            return json.loads(await f.read())

    def get_local_path(self, key: str) -> Path | None:
        path = self._path_for(key)
        return path if path.is_file() else None
