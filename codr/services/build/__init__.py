"""Build service."""

from .service import BuildService, latest_by_path, new_build_id

__all__ = ["BuildService", "latest_by_path", "new_build_id"]
