"""
Core type definitions for Codr.

Provides the result types used throughout the pipeline so that every phase
reports what happened instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class PhaseStatus(str, Enum):
    """Status of a generation phase."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """Result wrapper for service operations.

    Provides a consistent return type that includes success/failure status,
    the result data, and any errors or warnings.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0

    @classmethod
    def ok(cls, data: T, **metadata: Any) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> ServiceResult[T]:
        """Create a failed result."""
        return cls(success=False, error=error, metadata=metadata)

    @classmethod
    def with_warnings(cls, data: T, warnings: list[str], **metadata: Any) -> ServiceResult[T]:
        """Create a successful result with warnings."""
        return cls(success=True, data=data, warnings=warnings, metadata=metadata)


class PhaseResult(BaseModel):
    """Outcome of a single generation phase."""

    phase: str = Field(description="Phase name")
    status: PhaseStatus = Field(default=PhaseStatus.PENDING)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    duration_seconds: float = Field(default=0.0)
    file_count: int = Field(default=0, description="Files contributed by this phase")
    model_used: str = Field(default="")
    error_message: str | None = Field(default=None)

    def mark_running(self) -> None:
        """Mark phase as started."""
        self.status = PhaseStatus.RUNNING
        self.started_at = datetime.utcnow()

    def mark_completed(self, file_count: int, model_used: str = "") -> None:
        """Mark phase as successfully completed."""
        self.status = PhaseStatus.COMPLETED
        self.file_count = file_count
        self.model_used = model_used
        self._finish()

    def mark_failed(self, error: str) -> None:
        """Mark phase as failed."""
        self.status = PhaseStatus.FAILED
        self.error_message = error
        self._finish()

    def mark_cancelled(self) -> None:
        """Mark phase as never started because the run was cancelled."""
        self.status = PhaseStatus.CANCELLED
        self.completed_at = datetime.utcnow()

    @property
    def succeeded(self) -> bool:
        return self.status == PhaseStatus.COMPLETED

    def _finish(self) -> None:
        self.completed_at = datetime.utcnow()
        if self.started_at:
            self.duration_seconds = (self.completed_at - self.started_at).total_seconds()
