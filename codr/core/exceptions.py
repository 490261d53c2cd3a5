"""
Custom exception hierarchy for Codr.

All exceptions inherit from CodrError to enable consistent error handling
across the pipeline. Each exception type includes context for debugging and logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CodrError(Exception):
    """Base exception for all Codr errors."""

    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def __str__(self) -> str:
        ctx = f" | context: {self.context}" if self.context else ""
        cause = f" | caused by: {self.cause}" if self.cause else ""
        return f"{self.message}{ctx}{cause}"


@dataclass
class ValidationError(CodrError):
    """Raised when input validation fails before any phase runs."""

    field_name: str | None = None

    def __str__(self) -> str:
        base = super().__str__()
        if self.field_name:
            return f"Validation failed for '{self.field_name}': {base}"
        return f"Validation failed: {base}"


@dataclass
class ServiceError(CodrError):
    """Raised when a service operation fails."""

    service_name: str = ""
    operation: str = ""
    retryable: bool = False

    def __str__(self) -> str:
        base = super().__str__()
        retry_hint = " (retryable)" if self.retryable else " (non-retryable)"
        return f"[{self.service_name}.{self.operation}]{retry_hint}: {base}"


@dataclass
class LLMError(ServiceError):
    """Raised when a provider call fails or returns a non-success status."""

    provider: str = ""
    model: str = ""

    def __post_init__(self) -> None:
        self.service_name = "llm"

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.provider}:{self.model}] {base}"


@dataclass
class ProviderNotConfiguredError(LLMError):
    """Raised before any network call when a provider credential is missing."""

    credential: str = ""

    def __str__(self) -> str:
        return f"Provider '{self.provider}' is not configured: missing {self.credential}"


@dataclass
class TemplateNotFoundError(CodrError):
    """Raised when a template definition cannot be found or parsed."""

    template_name: str = ""

    def __str__(self) -> str:
        base = super().__str__()
        return f"Template '{self.template_name}': {base}"


@dataclass
class PipelineError(CodrError):
    """Raised when a generation run cannot start."""

    stage: str = ""
    session_id: str = ""

    def __str__(self) -> str:
        base = super().__str__()
        return f"Pipeline error at stage '{self.stage}' (session: {self.session_id}): {base}"
