"""Core infrastructure components for Codr."""

from .config import Config, get_config
from .exceptions import (
    CodrError,
    LLMError,
    PipelineError,
    ProviderNotConfiguredError,
    ServiceError,
    TemplateNotFoundError,
    ValidationError,
)
from .logging import get_logger, setup_logging
from .types import PhaseResult, PhaseStatus, ServiceResult

__all__ = [
    "Config",
    "get_config",
    "CodrError",
    "LLMError",
    "PipelineError",
    "ProviderNotConfiguredError",
    "ServiceError",
    "TemplateNotFoundError",
    "ValidationError",
    "get_logger",
    "setup_logging",
    "PhaseResult",
    "PhaseStatus",
    "ServiceResult",
]
