"""Phased code generation service."""

from .service import COMPLETE_PHASE, CodeGenerationService, is_ui_phase

__all__ = ["COMPLETE_PHASE", "CodeGenerationService", "is_ui_phase"]
