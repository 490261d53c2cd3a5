"""Prompt construction for the generation phases."""

from .builder import PHASE_PROMPTS, PhasePrompt, PromptBuilder
from .style import build_style_prompt, infer_frontend, summarise_style

__all__ = [
    "PHASE_PROMPTS",
    "PhasePrompt",
    "PromptBuilder",
    "build_style_prompt",
    "infer_frontend",
    "summarise_style",
]
