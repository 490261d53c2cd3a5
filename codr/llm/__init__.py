"""LLM access for Codr: model selection policy and the provider gateway."""

from .gateway import HTTPLLMGateway, LLMGateway, UIFile, UIGenerationResult
from .selection import choice_for_model, pick_llm_for_jtbd, provider_for_model

__all__ = [
    "HTTPLLMGateway",
    "LLMGateway",
    "UIFile",
    "UIGenerationResult",
    "choice_for_model",
    "pick_llm_for_jtbd",
    "provider_for_model",
]
