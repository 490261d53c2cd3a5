"""
Model selection policy.

Maps a free-text job description to a provider/model choice. Quality comes
first; a cheaper fallback is declared where one exists.
"""

from __future__ import annotations

from ..models.generation import FallbackChoice, LLMChoice, Provider

_BUDGET_FALLBACK = FallbackChoice(
    provider=Provider.OPENAI, model="gpt-5-mini", reason="budget alternative"
)

# Checked in order; the first group with a keyword present in the description wins.
_KEYWORD_RULES: tuple[tuple[tuple[str, ...], LLMChoice], ...] = (
    (
        ("ui", "interface", "dashboard"),
        LLMChoice(
            provider=Provider.GOOGLEAI,
            model="gemini-2.0-pro-exp",
            reason="front-end code generation",
        ),
    ),
    (
        ("copy", "email", "summary"),
        LLMChoice(
            provider=Provider.ANTHROPIC,
            model="claude-3.7-sonnet",
            reason="long-form & nuance",
            fallback=_BUDGET_FALLBACK,
        ),
    ),
    (
        ("vision", "image", "audio", "transcribe"),
        LLMChoice(provider=Provider.GOOGLE, model="gemini-2.5-pro", reason="multimodal strength"),
    ),
    (
        ("analysis", "report", "data"),
        LLMChoice(provider=Provider.OPENAI, model="gpt-5", reason="reasoning & structured outputs"),
    ),
)

_DEFAULT_CHOICE = LLMChoice(
    provider=Provider.ANTHROPIC,
    model="claude-3.7-sonnet",
    reason="balanced generalist",
    fallback=_BUDGET_FALLBACK,
)

DEFAULT_USER_MODEL = "gemini-2.0-pro-exp"


def pick_llm_for_jtbd(jtbd: str | None) -> LLMChoice:
    """Choose a provider and model for a job description.

    Matching is substring-based on the lower-cased description, so "build"
    matches the "ui" rule.

    Args:
        jtbd: Free-text job-to-be-done description.

    Returns:
        The chosen LLMChoice. The same description always yields the same choice.
    """
    text = (jtbd or "").lower()
    for keywords, choice in _KEYWORD_RULES:
        if any(keyword in text for keyword in keywords):
            return choice
    return _DEFAULT_CHOICE


def provider_for_model(model: str) -> Provider:
    """Infer the provider from a model name."""
    name = model.lower()
    if "gemini" in name:
        return Provider.GOOGLEAI
    if "claude" in name:
        return Provider.ANTHROPIC
    if "gpt" in name:
        return Provider.OPENAI
    return Provider.GOOGLEAI


def choice_for_model(model: str | None) -> LLMChoice:
    """Build a choice for a model the user picked explicitly."""
    model = model or DEFAULT_USER_MODEL
    return LLMChoice(provider=provider_for_model(model), model=model, reason="user_selected_model")
