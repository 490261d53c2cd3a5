"""Template customizer service."""

from .service import (
    FUNCTIONALITY_FAILED_PLACEHOLDER,
    UI_FAILED_PLACEHOLDER,
    TemplateCustomizer,
    interpolate_prompt,
    merge_package_patches,
    resolve_color,
    substitute_variables,
)

__all__ = [
    "FUNCTIONALITY_FAILED_PLACEHOLDER",
    "UI_FAILED_PLACEHOLDER",
    "TemplateCustomizer",
    "interpolate_prompt",
    "merge_package_patches",
    "resolve_color",
    "substitute_variables",
]
