"""
Visual style helpers.

Turn the style answers from intake into text: a confirmation summary for the
user, and a design brief for the UI generation model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from ..models.requirements import VisualStyle

VIBE_DESCRIPTIONS = {
    "simple": "simple and minimalist",
    "clean-max": "clean but maximalist",
    "corporate": "professional and corporate",
    "boho": "bohemian and feminine",
    "playful": "playful and engaging",
}


def summarise_style(style: VisualStyle) -> str:
    """Produce a human-readable summary of the style choices."""
    lines = [
        f"• Theme: {style.theme}",
        f"• Colour palette: {style.color}",
        f"• Font: {style.font}",
        f"• Design vibe: {style.vibe}",
        f"• Motion effects: {style.motion}",
    ]
    if style.favorite_app:
        lines.append(f"• Favourite app: {style.favorite_app}")
    if style.screenshots:
        lines.append(f"• Uploaded images: {', '.join(style.screenshots)}")
    return "\n".join(lines)


def infer_frontend(style: VisualStyle) -> Literal["react", "vite"]:
    """Playful designs and scroll-driven motion get React; everything else Vite."""
    if style.vibe == "playful" or style.motion == "scroll":
        return "react"
    return "vite"


def build_style_prompt(style: VisualStyle) -> str:
    """Build a design brief for the UI generation model.

    The brief embeds neurodivergent-friendly design principles: clear hierarchy,
    generous white space, high contrast, a limited palette and accessible fonts.
    """
    if style.theme == "light":
        theme_description = "a light theme"
    elif style.theme == "dark":
        theme_description = "a dark theme"
    else:
        theme_description = "either a light or dark theme"
    vibe_description = VIBE_DESCRIPTIONS.get(style.vibe, style.vibe)

    parts = [
        f"Design a {vibe_description} interface with {theme_description}.",
        f"Use a {style.color} colour palette and a {style.font} font.",
        f'Motion effects should be "{style.motion}".',
        "Follow ND guidelines: short, punchy copy; clear hierarchy; generous white space; high contrast;",
        "accessible typography; responsive layout occupying only 60-85% of the viewport.",
    ]
    if style.favorite_app:
        parts.append(f"Take inspiration from the app {style.favorite_app}.")
    if style.screenshots:
        parts.append("Use the uploaded images as visual references.")
    return " ".join(parts)
