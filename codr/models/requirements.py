"""
User requirement models.

UserRequirements is the canonical description produced by the intake flow.
It is frozen: every pipeline component reads it, none may change it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import ValidationError

Framework = Literal["react", "vite"]


class VisualStyle(BaseModel):
    """Visual style preferences from the style questions."""

    model_config = ConfigDict(frozen=True)

    theme: str = Field(default="either", description="light | dark | either")
    color: str = Field(default="neutrals", description="Colour palette")
    font: str = Field(default="geometric", description="Font family style")
    vibe: str = Field(default="simple", description="Design vibe")
    motion: str = Field(default="none", description="Motion effects")
    favorite_app: str | None = Field(default=None, description="App to take inspiration from")
    screenshots: list[str] = Field(default_factory=list, description="Reference image identifiers")

    def get(self, prop: str) -> str:
        """Return a style property as text, joining list values with ', '."""
        value = getattr(self, prop, None) if prop in type(self).model_fields else None
        if isinstance(value, list):
            return ", ".join(value)
        return value or ""


class UserRequirements(BaseModel):
    """Description of the app to generate."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="App name")
    jtbds: str = Field(description="Job-to-be-done description")
    input_sources: list[str] = Field(default_factory=list, description="Input source tags")
    outputs: list[str] = Field(default_factory=list, description="Output type tags")
    api_keys_required: list[str] = Field(default_factory=list, description="Required external API tags")
    chain_next: bool = Field(default=False, description="Chain output into another agent")
    visual_style: VisualStyle = Field(default_factory=VisualStyle)
    llm_models: dict[str, str] = Field(default_factory=dict, description="Per-task model selection")
    frontend_framework: Framework | None = Field(default=None)

    @property
    def framework(self) -> Framework:
        """Declared framework, or the one inferred from the visual style."""
        if self.frontend_framework:
            return self.frontend_framework
        from ..prompts.style import infer_frontend

        return infer_frontend(self.visual_style)

    def validate_for_generation(self) -> None:
        """Check the fields a generation run cannot start without.

        Raises:
            ValidationError: If the name or job description is blank.
        """
        if not self.name.strip():
            raise ValidationError(message="App name is required", field_name="name")
        if not self.jtbds.strip():
            raise ValidationError(message="Job-to-be-done description is required", field_name="jtbds")
