"""
Template data models.

TemplateDefinition mirrors the YAML catalog under ``codr/templates/definitions``.
TemplateMatch and TemplateSelectionResult are produced per selection request;
CustomizedApp is the output of the customization path.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .requirements import UserRequirements


class ApiIntegration(BaseModel):
    """An external API a template knows how to talk to."""

    model_config = ConfigDict(frozen=True)

    type: str
    providers: list[str] = Field(default_factory=list)
    capabilities: list[str] = Field(default_factory=list)
    purpose: str | None = None


class CustomizationPrompts(BaseModel):
    model_config = ConfigDict(frozen=True)

    ui_generation: str
    functionality: str


class DeploymentSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    worker_type: str = "pages"
    routing: str = "subdomain"
    database: str = "local_storage"
    assets: str = "inline"


class ConnectionOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    trigger: str
    data: str
    formats: list[str] = Field(default_factory=list)


class ConnectionInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    sources: list[str] = Field(default_factory=list)


class Connections(BaseModel):
    model_config = ConfigDict(frozen=True)

    outputs: list[ConnectionOutput] = Field(default_factory=list)
    inputs: list[ConnectionInput] = Field(default_factory=list)


class PackagePatches(BaseModel):
    """Dependency additions applied on top of the base package.json."""

    dependencies: dict[str, str] = Field(default_factory=dict)
    devDependencies: dict[str, str] = Field(default_factory=dict)


class TemplateDefinition(BaseModel):
    """A predefined, parameterizable application skeleton."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    category: str
    framework: str
    complexity: str = "simple"
    capabilities: dict[str, bool] = Field(default_factory=dict)
    base_reference: str = ""
    package_patches: PackagePatches = Field(default_factory=PackagePatches)
    variables: dict[str, str] = Field(default_factory=dict)
    customization_prompts: CustomizationPrompts
    api_integrations: list[ApiIntegration] = Field(default_factory=list)
    deployment: DeploymentSpec = Field(default_factory=DeploymentSpec)
    connections: Connections = Field(default_factory=Connections)

    def has_capability(self, capability: str) -> bool:
        return bool(self.capabilities.get(capability))

    @property
    def enabled_capabilities(self) -> list[str]:
        return [name for name, enabled in self.capabilities.items() if enabled]

    def supports_provider(self, api: str) -> bool:
        api = api.lower()
        return any(api in integration.providers for integration in self.api_integrations)


class TemplateMatch(BaseModel):
    """How well one template fits a set of requirements."""

    template_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    capabilities: list[str] = Field(default_factory=list)


class TemplateSelectionResult(BaseModel):
    """Decision between template reuse and full generation."""

    selected_template: str | None = None
    fallback_generation: bool = False
    confidence: float = 0.0
    reasoning: str
    alternatives: list[TemplateMatch] = Field(default_factory=list)


class CustomizationMetadata(BaseModel):
    template: str
    customized: bool = True
    user_requirements: UserRequirements
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class CustomizedApp(BaseModel):
    """Complete file set produced from a matched template."""

    name: str
    framework: str
    files: dict[str, str] = Field(default_factory=dict)
    package_patches: PackagePatches = Field(default_factory=PackagePatches)
    deployment: DeploymentSpec
    connections: Connections
    metadata: CustomizationMetadata

    def dependencies(self) -> dict[str, str]:
        return dict(self.package_patches.dependencies)
