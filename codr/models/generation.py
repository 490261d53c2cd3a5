"""
Generation data models.

These models describe what flows through the phase pipeline: the phases
themselves, generated files, LLM choices, progress snapshots, build results,
and the final result record handed back to callers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.types import PhaseResult, PhaseStatus
from .quality import QualityReport


class Phase(str, Enum):
    """Generation phases, in execution order."""

    PLANNING = "planning"
    FOUNDATION = "foundation"
    CORE = "core"
    STYLING = "styling"
    INTEGRATION = "integration"
    OPTIMIZATION = "optimization"


PHASE_DESCRIPTIONS: dict[Phase, str] = {
    Phase.PLANNING: "Analyze requirements and create project structure",
    Phase.FOUNDATION: "Generate package.json, config files, and basic setup",
    Phase.CORE: "Create main components and business logic",
    Phase.STYLING: "Add CSS, themes, and visual design",
    Phase.INTEGRATION: "Connect APIs and external services",
    Phase.OPTIMIZATION: "Performance improvements and error handling",
}

PHASES: tuple[Phase, ...] = tuple(Phase)

# Phase tag for files produced by the template customization path
CUSTOMIZATION_PHASE = "customization"

VALID_PHASE_TAGS = frozenset([p.value for p in PHASES] + [CUSTOMIZATION_PHASE])


class GeneratedFile(BaseModel):
    """A file produced by a generation phase."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Relative path")
    content: str = Field(description="File content")
    phase: str = Field(description="Phase that produced the file")


class Provider(str, Enum):
    """LLM providers reachable through the gateway."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"
    GOOGLEAI = "googleai"
    OPENROUTER = "openrouter"
    REPLICATE = "replicate"


class FallbackChoice(BaseModel):
    """Cheaper alternative declared alongside a primary choice."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    model: str
    reason: str


class LLMChoice(BaseModel):
    """Provider and model selected for a task."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    model: str
    reason: str
    fallback: FallbackChoice | None = None

    def fallback_choice(self) -> LLMChoice | None:
        """The fallback as a standalone choice, if one is declared."""
        if self.fallback is None:
            return None
        return LLMChoice(
            provider=self.fallback.provider,
            model=self.fallback.model,
            reason=self.fallback.reason,
        )


class SessionStatus(str, Enum):
    """Status reported in progress snapshots."""

    GENERATING = "generating"
    ANALYZING_REQUIREMENTS = "analyzing_requirements"
    FINALIZING_APP = "finalizing_app"
    COMPLETED = "completed"
    ERROR = "error"


class ProgressSnapshot(BaseModel):
    """Progress record written at each phase boundary."""

    phase: str
    progress: float = Field(ge=0.0, le=100.0)
    status: SessionStatus
    result: dict[str, Any] | None = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class BuildAsset(BaseModel):
    """A compiled asset produced by the build adapter."""

    path: str
    content: str
    type: Literal["js", "css", "html"]

    @property
    def content_type(self) -> str:
        return {
            "html": "text/html",
            "js": "application/javascript",
            "css": "text/css",
        }.get(self.type, "text/plain")


class BuildRequest(BaseModel):
    """Input for the build adapter."""

    session_id: str
    files: list[GeneratedFile] = Field(default_factory=list)
    framework: str = "vite"
    dependencies: dict[str, str] = Field(default_factory=dict)


class BuildResult(BaseModel):
    """Outcome of a build; failures are reported here, never raised."""

    success: bool
    build_id: str = ""
    assets: list[BuildAsset] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def skipped(cls, reason: str) -> BuildResult:
        return cls(success=False, errors=[reason])


class RunReport(BaseModel):
    """Per-phase outcomes of a generation run."""

    phases: list[PhaseResult] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded_phases(self) -> list[str]:
        return [p.phase for p in self.phases if p.status == PhaseStatus.COMPLETED]

    @property
    def failed_phases(self) -> list[str]:
        return [p.phase for p in self.phases if p.status == PhaseStatus.FAILED]

    def get(self, phase: str) -> PhaseResult | None:
        for result in self.phases:
            if result.phase == phase:
                return result
        return None


class GenerationResult(BaseModel):
    """Final record of a generation run."""

    session_id: str
    files: list[GeneratedFile] = Field(default_factory=list)
    preview_url: str | None = None
    deployment_id: str | None = None
    build_result: BuildResult | None = None
    report: RunReport = Field(default_factory=RunReport)
    quality: QualityReport | None = None
    template: str | None = Field(default=None, description="Template used, if any")

    @field_validator("files")
    @classmethod
    def _known_phase_tags(cls, files: list[GeneratedFile]) -> list[GeneratedFile]:
        for f in files:
            if f.phase not in VALID_PHASE_TAGS:
                raise ValueError(f"Unknown phase tag '{f.phase}' on {f.path}")
        return files

    @property
    def success(self) -> bool:
        return bool(self.build_result and self.build_result.success)

    def files_for_phase(self, phase: str) -> list[GeneratedFile]:
        return [f for f in self.files if f.phase == phase]

    def latest_files(self) -> list[GeneratedFile]:
        """Files with later writes to a path superseding earlier ones.

        Order follows the first appearance of each path.
        """
        latest: dict[str, GeneratedFile] = {}
        for f in self.files:
            latest[f.path] = f
        return list(latest.values())

    def summary(self) -> dict[str, Any]:
        """Compact payload for the completion progress snapshot."""
        return {
            "success": self.success,
            "file_count": len(self.files),
            "preview_url": self.preview_url,
            "deployment_id": self.deployment_id,
            "template": self.template,
            "succeeded_phases": self.report.succeeded_phases,
            "failed_phases": self.report.failed_phases,
            "cancelled": self.report.cancelled,
            "build": self.build_result.model_dump(exclude={"assets"}) if self.build_result else None,
            "quality_score": self.quality.score if self.quality else None,
        }
