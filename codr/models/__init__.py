"""
Codr Data Models.

Pydantic models shared by every pipeline component: the user's requirements,
the template catalog, generated files, progress snapshots and results.
"""

from .generation import (
    CUSTOMIZATION_PHASE,
    PHASE_DESCRIPTIONS,
    PHASES,
    BuildAsset,
    BuildRequest,
    BuildResult,
    FallbackChoice,
    GeneratedFile,
    GenerationResult,
    LLMChoice,
    Phase,
    ProgressSnapshot,
    Provider,
    RunReport,
    SessionStatus,
)
from .quality import CodeIssue, QualityReport, QualitySummary
from .requirements import UserRequirements, VisualStyle
from .template import (
    ApiIntegration,
    CustomizedApp,
    PackagePatches,
    TemplateDefinition,
    TemplateMatch,
    TemplateSelectionResult,
)

__all__ = [
    # Requirements
    "UserRequirements",
    "VisualStyle",
    # Generation
    "CUSTOMIZATION_PHASE",
    "PHASE_DESCRIPTIONS",
    "PHASES",
    "BuildAsset",
    "BuildRequest",
    "BuildResult",
    "FallbackChoice",
    "GeneratedFile",
    "GenerationResult",
    "LLMChoice",
    "Phase",
    "ProgressSnapshot",
    "Provider",
    "RunReport",
    "SessionStatus",
    # Quality
    "CodeIssue",
    "QualityReport",
    "QualitySummary",
    # Templates
    "ApiIntegration",
    "CustomizedApp",
    "PackagePatches",
    "TemplateDefinition",
    "TemplateMatch",
    "TemplateSelectionResult",
]
