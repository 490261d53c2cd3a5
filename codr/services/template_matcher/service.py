"""
Template Matcher Service.

Scores every registered template against a set of user requirements and
decides between reusing the best template and generating the app from scratch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from ...core.logging import get_logger
from ...models.requirements import UserRequirements
from ...models.template import TemplateDefinition, TemplateMatch, TemplateSelectionResult
from ...templates.registry import TemplateRegistry

logger = get_logger(__name__)

# Minimum confidence for reusing a template instead of generating from scratch
MATCH_THRESHOLD = 0.7

KEYWORD_WEIGHT = 30.0
WORKFLOW_KEYWORD_POINTS = 20.0
INPUT_WEIGHT = 20.0
OUTPUT_WEIGHT = 20.0
API_WEIGHT = 15.0
FAVORITE_APP_WEIGHT = 10.0
COMPLEXITY_WEIGHT = 5.0

MAX_ALTERNATIVES = 3

Complexity = Literal["simple", "medium", "complex"]

INPUT_CAPABILITIES: dict[str, str] = {
    "gdrive": "file_upload",
    "dropbox": "file_upload",
    "upload": "file_upload",
    "notion": "api_import",
    "email": "api_import",
    "web": "url_import",
    "other": "api_import",
}

OUTPUT_CAPABILITIES: dict[str, tuple[str, ...]] = {
    "summary": ("data_storage", "reporting"),
    "doc": ("export",),
    "json": ("export",),
    "slides": ("export",),
    "audio": ("export",),
    "video": ("export",),
    "image": ("export",),
    "post": ("api_import",),
    "trigger": ("webhook",),
}


@dataclass(frozen=True)
class _KeywordRule:
    keyword: str
    points: float
    name_fragment: str | None = None
    capability: str | None = None
    reason: str = ""

    def applies(self, jtbd: str, template: TemplateDefinition) -> bool:
        if self.keyword not in jtbd:
            return False
        if self.name_fragment is not None:
            return self.name_fragment in template.name
        return template.has_capability(self.capability or "")


# First matching rule wins
_KEYWORD_RULES: tuple[_KeywordRule, ...] = (
    _KeywordRule("journal", KEYWORD_WEIGHT, name_fragment="journal", reason="journaling"),
    _KeywordRule("idea", KEYWORD_WEIGHT, name_fragment="idea", reason="capturing ideas"),
    _KeywordRule("dashboard", KEYWORD_WEIGHT, name_fragment="dashboard", reason="dashboards"),
    _KeywordRule("track", WORKFLOW_KEYWORD_POINTS, capability="workflow_management", reason="tracking work"),
    _KeywordRule("manage", WORKFLOW_KEYWORD_POINTS, capability="workflow_management", reason="managing work"),
)


@dataclass
class ScoreBreakdown:
    """Points earned per scoring rule for one template.

    ``max_score`` only counts the rules whose inputs were present, so a
    requirement set without APIs or a favourite app is not penalized for them.
    """

    template_name: str
    keyword: float = 0.0
    keyword_reason: str | None = None
    inputs: float = 0.0
    supported_inputs: int = 0
    total_inputs: int = 0
    outputs: float = 0.0
    supported_outputs: int = 0
    total_outputs: int = 0
    apis: float = 0.0
    supported_apis: int = 0
    total_apis: int = 0
    favorite_app: float = 0.0
    complexity: float = 0.0
    complexity_tier: Complexity = "simple"
    max_score: float = 0.0
    capabilities: list[str] = field(default_factory=list)

    @property
    def total(self) -> float:
        return self.keyword + self.inputs + self.outputs + self.apis + self.favorite_app + self.complexity

    @property
    def confidence(self) -> float:
        if self.max_score <= 0:
            return 0.0
        return min(max(self.total / self.max_score, 0.0), 1.0)

    def reasoning(self) -> str:
        """Explain which rules contributed to the score."""
        reasons: list[str] = []
        if self.keyword_reason:
            reasons.append(f"Designed for {self.keyword_reason}")
        if self.supported_inputs:
            reasons.append(f"Supports {self.supported_inputs}/{self.total_inputs} input sources")
        if self.supported_outputs:
            reasons.append(f"Supports {self.supported_outputs}/{self.total_outputs} output types")
        if self.supported_apis:
            reasons.append(f"Integrates {self.supported_apis}/{self.total_apis} required APIs")
        if self.favorite_app:
            reasons.append("Similar to your favorite app")
        if self.complexity:
            reasons.append(f"Matches {self.complexity_tier} complexity")
        return "; ".join(reasons) if reasons else "General purpose template"


def supports_input(template: TemplateDefinition, source: str) -> bool:
    capability = INPUT_CAPABILITIES.get(source.lower())
    return capability is not None and template.has_capability(capability)


def supports_output(template: TemplateDefinition, output: str) -> bool:
    return any(template.has_capability(c) for c in OUTPUT_CAPABILITIES.get(output.lower(), ()))


def supports_api(template: TemplateDefinition, api: str) -> bool:
    return template.supports_provider(api)


def _favorite_app_matches(template: TemplateDefinition, favorite_app: str) -> bool:
    app = favorite_app.lower()
    if "notion" in app and template.framework == "react":
        return True
    if "figma" in app and template.has_capability("data_visualization"):
        return True
    return False


class TemplateMatcher:
    """Service for choosing between template reuse and full generation."""

    def __init__(self, registry: TemplateRegistry | None = None) -> None:
        """Initialize the matcher.

        Args:
            registry: Template catalog to score. Defaults to the bundled catalog.
        """
        self.registry = registry or TemplateRegistry.default()

    @staticmethod
    def assess_complexity(requirements: UserRequirements) -> Complexity:
        """Derive a complexity tier from the size of the requirements."""
        factors = sum([
            len(requirements.input_sources) > 2,
            len(requirements.outputs) > 2,
            len(requirements.api_keys_required) > 1,
            len(requirements.jtbds) > 100,
        ])
        if factors <= 1:
            return "simple"
        if factors <= 3:
            return "medium"
        return "complex"

    def score(self, template: TemplateDefinition, requirements: UserRequirements) -> ScoreBreakdown:
        """Score one template against the requirements.

        Args:
            template: Candidate template.
            requirements: The user's requirements.

        Returns:
            Per-rule points and the applicable maximum.
        """
        jtbd = requirements.jtbds.lower()
        breakdown = ScoreBreakdown(
            template_name=template.name,
            capabilities=template.enabled_capabilities,
        )

        breakdown.max_score += KEYWORD_WEIGHT
        for rule in _KEYWORD_RULES:
            if rule.applies(jtbd, template):
                breakdown.keyword = rule.points
                breakdown.keyword_reason = rule.reason
                break

        if requirements.input_sources:
            breakdown.max_score += INPUT_WEIGHT
            breakdown.total_inputs = len(requirements.input_sources)
            breakdown.supported_inputs = sum(
                supports_input(template, s) for s in requirements.input_sources
            )
            breakdown.inputs = breakdown.supported_inputs / breakdown.total_inputs * INPUT_WEIGHT

        if requirements.outputs:
            breakdown.max_score += OUTPUT_WEIGHT
            breakdown.total_outputs = len(requirements.outputs)
            breakdown.supported_outputs = sum(
                supports_output(template, o) for o in requirements.outputs
            )
            breakdown.outputs = breakdown.supported_outputs / breakdown.total_outputs * OUTPUT_WEIGHT

        if requirements.api_keys_required:
            breakdown.max_score += API_WEIGHT
            breakdown.total_apis = len(requirements.api_keys_required)
            breakdown.supported_apis = sum(
                supports_api(template, a) for a in requirements.api_keys_required
            )
            breakdown.apis = breakdown.supported_apis / breakdown.total_apis * API_WEIGHT

        favorite_app = requirements.visual_style.favorite_app
        if favorite_app:
            breakdown.max_score += FAVORITE_APP_WEIGHT
            if _favorite_app_matches(template, favorite_app):
                breakdown.favorite_app = FAVORITE_APP_WEIGHT

        breakdown.max_score += COMPLEXITY_WEIGHT
        breakdown.complexity_tier = self.assess_complexity(requirements)
        if breakdown.complexity_tier == template.complexity:
            breakdown.complexity = COMPLEXITY_WEIGHT

        return breakdown

    def rank(self, requirements: UserRequirements) -> list[TemplateMatch]:
        """Score every template, best first.

        Ties keep registry order.
        """
        matches = []
        for template in self.registry:
            breakdown = self.score(template, requirements)
            matches.append(TemplateMatch(
                template_name=template.name,
                confidence=breakdown.confidence,
                reasoning=breakdown.reasoning(),
                capabilities=breakdown.capabilities,
            ))
        return sorted(matches, key=lambda m: m.confidence, reverse=True)

    def select(self, requirements: UserRequirements) -> TemplateSelectionResult:
        """Decide whether to customize a template or generate from scratch.

        Args:
            requirements: The user's requirements.

        Returns:
            The selected template with up to three runner-up alternatives, or a
            fallback decision carrying the three best-scoring templates.
        """
        matches = self.rank(requirements)
        if not matches:
            logger.warning("Template catalog is empty, falling back to generation")
            return TemplateSelectionResult(
                fallback_generation=True,
                reasoning="No templates available. Will generate custom app using AI.",
            )

        best = matches[0]
        if best.confidence >= MATCH_THRESHOLD:
            logger.info(
                "Template selected",
                template=best.template_name,
                confidence=round(best.confidence, 3),
            )
            return TemplateSelectionResult(
                selected_template=best.template_name,
                confidence=best.confidence,
                reasoning=best.reasoning,
                alternatives=matches[1:1 + MAX_ALTERNATIVES],
            )

        logger.info(
            "No template above threshold",
            best_template=best.template_name,
            confidence=round(best.confidence, 3),
            threshold=MATCH_THRESHOLD,
        )
        return TemplateSelectionResult(
            fallback_generation=True,
            confidence=best.confidence,
            reasoning=(
                f"No template matches well enough (best confidence: {best.confidence * 100:.1f}%). "
                "Will generate custom app using AI."
            ),
            alternatives=matches[:MAX_ALTERNATIVES],
        )
