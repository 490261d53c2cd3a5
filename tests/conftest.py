"""Test configuration for Codr."""

from __future__ import annotations

import json
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from codr.core.config import Config, DeployConfig, LLMConfig, StorageConfig
from codr.core.exceptions import LLMError
from codr.llm.gateway import LLMGateway, UIFile, UIGenerationResult
from codr.models.generation import LLMChoice, Phase
from codr.models.requirements import UserRequirements, VisualStyle

# Distinctive instruction text of each phase prompt
PHASE_MARKERS: dict[Phase, str] = {
    Phase.PLANNING: "Create a detailed project structure",
    Phase.FOUNDATION: "Generate the foundation files",
    Phase.CORE: "Generate the core functionality",
    Phase.STYLING: "Generate styling based on visual preferences",
    Phase.INTEGRATION: "Add API integrations and external services",
    Phase.OPTIMIZATION: "Add optimizations:",
}

PLANNING_RESPONSE = {"structure": {"src/": ["components/"]}, "files": [{"path": "src/App.tsx"}]}


def phase_of(prompt: str) -> Phase | None:
    """Identify the phase a rendered prompt belongs to."""
    for phase, marker in PHASE_MARKERS.items():
        if marker in prompt:
            return phase
    return None


def default_text_response(prompt: str, choice: LLMChoice) -> str:
    phase = phase_of(prompt)
    if phase == Phase.PLANNING:
        return json.dumps(PLANNING_RESPONSE)
    name = phase.value if phase else "unknown"
    return json.dumps([{"path": f"src/{name}.tsx", "content": f"export const {name} = true;"}])


def default_ui_response(model: str, prompt: str) -> UIGenerationResult:
    return UIGenerationResult(files=[UIFile(path="src/styles.css", content="body { margin: 0; }")])


class FakeGateway(LLMGateway):
    """Scripted gateway recording every request.

    Phases listed in ``fail_phases`` raise LLMError for every model, so a
    declared fallback cannot rescue them.
    """

    def __init__(
        self,
        config: Config,
        text_response: Callable[[str, LLMChoice], str] = default_text_response,
        ui_response: Callable[[str, str], UIGenerationResult] = default_ui_response,
        fail_phases: set[Phase] | None = None,
        fail_models: set[str] | None = None,
    ) -> None:
        super().__init__(config)
        self.text_response = text_response
        self.ui_response = ui_response
        self.fail_phases = fail_phases or set()
        self.fail_models = fail_models or set()
        self.calls: list[tuple[str, str, LLMChoice]] = []
        self.ui_calls: list[tuple[str, str]] = []

    def _fail(self, model: str, provider: str = "fake") -> LLMError:
        return LLMError(message="scripted failure", operation="call", provider=provider, model=model)

    async def call(self, system_prompt: str, user_prompt: str, choice: LLMChoice) -> str:
        self.calls.append((system_prompt, user_prompt, choice))
        if phase_of(user_prompt) in self.fail_phases or choice.model in self.fail_models:
            raise self._fail(choice.model, choice.provider.value)
        return self.text_response(user_prompt, choice)

    async def generate_ui(self, model: str, prompt: str) -> UIGenerationResult:
        self.ui_calls.append((model, prompt))
        if phase_of(prompt) in self.fail_phases or model in self.fail_models:
            raise self._fail(model)
        return self.ui_response(model, prompt)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests.

    Yields:
        Path: A Path object pointing to the temporary directory.
            The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir):
    """Configuration without provider credentials, storing under temp_dir."""
    return Config(
        llm=LLMConfig(max_retries=1),
        storage=StorageConfig(base_path=temp_dir),
        deploy=DeployConfig(preview_domain="apps.test"),
        openai_api_key=None,
        anthropic_api_key=None,
        google_api_key=None,
        google_ai_studio_api_key=None,
        openrouter_api_key=None,
        replicate_api_token=None,
    )


@pytest.fixture
def storage(temp_dir):
    """Create a storage backend for testing.

    Returns:
        LocalStorageBackend: A local storage backend rooted at temp_dir.
    """
    from codr.storage import LocalStorageBackend
    return LocalStorageBackend(temp_dir)


@pytest.fixture
def progress_store():
    from codr.storage import InMemoryProgressStore
    return InMemoryProgressStore()


@pytest.fixture
def make_gateway(config):
    """Factory for scripted gateways; keyword arguments go to FakeGateway."""
    def factory(**kwargs) -> FakeGateway:
        return FakeGateway(config, **kwargs)
    return factory


@pytest.fixture
def gateway(make_gateway):
    return make_gateway()


@pytest.fixture
def registry():
    from codr.templates import TemplateRegistry
    return TemplateRegistry.default()


@pytest.fixture
def requirements():
    """Requirements for a dashboard app generated from scratch."""
    return UserRequirements(
        name="Sales Pulse",
        jtbds="Daily KPI dashboard for sales",
        input_sources=["notion"],
        outputs=["summary"],
        api_keys_required=["openai"],
        visual_style=VisualStyle(theme="dark", color="bright", font="geometric", vibe="corporate", motion="none"),
        frontend_framework="vite",
    )


@pytest.fixture
def journal_requirements():
    return UserRequirements(
        name="Mood Journal",
        jtbds="track my journal entries",
        input_sources=["upload"],
        visual_style=VisualStyle(theme="light", color="muted"),
        llm_models={"primary": "claude-3.7-sonnet"},
    )
