"""Unit tests for template customization."""

import json

import httpx
import pytest
from pydantic import SecretStr

from codr.core.exceptions import TemplateNotFoundError
from codr.llm import HTTPLLMGateway, UIFile, UIGenerationResult
from codr.models.generation import SessionStatus
from codr.models.requirements import UserRequirements, VisualStyle
from codr.services.template_customizer import (
    FUNCTIONALITY_FAILED_PLACEHOLDER,
    UI_FAILED_PLACEHOLDER,
    TemplateCustomizer,
    interpolate_prompt,
    merge_package_patches,
    resolve_color,
    substitute_variables,
)

APP_SOURCE = "export default function App() { return <main>Journal</main>; }"
LOGIC_SOURCE = "export const saveEntry = (text: string) => text;"


def ui_app(model, prompt):
    return UIGenerationResult(files=[UIFile(path="src/App.tsx", content=APP_SOURCE)])


def logic(prompt, choice):
    return LOGIC_SOURCE


@pytest.fixture
def make_customizer(make_gateway, progress_store, registry, config):
    def factory(**gateway_kwargs):
        gateway_kwargs.setdefault("ui_response", ui_app)
        gateway_kwargs.setdefault("text_response", logic)
        gateway = make_gateway(**gateway_kwargs)
        return TemplateCustomizer(gateway, progress_store, registry=registry, config=config), gateway
    return factory


class TestVariables:
    """Tests for variable substitution and prompt interpolation."""

    def test_substitute_variables(self, registry, journal_requirements):
        variables = substitute_variables(registry.get("journal-app"), journal_requirements)

        assert variables["app_title"] == "track my journal entries"
        assert variables["primary_color"] == "muted"
        assert variables["theme"] == "light"
        assert variables["font_style"] == "geometric"

    def test_interpolate_prompt(self, journal_requirements):
        prompt = interpolate_prompt(
            "Title {{app_title}} / {{ theme }} / {{input_sources}} / {{jtbd_description}}",
            {"app_title": "My Journal", "theme": "light"},
            journal_requirements,
        )
        assert prompt == "Title My Journal / light / upload / track my journal entries"

    def test_interpolated_values_are_literal(self, journal_requirements):
        prompt = interpolate_prompt("{{app_title}}", {"app_title": r"C:\notes \1"}, journal_requirements)
        assert prompt == r"C:\notes \1"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("#112233", "#112233"),
            ("muted", "#7c8a9a"),
            ("Pastel", "#a5b4fc"),
            ("infrared", "#3498db"),
            ("", "#3498db"),
        ],
    )
    def test_resolve_color(self, value, expected):
        assert resolve_color(value) == expected


class TestPackagePatches:
    def test_sdks_added_for_required_apis(self, registry):
        reqs = UserRequirements(name="x", jtbds="y", api_keys_required=["OpenAI", "anthropic", "notion"])
        patches = merge_package_patches(registry.get("journal-app"), reqs)

        assert patches.dependencies == {
            "date-fns": "^2.30.0",
            "openai": "^4.0.0",
            "@anthropic-ai/sdk": "^0.17.0",
        }

    def test_template_patches_only(self, registry, journal_requirements):
        patches = merge_package_patches(registry.get("dashboard-app"), journal_requirements)
        assert patches.dependencies == {"recharts": "^2.8.0"}


@pytest.mark.asyncio
class TestCustomizeTemplate:
    """Tests for the customization flow."""

    async def test_assembles_complete_app(self, make_customizer, journal_requirements):
        customizer, gateway = make_customizer()
        app = await customizer.customize_template("journal-app", journal_requirements, "s1")

        assert set(app.files) == {
            "package.json",
            "src/App.tsx",
            "src/functionality.ts",
            "src/main.tsx",
            "src/index.css",
            "vite.config.ts",
            "tsconfig.json",
            "index.html",
        }
        assert app.files["src/App.tsx"] == APP_SOURCE
        assert app.files["src/functionality.ts"] == LOGIC_SOURCE
        assert "<title>track my journal entries</title>" in app.files["index.html"]
        assert "background: #7c8a9a;" in app.files["src/index.css"]
        assert app.name == "journal-app"
        assert app.metadata.template == "journal-app"
        assert app.metadata.user_requirements == journal_requirements
        assert app.deployment.database == "local_storage"

    async def test_package_json(self, make_customizer, journal_requirements):
        customizer, _ = make_customizer()
        app = await customizer.customize_template("journal-app", journal_requirements, "s1")
        package = json.loads(app.files["package.json"])

        assert package["name"] == "custom-journal-app"
        assert package["dependencies"]["react"] == "^18.2.0"
        assert package["dependencies"]["date-fns"] == "^2.30.0"
        assert package["devDependencies"]["vite"] == "^4.0.0"
        assert app.dependencies() == {"date-fns": "^2.30.0"}

    async def test_prompts_are_interpolated(self, make_customizer, journal_requirements, config):
        customizer, gateway = make_customizer()
        await customizer.customize_template("journal-app", journal_requirements, "s1")

        ui_model, ui_prompt = gateway.ui_calls[0]
        assert ui_model == config.llm.ui_model
        assert 'Title the app "track my journal entries"' in ui_prompt
        assert "{{" not in ui_prompt

        _, functionality_prompt, choice = gateway.calls[0]
        assert "Inputs: upload." in functionality_prompt
        assert choice.model == "claude-3.7-sonnet"
        assert choice.reason == "user_selected_model"

    async def test_default_functionality_model(self, make_customizer):
        customizer, gateway = make_customizer()
        reqs = UserRequirements(name="Ideas", jtbds="capture every idea")
        await customizer.customize_template("idea-bank-app", reqs, "s1")

        assert gateway.calls[0][2].model == "gemini-2.0-pro-exp"

    async def test_ui_failure_uses_placeholder(self, make_customizer, journal_requirements, config):
        customizer, _ = make_customizer(fail_models={config.llm.ui_model})
        app = await customizer.customize_template("journal-app", journal_requirements, "s1")

        assert app.files["src/App.tsx"] == UI_FAILED_PLACEHOLDER
        assert app.files["src/functionality.ts"] == LOGIC_SOURCE

    async def test_empty_ui_result_uses_placeholder(self, make_customizer, journal_requirements):
        customizer, _ = make_customizer(ui_response=lambda model, prompt: UIGenerationResult())
        app = await customizer.customize_template("journal-app", journal_requirements, "s1")
        assert app.files["src/App.tsx"] == UI_FAILED_PLACEHOLDER

    async def test_functionality_failure_uses_placeholder(self, make_customizer, journal_requirements):
        customizer, _ = make_customizer(fail_models={"claude-3.7-sonnet"})
        app = await customizer.customize_template("journal-app", journal_requirements, "s1")

        assert app.files["src/functionality.ts"] == FUNCTIONALITY_FAILED_PLACEHOLDER
        assert app.files["src/App.tsx"] == APP_SOURCE

    async def test_unknown_template_raises(self, make_customizer, journal_requirements, progress_store):
        customizer, gateway = make_customizer()
        with pytest.raises(TemplateNotFoundError):
            await customizer.customize_template("spaceship-app", journal_requirements, "s1")

        assert gateway.calls == []
        assert progress_store.history("s1") == []

    async def test_progress_posts(self, make_customizer, journal_requirements, progress_store):
        customizer, _ = make_customizer()
        await customizer.customize_template("journal-app", journal_requirements, "s1")

        history = progress_store.history("s1")
        assert [(s.phase, s.progress, s.status) for s in history] == [
            ("customizing", 10, SessionStatus.ANALYZING_REQUIREMENTS),
            ("customizing", 90, SessionStatus.FINALIZING_APP),
        ]

    async def test_dark_theme_css(self, make_customizer):
        customizer, _ = make_customizer()
        reqs = UserRequirements(
            name="Ops",
            jtbds="dashboard for deploys",
            visual_style=VisualStyle(theme="dark", color="#00ff88"),
        )
        app = await customizer.customize_template("dashboard-app", reqs, "s1")

        css = app.files["src/index.css"]
        assert "background: #1a1a1a;" in css
        assert "background: #00ff88;" in css


class FixedTransport:
    """Answers every request with the same status and body."""

    def __init__(self, status, body):
        self.status = status
        self.body = body
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, text=self.body)


@pytest.mark.asyncio
class TestCustomizeOverHTTP:
    """Customization failures raised by the HTTP gateway become placeholders."""

    @pytest.fixture
    def gemini_requirements(self):
        return UserRequirements(name="Mood Journal", jtbds="track my journal entries")

    async def customize(self, config, transport, progress_store, registry, requirements):
        http = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        async with HTTPLLMGateway(config, http_client=http) as gateway:
            customizer = TemplateCustomizer(gateway, progress_store, registry=registry, config=config)
            return await customizer.customize_template("journal-app", requirements, "s1")

    @pytest.mark.parametrize(
        "status, body",
        [
            (200, "<html>gateway error page</html>"),
            (500, '{"error": "boom"}'),
        ],
    )
    async def test_bad_responses_use_placeholders(
        self, config, progress_store, registry, gemini_requirements, status, body
    ):
        keyed = config.model_copy(update={"google_ai_studio_api_key": SecretStr("studio-key")})
        transport = FixedTransport(status, body)

        app = await self.customize(keyed, transport, progress_store, registry, gemini_requirements)

        assert app.files["src/App.tsx"] == UI_FAILED_PLACEHOLDER
        assert app.files["src/functionality.ts"] == FUNCTIONALITY_FAILED_PLACEHOLDER
        assert len(app.files) == 8
        assert len(transport.requests) == 2
        assert [s.progress for s in progress_store.history("s1")] == [10, 90]

    async def test_missing_credential_uses_placeholders(
        self, config, progress_store, registry, gemini_requirements
    ):
        transport = FixedTransport(200, "{}")

        app = await self.customize(config, transport, progress_store, registry, gemini_requirements)

        assert app.files["src/App.tsx"] == UI_FAILED_PLACEHOLDER
        assert app.files["src/functionality.ts"] == FUNCTIONALITY_FAILED_PLACEHOLDER
        assert transport.requests == []
