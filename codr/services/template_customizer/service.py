"""
Template Customizer Service.

Turns a matched template into a complete app: template variables are filled
from the user's requirements, the UI and functionality prompts are sent to the
LLM gateway, and the results are assembled with generated boilerplate into a
single file map.
"""

from __future__ import annotations

import json
import re

from ...core.config import Config, get_config
from ...core.logging import get_logger
from ...llm.gateway import LLMGateway
from ...llm.selection import DEFAULT_USER_MODEL, choice_for_model
from ...models.generation import SessionStatus
from ...models.requirements import UserRequirements
from ...models.template import (
    CustomizationMetadata,
    CustomizedApp,
    PackagePatches,
    TemplateDefinition,
)
from ...storage.progress import ProgressStore, post_progress
from ...templates.registry import TemplateRegistry

logger = get_logger(__name__)

CUSTOMIZING_PHASE = "customizing"

UI_FAILED_PLACEHOLDER = "/* UI customization failed */"
FUNCTIONALITY_FAILED_PLACEHOLDER = "/* Functionality customization failed */"

DEFAULT_PRIMARY_COLOR = "#3498db"

# Palette names offered at intake, resolved to a representative colour
PALETTE_COLORS: dict[str, str] = {
    "monochromatic": "#4a5568",
    "bright": "#ff4f81",
    "muted": "#7c8a9a",
    "neutrals": "#8d7b68",
    "bw": "#111111",
    "pastel": "#a5b4fc",
    "earthy": "#8b5e3c",
}

# SDK dependencies added when the matching API tag is required
API_SDK_DEPENDENCIES: dict[str, tuple[str, str]] = {
    "openai": ("openai", "^4.0.0"),
    "anthropic": ("@anthropic-ai/sdk", "^0.17.0"),
}

_JTBD_TOKEN = "{{jtbd_description}}"
_STYLE_TOKEN_RE = re.compile(r"\{\{visual_style\.(\w+)\}\}")

MAIN_TSX = """import React from 'react';
import ReactDOM from 'react-dom/client';
import App from './App';
import './index.css';

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>
);
"""

VITE_CONFIG = """import { defineConfig } from 'vite';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
});
"""

TSCONFIG = {
    "compilerOptions": {
        "target": "ES2020",
        "useDefineForClassFields": True,
        "lib": ["ES2020", "DOM", "DOM.Iterable"],
        "module": "ESNext",
        "skipLibCheck": True,
        "moduleResolution": "bundler",
        "allowImportingTsExtensions": True,
        "resolveJsonModule": True,
        "isolatedModules": True,
        "noEmit": True,
        "jsx": "react-jsx",
        "strict": True,
        "noUnusedLocals": True,
        "noUnusedParameters": True,
        "noFallthroughCasesInSwitch": True,
    },
    "include": ["src"],
}


def resolve_color(value: str) -> str:
    """Resolve a palette name or hex colour to a CSS colour."""
    value = value.strip()
    if value.startswith("#"):
        return value
    return PALETTE_COLORS.get(value.lower(), DEFAULT_PRIMARY_COLOR)


def substitute_variables(template: TemplateDefinition, requirements: UserRequirements) -> dict[str, str]:
    """Fill the template's variables from the requirements.

    ``{{jtbd_description}}`` becomes the job description and
    ``{{visual_style.<prop>}}`` the named style property.
    """
    style = requirements.visual_style
    resolved = {}
    for key, value in template.variables.items():
        value = value.replace(_JTBD_TOKEN, requirements.jtbds)
        value = _STYLE_TOKEN_RE.sub(lambda m: style.get(m.group(1)), value)
        resolved[key] = value
    return resolved


def interpolate_prompt(prompt: str, variables: dict[str, str], requirements: UserRequirements) -> str:
    """Render a customization prompt with variables and requirement lists."""
    for key, value in variables.items():
        prompt = re.sub(r"\{\{\s*" + re.escape(key) + r"\s*\}\}", lambda _m, v=value: v, prompt)
    return (
        prompt.replace(_JTBD_TOKEN, requirements.jtbds)
        .replace("{{input_sources}}", ", ".join(requirements.input_sources))
        .replace("{{outputs}}", ", ".join(requirements.outputs))
        .replace("{{api_keys_required}}", ", ".join(requirements.api_keys_required))
    )


def merge_package_patches(template: TemplateDefinition, requirements: UserRequirements) -> PackagePatches:
    """Template patches plus SDKs for the required APIs that have one."""
    dependencies = dict(template.package_patches.dependencies)
    for api in requirements.api_keys_required:
        sdk = API_SDK_DEPENDENCIES.get(api.lower())
        if sdk:
            name, version = sdk
            dependencies[name] = version
    return PackagePatches(
        dependencies=dependencies,
        devDependencies=dict(template.package_patches.devDependencies),
    )


class TemplateCustomizer:
    """Service for producing an app from a matched template."""

    def __init__(
        self,
        gateway: LLMGateway,
        progress_store: ProgressStore,
        registry: TemplateRegistry | None = None,
        config: Config | None = None,
    ) -> None:
        """Initialize the customizer.

        Args:
            gateway: LLM gateway used for UI and functionality customization.
            progress_store: Store receiving the customization progress snapshots.
            registry: Template catalog. Defaults to the bundled catalog.
            config: Configuration. Defaults to the environment configuration.
        """
        self.gateway = gateway
        self.progress_store = progress_store
        self.registry = registry or TemplateRegistry.default()
        self.config = config or get_config()

    async def customize_template(
        self,
        template_name: str,
        requirements: UserRequirements,
        session_id: str,
    ) -> CustomizedApp:
        """Customize a template for the given requirements.

        LLM failures degrade to placeholder source files.

        Args:
            template_name: Name of the template chosen by the matcher.
            requirements: The user's requirements.
            session_id: Session the progress snapshots are posted under.

        Returns:
            The complete customized app.

        Raises:
            TemplateNotFoundError: If the template cannot be loaded.
        """
        template = self.registry.get(template_name)
        logger.info("Customizing template", template=template.name, session_id=session_id)

        await post_progress(
            self.progress_store,
            session_id,
            CUSTOMIZING_PHASE,
            10,
            SessionStatus.ANALYZING_REQUIREMENTS,
        )

        variables = substitute_variables(template, requirements)
        ui_source = await self._customize_ui(template, requirements, variables)
        functionality_source = await self._customize_functionality(template, requirements, variables)
        patches = merge_package_patches(template, requirements)

        app = self._assemble(template, requirements, variables, ui_source, functionality_source, patches)

        await post_progress(
            self.progress_store,
            session_id,
            CUSTOMIZING_PHASE,
            90,
            SessionStatus.FINALIZING_APP,
        )
        logger.info("Template customized", template=template.name, files=len(app.files))
        return app

    async def _customize_ui(
        self,
        template: TemplateDefinition,
        requirements: UserRequirements,
        variables: dict[str, str],
    ) -> str:
        prompt = interpolate_prompt(template.customization_prompts.ui_generation, variables, requirements)
        try:
            result = await self.gateway.generate_ui(self.config.llm.ui_model, prompt)
        except Exception as e:
            logger.error("UI customization failed", template=template.name, error=str(e))
            return UI_FAILED_PLACEHOLDER

        if not result.files or not result.files[0].content:
            logger.warning("UI customization returned no files", template=template.name)
            return UI_FAILED_PLACEHOLDER
        return result.files[0].content

    async def _customize_functionality(
        self,
        template: TemplateDefinition,
        requirements: UserRequirements,
        variables: dict[str, str],
    ) -> str:
        prompt = interpolate_prompt(template.customization_prompts.functionality, variables, requirements)
        choice = choice_for_model(requirements.llm_models.get("primary") or DEFAULT_USER_MODEL)
        try:
            return await self.gateway.complete(prompt, choice)
        except Exception as e:
            logger.error(
                "Functionality customization failed",
                template=template.name,
                model=choice.model,
                error=str(e),
            )
            return FUNCTIONALITY_FAILED_PLACEHOLDER

    def _assemble(
        self,
        template: TemplateDefinition,
        requirements: UserRequirements,
        variables: dict[str, str],
        ui_source: str,
        functionality_source: str,
        patches: PackagePatches,
    ) -> CustomizedApp:
        title = variables.get("app_title") or template.name
        files = {
            "package.json": self._package_json(template, patches),
            "src/App.tsx": ui_source,
            "src/functionality.ts": functionality_source,
            "src/main.tsx": MAIN_TSX,
            "src/index.css": self._index_css(
                requirements.visual_style.theme,
                resolve_color(variables.get("primary_color", "")),
            ),
            "vite.config.ts": VITE_CONFIG,
            "tsconfig.json": json.dumps(TSCONFIG, indent=2),
            "index.html": self._index_html(title),
        }
        return CustomizedApp(
            name=template.name,
            framework=template.framework,
            files=files,
            package_patches=patches,
            deployment=template.deployment,
            connections=template.connections,
            metadata=CustomizationMetadata(template=template.name, user_requirements=requirements),
        )

    @staticmethod
    def _package_json(template: TemplateDefinition, patches: PackagePatches) -> str:
        package = {
            "name": f"custom-{template.name}",
            "version": "1.0.0",
            "type": "module",
            "scripts": {
                "dev": "vite",
                "build": "vite build",
                "preview": "vite preview",
            },
            "dependencies": {
                "react": "^18.2.0",
                "react-dom": "^18.2.0",
                **patches.dependencies,
            },
            "devDependencies": {
                "@types/react": "^18.2.0",
                "@types/react-dom": "^18.2.0",
                "@vitejs/plugin-react": "^4.0.0",
                "typescript": "^5.0.0",
                "vite": "^4.0.0",
                **patches.devDependencies,
            },
        }
        return json.dumps(package, indent=2)

    @staticmethod
    def _index_css(theme: str, primary_color: str) -> str:
        background, foreground = ("#1a1a1a", "#f4f4f4") if theme == "dark" else ("#f8f9fa", "#212529")
        return f"""* {{
  box-sizing: border-box;
}}

body {{
  margin: 0;
  padding: 0;
  background: {background};
  color: {foreground};
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  line-height: 1.6;
}}

#root {{
  min-height: 100vh;
}}

button {{
  background: {primary_color};
  color: white;
  border: none;
  padding: 8px 16px;
  border-radius: 6px;
  cursor: pointer;
  font-size: 14px;
}}

button:hover {{
  opacity: 0.9;
}}

input, textarea {{
  padding: 8px 12px;
  border: 2px solid #ddd;
  border-radius: 6px;
  font-size: 14px;
  font-family: inherit;
}}

input:focus, textarea:focus {{
  outline: none;
  border-color: {primary_color};
}}
"""

    @staticmethod
    def _index_html(title: str) -> str:
        return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{title}</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
"""
