"""
Phase prompt builder.

Every phase prompt starts from the same context block (framework, name, job
description, inputs/outputs/APIs, visual style, files generated so far) and
appends the instructions for that phase. Building a prompt performs no I/O.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.generation import GeneratedFile, Phase
from ..models.requirements import UserRequirements
from .style import build_style_prompt

FILE_LIST_FORMAT = "Return as JSON array of files with path and content."
UI_FILE_LIST_FORMAT = (
    'Return a JSON object of the form {"files": [{"path": "...", "content": "..."}]} '
    "and nothing else."
)

SYSTEM_PROMPT = (
    "You are a senior front-end engineer generating production-ready application "
    "source files. Follow the requested output format exactly."
)


@dataclass(frozen=True)
class PhasePrompt:
    """Versioned instructions for one generation phase."""

    phase: Phase
    version: str
    instructions: str
    output_format_instructions: str = ""

    def render(self, context: str, **kwargs: str) -> str:
        prompt = f"{context}\n\n{self.instructions.format(**kwargs)}"
        if self.output_format_instructions:
            prompt += f"\n\n{self.output_format_instructions}"
        return prompt

    def get_hash(self) -> str:
        """16-character hash identifying this prompt revision."""
        content = f"{self.phase.value}:{self.version}:{self.instructions}:{self.output_format_instructions}"
        return hashlib.sha256(content.encode()).hexdigest()[:16]


PHASE_PROMPTS: dict[Phase, PhasePrompt] = {
    Phase.PLANNING: PhasePrompt(
        phase=Phase.PLANNING,
        version="1.0.0",
        instructions="""Create a detailed project structure and file list for this application. Return as JSON:
{{
  "structure": {{
    "src/": ["components/", "utils/", "types/"],
    "public/": ["index.html", "assets/"],
    "package.json": "dependencies and scripts"
  }},
  "files": [
    {{"path": "src/main.tsx", "description": "Entry point"}},
    {{"path": "src/App.tsx", "description": "Main component"}}
  ]
}}""",
    ),
    Phase.FOUNDATION: PhasePrompt(
        phase=Phase.FOUNDATION,
        version="1.0.0",
        instructions="""Generate the foundation files for this {framework} app:
- package.json with all necessary dependencies
- tsconfig.json
- vite.config.ts (if using Vite)
- index.html
- main.tsx entry point
- Basic App component structure""",
        output_format_instructions=FILE_LIST_FORMAT,
    ),
    Phase.CORE: PhasePrompt(
        phase=Phase.CORE,
        version="1.0.0",
        instructions="""Generate the core functionality:
- Main components based on the JTBD
- Business logic
- State management
- API integration points

Focus on the core user workflow described in the requirements.""",
        output_format_instructions=FILE_LIST_FORMAT,
    ),
    Phase.STYLING: PhasePrompt(
        phase=Phase.STYLING,
        version="1.0.0",
        instructions="""Generate styling based on visual preferences:
- Theme: {theme}
- Color palette: {color}
- Font: {font}
- Design vibe: {vibe}
- Motion: {motion}

{style_brief}

Create CSS files, Tailwind config, and styled components.""",
        output_format_instructions=UI_FILE_LIST_FORMAT,
    ),
    Phase.INTEGRATION: PhasePrompt(
        phase=Phase.INTEGRATION,
        version="1.0.0",
        instructions="""Add API integrations and external services:
{api_lines}

Create service files, API clients, and connection logic.""",
        output_format_instructions=FILE_LIST_FORMAT,
    ),
    Phase.OPTIMIZATION: PhasePrompt(
        phase=Phase.OPTIMIZATION,
        version="1.0.0",
        instructions="""Add optimizations:
- Error boundaries
- Loading states
- Performance improvements
- Type safety
- Testing setup""",
        output_format_instructions=FILE_LIST_FORMAT,
    ),
}


class PromptBuilder:
    """Renders phase prompts from requirements and prior output."""

    system_prompt = SYSTEM_PROMPT

    def build_context(
        self,
        requirements: UserRequirements,
        previous_files: Sequence[GeneratedFile] = (),
    ) -> str:
        """Render the context block shared by every phase."""
        style = json.dumps(requirements.visual_style.model_dump(), indent=2)
        previous = "\n".join(f"- {f.path} ({f.phase})" for f in previous_files)
        return (
            f"Create a {requirements.framework} application with these requirements:\n"
            f"- Name: {requirements.name}\n"
            f"- Purpose: {requirements.jtbds}\n"
            f"- Inputs: {', '.join(requirements.input_sources)}\n"
            f"- Outputs: {', '.join(requirements.outputs)}\n"
            f"- Required APIs: {', '.join(requirements.api_keys_required)}\n"
            f"- Visual Style: {style}\n"
            f"\n"
            f"Previous files generated:\n"
            f"{previous}"
        )

    def build(
        self,
        requirements: UserRequirements,
        phase: Phase | str,
        previous_files: Sequence[GeneratedFile] = (),
    ) -> str:
        """Render the full prompt for a phase.

        Unknown phase names get the context block alone.
        """
        context = self.build_context(requirements, previous_files)
        try:
            template = PHASE_PROMPTS[Phase(phase)]
        except ValueError:
            return context

        style = requirements.visual_style
        return template.render(
            context,
            framework=requirements.framework,
            theme=style.theme,
            color=style.color,
            font=style.font,
            vibe=style.vibe,
            motion=style.motion,
            style_brief=build_style_prompt(style),
            api_lines="\n".join(f"- {api} integration" for api in requirements.api_keys_required),
        )

    def prompt_hash(self, phase: Phase | str) -> str:
        try:
            return PHASE_PROMPTS[Phase(phase)].get_hash()
        except ValueError:
            return ""
