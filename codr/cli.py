"""
Codr CLI.

Command-line interface for matching templates and generating apps.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .core.config import get_config
from .core.logging import setup_logging
from .models.requirements import UserRequirements

app = typer.Typer(
    name="codr",
    help="AI-assisted app generation from a job-to-be-done description",
    add_completion=False,
)

console = Console()

RequirementsArg = typer.Argument(
    ...,
    help="Path to a requirements JSON file",
    exists=True,
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from . import __version__
        console.print(f"Codr v{__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Codr: describe a workflow, get a deployed app."""


def load_requirements(path: Path) -> UserRequirements:
    """Read requirements from a JSON file, exiting with a message if invalid."""
    try:
        return UserRequirements.model_validate_json(path.read_text(encoding="utf-8"))
    except PydanticValidationError as e:
        console.print(f"[red]Invalid requirements in {path}:[/red]")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            console.print(f"  • {location}: {error['msg']}")
        raise typer.Exit(1)


@app.command()
def generate(
    requirements_path: Path = RequirementsArg,
    session_id: Optional[str] = typer.Option(
        None,
        "--session",
        "-s",
        help="Session identifier (generated if omitted)",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Storage directory for builds, assets and progress",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """Generate, build and deploy an app from a requirements file.

    A matching template is customized when one scores high enough; otherwise
    the app is generated from scratch in six phases.
    """
    requirements = load_requirements(requirements_path)

    config = get_config()
    if verbose:
        config.log_level = "DEBUG"
    if output_dir is not None:
        config.storage.base_path = output_dir
    setup_logging(config)

    console.print(Panel.fit(
        "[bold blue]Codr[/bold blue]\n"
        "Requirements → Template or Phased Generation → Preview",
        border_style="blue",
    ))
    console.print(f"\n[bold]App:[/bold] {requirements.name}")
    console.print(f"[bold]Purpose:[/bold] {requirements.jtbds}")
    console.print(f"[bold]Framework:[/bold] {requirements.framework}")
    console.print(f"[bold]Storage:[/bold] {config.storage.base_path}\n")

    async def run_async() -> None:
        from .orchestration import CodrPipeline

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Generating app...", total=None)
            result = await CodrPipeline().run(requirements, session_id)
            progress.update(task, completed=True)

        if result.generation is None:
            console.print("\n[bold red]✗ Generation could not start[/bold red]")
            console.print(f"Error: {result.error}")
            if result.failed_stage:
                console.print(f"Failed at: {result.failed_stage}")
            raise typer.Exit(1)

        generation = result.generation
        if result.success:
            console.print("\n[bold green]✓ App generated and deployed![/bold green]\n")
        else:
            console.print("\n[bold yellow]! Generation finished with problems[/bold yellow]\n")

        table = Table(title="Generation Results")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Session", result.session_id)
        table.add_row("Duration", f"{(result.completed_at - result.started_at).total_seconds():.1f}s")
        table.add_row("Template", generation.template or "[dim]none (generated)[/dim]")
        table.add_row("Files", str(len(generation.files)))
        for phase in generation.report.phases:
            status = "[green]ok[/green]" if phase.succeeded else f"[red]{phase.status.value}[/red]"
            table.add_row(f"Phase {phase.phase}", f"{status} ({phase.file_count} files)")
        if generation.build_result:
            build = generation.build_result
            table.add_row("Build", "[green]PASSED[/green]" if build.success else "[red]FAILED[/red]")
        if generation.quality:
            table.add_row("Quality Score", str(generation.quality.score))
        table.add_row("Preview URL", generation.preview_url or "-")

        console.print(table)

        if not result.success:
            raise typer.Exit(1)

    asyncio.run(run_async())


@app.command()
def templates(
    category: Optional[str] = typer.Option(
        None,
        "--category",
        "-c",
        help="Only show templates in this category",
    ),
) -> None:
    """List the template catalog."""
    from .templates import TemplateRegistry

    registry = TemplateRegistry.default()
    entries = registry.by_category(category) if category else registry.list_templates()

    table = Table(title="Templates")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Framework")
    table.add_column("Complexity")
    table.add_column("Capabilities", style="dim")

    for template in entries:
        table.add_row(
            template.name,
            template.category,
            template.framework,
            template.complexity,
            ", ".join(template.enabled_capabilities),
        )

    console.print(table)


@app.command()
def match(
    requirements_path: Path = RequirementsArg,
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the selection as JSON",
    ),
) -> None:
    """Show which template, if any, would be used for a requirements file."""
    from .services.template_matcher import MATCH_THRESHOLD, TemplateMatcher

    requirements = load_requirements(requirements_path)
    selection = TemplateMatcher().select(requirements)

    if as_json:
        console.print_json(selection.model_dump_json())
        return

    if selection.selected_template:
        console.print(
            f"[bold green]✓ Template:[/bold green] {selection.selected_template} "
            f"({selection.confidence:.0%} confidence)"
        )
    else:
        console.print(
            f"[bold yellow]No template reaches {MATCH_THRESHOLD:.0%}[/bold yellow] "
            "- the app will be generated from scratch"
        )
    console.print(f"[dim]{selection.reasoning}[/dim]\n")

    if selection.alternatives:
        table = Table(title="Alternatives")
        table.add_column("Template", style="cyan")
        table.add_column("Confidence")
        table.add_column("Reasoning", style="dim")
        for alternative in selection.alternatives:
            table.add_row(
                alternative.template_name,
                f"{alternative.confidence:.0%}",
                alternative.reasoning,
            )
        console.print(table)


@app.command("pick-model")
def pick_model(
    description: str = typer.Argument(..., help="Job-to-be-done description"),
) -> None:
    """Show the model chosen for a job description."""
    from .llm import pick_llm_for_jtbd

    choice = pick_llm_for_jtbd(description)

    table = Table(title="Model Selection")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Provider", choice.provider.value)
    table.add_row("Model", choice.model)
    table.add_row("Reason", choice.reason)
    if choice.fallback:
        table.add_row("Fallback", f"{choice.fallback.provider.value} / {choice.fallback.model}")

    console.print(table)


@app.command()
def status(
    session_id: str = typer.Argument(..., help="Session identifier"),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Storage directory used by the generation run",
    ),
) -> None:
    """Show the latest progress snapshot of a session."""
    from .storage import LocalStorageBackend, StorageProgressStore

    base_path = output_dir or get_config().storage.base_path
    store = StorageProgressStore(LocalStorageBackend(base_path))
    snapshot = asyncio.run(store.get(session_id))

    if snapshot is None:
        console.print(f"[yellow]No progress recorded for session {session_id}[/yellow]")
        raise typer.Exit(1)

    console.print(f"[bold]Phase:[/bold] {snapshot.phase}")
    console.print(f"[bold]Progress:[/bold] {snapshot.progress:.0f}%")
    console.print(f"[bold]Status:[/bold] {snapshot.status.value}")
    console.print(f"[bold]Updated:[/bold] {snapshot.updated_at.isoformat()}")
    if snapshot.result:
        console.print_json(json.dumps(snapshot.result, default=str))


@app.command()
def config() -> None:
    """Show the current configuration."""
    cfg = get_config()

    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Log Level", cfg.log_level)
    table.add_row("Storage Path", str(cfg.storage.base_path))
    table.add_row("AI Gateway", cfg.llm.ai_gateway or "-")
    table.add_row("UI Model", cfg.llm.ui_model)
    table.add_row("Model Fallback", str(cfg.llm.use_fallback))
    table.add_row("Preview Domain", cfg.deploy.preview_domain)
    for label, secret in (
        ("OpenAI", cfg.openai_api_key),
        ("Anthropic", cfg.anthropic_api_key),
        ("Google", cfg.google_api_key),
        ("Google AI Studio", cfg.google_ai_studio_api_key),
        ("OpenRouter", cfg.openrouter_api_key),
        ("Replicate", cfg.replicate_api_token),
    ):
        table.add_row(f"{label} Key", "[green]set[/green]" if secret else "[dim]not set[/dim]")

    console.print(table)

    console.print("\n[dim]Configure via environment variables:[/dim]")
    console.print("  CODR_LOG_LEVEL, CODR_AI_GATEWAY, CODR_UI_MODEL, CODR_OUTPUT_PATH, CODR_PREVIEW_DOMAIN")
    console.print("  OPENAI_API_KEY, ANTHROPIC_API_KEY, GOOGLE_AI_STUDIO_API_KEY")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
