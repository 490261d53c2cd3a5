"""
Prefect tasks for the Codr pipeline.

Each task wraps one service operation; collaborators (storage, progress store,
LLM gateway) are built from the environment configuration inside the task.
"""

from __future__ import annotations

from prefect import task
from prefect.logging import get_run_logger

from ..core.config import get_config
from ..llm.gateway import HTTPLLMGateway
from ..models.generation import GenerationResult
from ..models.requirements import UserRequirements
from ..models.template import CustomizedApp, TemplateSelectionResult
from ..services.build import BuildService
from ..services.codegen import CodeGenerationService
from ..services.template_customizer import TemplateCustomizer
from ..services.template_matcher import TemplateMatcher
from ..storage import LocalStorageBackend, StorageProgressStore


def get_storage() -> LocalStorageBackend:
    """Get storage backend."""
    return LocalStorageBackend(get_config().storage.base_path)


def get_progress_store() -> StorageProgressStore:
    """Progress store readable by observers of the same storage."""
    return StorageProgressStore(get_storage())


def _codegen_service(gateway: HTTPLLMGateway) -> CodeGenerationService:
    storage = get_storage()
    return CodeGenerationService(
        gateway=gateway,
        progress_store=StorageProgressStore(storage),
        storage=storage,
        build_service=BuildService(storage),
        config=gateway.config,
    )


@task(
    name="select_template",
    description="Score the template catalog against the requirements",
)
async def select_template(requirements: UserRequirements) -> TemplateSelectionResult:
    """Decide between template customization and full generation.

    Args:
        requirements: The user's requirements.

    Returns:
        The selection decision.
    """
    logger = get_run_logger()
    selection = TemplateMatcher().select(requirements)
    if selection.fallback_generation:
        logger.info(f"No template selected: {selection.reasoning}")
    else:
        logger.info(
            f"Selected template {selection.selected_template} "
            f"(confidence {selection.confidence:.0%})"
        )
    return selection


@task(
    name="customize_template",
    description="Customize the selected template with the LLM gateway",
)
async def customize_template(
    template_name: str,
    requirements: UserRequirements,
    session_id: str,
) -> CustomizedApp:
    """Customize a template.

    Args:
        template_name: Template chosen by the matcher.
        requirements: The user's requirements.
        session_id: Session identifier.

    Returns:
        The customized app.
    """
    logger = get_run_logger()
    logger.info(f"Customizing template {template_name}")

    async with HTTPLLMGateway(get_config()) as gateway:
        customizer = TemplateCustomizer(gateway, get_progress_store(), config=gateway.config)
        app = await customizer.customize_template(template_name, requirements, session_id)

    logger.info(f"Customization produced {len(app.files)} files")
    return app


@task(
    name="deploy_customized_app",
    description="Build and deploy a customized template",
)
async def deploy_customized_app(app: CustomizedApp, session_id: str) -> GenerationResult:
    """Build and deploy a customized app.

    Args:
        app: Output of the customizer.
        session_id: Session identifier.

    Returns:
        The generation result.
    """
    logger = get_run_logger()

    async with HTTPLLMGateway(get_config()) as gateway:
        result = await _codegen_service(gateway).deploy_customized_app(app, session_id)

    logger.info(f"Deployed customized app. Preview: {result.preview_url}")
    return result


@task(
    name="generate_app",
    description="Run the six-phase generation pipeline",
    timeout_seconds=1800,
)
async def generate_app(requirements: UserRequirements, session_id: str) -> GenerationResult:
    """Generate an app from scratch.

    Args:
        requirements: The user's requirements.
        session_id: Session identifier.

    Returns:
        The generation result.
    """
    logger = get_run_logger()
    logger.info(f"Generating {requirements.name} from scratch")

    async with HTTPLLMGateway(get_config()) as gateway:
        result = await _codegen_service(gateway).generate_app(requirements, session_id)

    failed = result.report.failed_phases
    if failed:
        logger.warning(f"Phases failed: {', '.join(failed)}")
    logger.info(f"Generated {len(result.files)} files. Preview: {result.preview_url}")
    return result
