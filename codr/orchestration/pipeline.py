"""
Main pipeline orchestration for Codr.

Chooses between the two generation paths with Prefect: a matched template is
customized and deployed, anything else goes through the six-phase pipeline.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from prefect import flow, get_run_logger
from pydantic import BaseModel, Field

from ..core.config import get_config
from ..core.exceptions import PipelineError, TemplateNotFoundError, ValidationError
from ..core.logging import log_context, setup_logging
from ..models.generation import GenerationResult
from ..models.requirements import UserRequirements
from ..models.template import TemplateSelectionResult
from .tasks import customize_template, deploy_customized_app, generate_app, select_template


def new_session_id() -> str:
    """Short identifier, usable as a preview subdomain."""
    return str(uuid.uuid4())[:8]


class PipelineResult(BaseModel):
    """Result of a complete pipeline run."""

    session_id: str
    success: bool
    started_at: datetime
    completed_at: datetime

    selection: TemplateSelectionResult | None = None
    generation: GenerationResult | None = None

    error: str | None = None
    failed_stage: str | None = None

    @property
    def preview_url(self) -> str | None:
        return self.generation.preview_url if self.generation else None


@flow(
    name="codr-generate-app",
    description="Select a template or generate an app from scratch, then build and deploy it",
    version="1.0.0",
    retries=0,
)
async def generate_app_flow(
    requirements: UserRequirements,
    session_id: str | None = None,
) -> PipelineResult:
    """Execute the complete Codr pipeline.

    Args:
        requirements: The user's requirements.
        session_id: Identifier for the run; generated if omitted.

    Returns:
        PipelineResult with the selection decision and generation result.
    """
    session_id = session_id or new_session_id()
    logger = get_run_logger()
    started_at = datetime.utcnow()
    stage = "validation"

    logger.info(f"Starting Codr pipeline. Session: {session_id}")
    logger.info(f"App: {requirements.name}")

    try:
        requirements.validate_for_generation()

        stage = "selection"
        selection = await select_template(requirements)

        if selection.selected_template:
            stage = "customization"
            app = await customize_template(selection.selected_template, requirements, session_id)
            generation = await deploy_customized_app(app, session_id)
        else:
            stage = "generation"
            generation = await generate_app(requirements, session_id)

        result = PipelineResult(
            session_id=session_id,
            success=generation.success,
            started_at=started_at,
            completed_at=datetime.utcnow(),
            selection=selection,
            generation=generation,
        )

        duration = (result.completed_at - started_at).total_seconds()
        logger.info(f"Pipeline finished in {duration:.1f}s")
        logger.info(f"Preview URL: {result.preview_url}")
        return result

    except (ValidationError, TemplateNotFoundError) as e:
        logger.error(f"Pipeline failed at {stage}: {e}")
        return PipelineResult(
            session_id=session_id,
            success=False,
            started_at=started_at,
            completed_at=datetime.utcnow(),
            error=str(e),
            failed_stage=stage,
        )


class CodrPipeline:
    """High-level pipeline interface for programmatic use."""

    def __init__(self) -> None:
        """Initialize the pipeline."""
        self.config = get_config()
        setup_logging(self.config)

    async def run(
        self,
        requirements: UserRequirements,
        session_id: str | None = None,
    ) -> PipelineResult:
        """Run the complete pipeline.

        Args:
            requirements: The user's requirements.
            session_id: Identifier for the run; generated if omitted.

        Returns:
            PipelineResult with all outputs.
        """
        session_id = session_id or new_session_id()
        with log_context(session_id=session_id):
            return await generate_app_flow(requirements, session_id)


async def run_pipeline(requirements: UserRequirements | dict, session_id: str | None = None) -> PipelineResult:
    """Convenience function to run the pipeline.

    Args:
        requirements: Requirements as a model or a plain mapping.
        session_id: Identifier for the run; generated if omitted.

    Raises:
        PipelineError: If a plain mapping does not describe valid requirements.
    """
    session_id = session_id or new_session_id()
    if isinstance(requirements, dict):
        try:
            requirements = UserRequirements.model_validate(requirements)
        except ValueError as e:
            raise PipelineError(
                message=f"Invalid requirements: {e}",
                cause=e,
                stage="validation",
                session_id=session_id,
            )
    return await CodrPipeline().run(requirements, session_id)
