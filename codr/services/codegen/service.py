"""
Code Generation Service.

Drives user requirements through the six generation phases (planning,
foundation, core, styling, integration, optimization), then builds the
accumulated files, stores the built assets under the session's namespace and
reports completion.

A phase failure never aborts the run: the phase is recorded as failed in the
run report, contributes no files, and the next phase starts. The only error
that reaches the caller is a pre-flight validation failure.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from ...core.config import Config, get_config
from ...core.logging import get_logger, log_context
from ...core.types import PhaseResult, PhaseStatus, ServiceResult
from ...generation.parser import ResponseParser
from ...llm.gateway import LLMGateway
from ...llm.selection import pick_llm_for_jtbd
from ...models.generation import (
    CUSTOMIZATION_PHASE,
    PHASE_DESCRIPTIONS,
    PHASES,
    BuildRequest,
    BuildResult,
    GeneratedFile,
    GenerationResult,
    Phase,
    RunReport,
    SessionStatus,
)
from ...models.requirements import UserRequirements
from ...models.template import CustomizedApp
from ...prompts.builder import PromptBuilder
from ...storage import StorageBackend, app_asset_key
from ...storage.progress import ProgressStore, post_progress
from ..build import BuildService
from ..quality import QualityAssurance

logger = get_logger(__name__)

COMPLETE_PHASE = "complete"


def is_ui_phase(phase: Phase | str) -> bool:
    """Phases whose output comes from the structured UI generation call."""
    name = str(getattr(phase, "value", phase))
    return name == Phase.STYLING.value or "ui" in name


class CodeGenerationService:
    """Service running the phased generation pipeline for one app at a time.

    Instances hold no per-run state, so concurrent runs for different sessions
    can share one service.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        progress_store: ProgressStore,
        storage: StorageBackend,
        build_service: BuildService | None = None,
        prompt_builder: PromptBuilder | None = None,
        parser: ResponseParser | None = None,
        quality: QualityAssurance | None = None,
        config: Config | None = None,
    ) -> None:
        """Initialize the code generation service.

        Args:
            gateway: LLM gateway used by every phase.
            progress_store: Store receiving progress snapshots.
            storage: Artifact store for built assets.
            build_service: Build adapter. Defaults to the simulated build.
            prompt_builder: Phase prompt builder.
            parser: Response parser.
            quality: Quality analyzer run on the final file set.
            config: Configuration. Defaults to the environment configuration.
        """
        self.gateway = gateway
        self.progress_store = progress_store
        self.storage = storage
        self.build_service = build_service or BuildService()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()
        self.quality = quality or QualityAssurance()
        self.config = config or get_config()

    async def generate_app(
        self,
        requirements: UserRequirements,
        session_id: str,
        cancel_event: asyncio.Event | None = None,
    ) -> GenerationResult:
        """Generate, build and deploy an app.

        Args:
            requirements: The user's requirements.
            session_id: Identifier namespacing progress and stored assets.
            cancel_event: When set, phases not yet started are cancelled and
                the build is skipped. Checked before each phase.

        Returns:
            The generation result. Inspect ``success`` and ``report`` for the
            outcome; completion is posted either way.

        Raises:
            ValidationError: If the requirements lack a name or job description.
        """
        requirements.validate_for_generation()

        with log_context(session_id=session_id):
            logger.info(
                "Starting app generation",
                app_name=requirements.name,
                framework=requirements.framework,
                phases=len(PHASES),
            )

            files: list[GeneratedFile] = []
            report = RunReport()
            completed = 0

            for phase in PHASES:
                phase_result = PhaseResult(phase=phase.value)
                report.phases.append(phase_result)

                if cancel_event is not None and cancel_event.is_set():
                    phase_result.mark_cancelled()
                    report.cancelled = True
                    continue

                await post_progress(
                    self.progress_store,
                    session_id,
                    phase.value,
                    completed / len(PHASES) * 100,
                    SessionStatus.GENERATING,
                )

                phase_result.mark_running()
                outcome = await self.run_phase(requirements, phase, files)
                if outcome.success and outcome.data is not None:
                    files.extend(outcome.data)
                    phase_result.mark_completed(len(outcome.data), outcome.metadata.get("model", ""))
                    completed += 1
                    logger.info(
                        "Phase completed",
                        phase=phase.value,
                        files=len(outcome.data),
                        duration_seconds=round(phase_result.duration_seconds, 3),
                    )
                else:
                    phase_result.mark_failed(outcome.error or "unknown error")
                    logger.error("Phase failed", phase=phase.value, error=outcome.error)

            if report.cancelled:
                logger.warning("Generation cancelled", completed_phases=completed)

            return await self.finalize(
                session_id,
                files,
                report,
                framework=requirements.framework,
            )

    async def run_phase(
        self,
        requirements: UserRequirements,
        phase: Phase,
        previous_files: Sequence[GeneratedFile],
    ) -> ServiceResult[list[GeneratedFile]]:
        """Run a single phase against the LLM gateway.

        Args:
            requirements: The user's requirements.
            phase: Phase to run.
            previous_files: Files generated by earlier phases, for prompt context.

        Returns:
            ServiceResult with the phase's files, or the failure reason.
        """
        prompt = self.prompt_builder.build(requirements, phase, previous_files)
        logger.debug(
            "Running phase",
            phase=phase.value,
            description=PHASE_DESCRIPTIONS[phase],
            prompt_hash=self.prompt_builder.prompt_hash(phase),
            prompt_chars=len(prompt),
        )

        try:
            if is_ui_phase(phase):
                model = self.config.llm.ui_model
                ui_result = await self.gateway.generate_ui(model, prompt)
                if not ui_result.files:
                    logger.warning("UI generation returned no files", phase=phase.value)
                return ServiceResult.ok(self.parser.from_ui_result(ui_result, phase), model=model)

            choice = pick_llm_for_jtbd(requirements.jtbds)
            raw, used = await self.gateway.call_with_fallback(
                self.prompt_builder.system_prompt, prompt, choice
            )

            if phase == Phase.PLANNING:
                phase_files = self.parser.parse_planning(raw, phase)
            else:
                phase_files = self.parser.parse_code(raw, phase)
            return ServiceResult.ok(phase_files, model=used.model)

        except Exception as e:
            return ServiceResult.fail(str(e), phase=phase.value)

    async def deploy_customized_app(self, app: CustomizedApp, session_id: str) -> GenerationResult:
        """Build and deploy an app produced by the template customizer.

        Its files are tagged with the ``customization`` phase.

        Args:
            app: The customized app.
            session_id: Identifier namespacing progress and stored assets.

        Returns:
            The generation result for the customized app.
        """
        with log_context(session_id=session_id):
            files = [
                GeneratedFile(path=path, content=content, phase=CUSTOMIZATION_PHASE)
                for path, content in app.files.items()
            ]
            phase_result = PhaseResult(
                phase=CUSTOMIZATION_PHASE,
                status=PhaseStatus.COMPLETED,
                file_count=len(files),
            )
            # Customized apps always ship a Vite project
            return await self.finalize(
                session_id,
                files,
                RunReport(phases=[phase_result]),
                framework="vite",
                dependencies=app.dependencies(),
                template=app.metadata.template,
            )

    async def finalize(
        self,
        session_id: str,
        files: list[GeneratedFile],
        report: RunReport,
        framework: str,
        dependencies: dict[str, str] | None = None,
        template: str | None = None,
    ) -> GenerationResult:
        """Build, deploy, assess and report completion of a run.

        The completion snapshot is posted exactly once, whatever the outcome.
        """
        start_time = time.perf_counter()

        if report.cancelled:
            build_result = BuildResult.skipped("Generation cancelled")
        else:
            build_result = await self.build_service.build(BuildRequest(
                session_id=session_id,
                files=files,
                framework=framework,
                dependencies=dependencies or {},
            ))

        if build_result.success:
            await self._store_assets(session_id, build_result)
        else:
            logger.warning("Build did not succeed", errors=build_result.errors)

        result = GenerationResult(
            session_id=session_id,
            files=files,
            preview_url=self.config.deploy.preview_url(session_id),
            deployment_id=session_id,
            build_result=build_result,
            report=report,
            template=template,
        )
        result.quality = self.quality.analyze(result.latest_files())

        await post_progress(
            self.progress_store,
            session_id,
            COMPLETE_PHASE,
            100,
            SessionStatus.COMPLETED,
            result=result.summary(),
        )

        logger.info(
            "App generation finished",
            success=result.success,
            files=len(files),
            failed_phases=report.failed_phases,
            preview_url=result.preview_url,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        return result

    async def _store_assets(self, session_id: str, build_result: BuildResult) -> None:
        for asset in build_result.assets:
            key = app_asset_key(session_id, asset.path)
            try:
                await self.storage.put_text(key, asset.content, content_type=asset.content_type)
            except Exception as e:
                logger.error("Asset upload failed", key=key, error=str(e))
                build_result.warnings.append(f"Asset upload failed: {asset.path}")
