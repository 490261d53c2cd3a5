"""Unit tests for core models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from codr.core.exceptions import (
    LLMError,
    PipelineError,
    ProviderNotConfiguredError,
    TemplateNotFoundError,
    ValidationError,
)
from codr.core.types import PhaseResult, PhaseStatus, ServiceResult
from codr.models import (
    BuildAsset,
    BuildResult,
    FallbackChoice,
    GeneratedFile,
    GenerationResult,
    LLMChoice,
    ProgressSnapshot,
    Provider,
    RunReport,
    SessionStatus,
    UserRequirements,
    VisualStyle,
)


class TestRequirementModels:
    """Tests for requirement models."""

    def test_requirements_are_frozen(self, journal_requirements):
        """Requirements cannot be changed once built."""
        with pytest.raises(PydanticValidationError):
            journal_requirements.name = "Other"

    def test_blank_name_rejected(self):
        requirements = UserRequirements(name="  ", jtbds="Track moods")
        with pytest.raises(ValidationError) as exc_info:
            requirements.validate_for_generation()
        assert exc_info.value.field_name == "name"
        assert "Validation failed for 'name'" in str(exc_info.value)

    def test_blank_jtbds_rejected(self):
        requirements = UserRequirements(name="Mood", jtbds="")
        with pytest.raises(ValidationError) as exc_info:
            requirements.validate_for_generation()
        assert exc_info.value.field_name == "jtbds"

    def test_declared_framework_wins(self):
        requirements = UserRequirements(
            name="Mood",
            jtbds="Track moods",
            visual_style=VisualStyle(vibe="playful"),
            frontend_framework="vite",
        )
        assert requirements.framework == "vite"

    @pytest.mark.parametrize(
        "style,expected",
        [
            (VisualStyle(vibe="playful"), "react"),
            (VisualStyle(motion="scroll"), "react"),
            (VisualStyle(vibe="minimal", motion="subtle"), "vite"),
        ],
    )
    def test_inferred_framework(self, style, expected):
        requirements = UserRequirements(name="Mood", jtbds="Track moods", visual_style=style)
        assert requirements.framework == expected

    def test_style_get(self):
        style = VisualStyle(theme="dark", screenshots=["a.png", "b.png"])
        assert style.get("theme") == "dark"
        assert style.get("screenshots") == "a.png, b.png"
        assert style.get("favorite_app") == ""
        assert style.get("unknown") == ""


class TestGenerationModels:
    """Tests for generation result models."""

    def test_latest_files_supersede_earlier_writes(self):
        """Later writes to a path replace earlier ones in first-seen order."""
        result = GenerationResult(
            session_id="s1",
            files=[
                GeneratedFile(path="index.html", content="v1", phase="foundation"),
                GeneratedFile(path="src/main.js", content="main", phase="core"),
                GeneratedFile(path="index.html", content="v2", phase="styling"),
            ],
        )
        latest = result.latest_files()
        assert [f.path for f in latest] == ["index.html", "src/main.js"]
        assert latest[0].content == "v2"
        assert len(result.files_for_phase("core")) == 1

    def test_customization_tag_accepted(self):
        result = GenerationResult(
            session_id="s1",
            files=[GeneratedFile(path="src/App.tsx", content="", phase="customization")],
        )
        assert result.files_for_phase("customization")

    def test_unknown_phase_tag_rejected(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            GenerationResult(
                session_id="s1",
                files=[GeneratedFile(path="package.json", content="{}", phase="build")],
            )
        assert "Unknown phase tag 'build'" in str(exc_info.value)

    def test_success_follows_build(self):
        assert not GenerationResult(session_id="s1").success
        built = GenerationResult(session_id="s1", build_result=BuildResult(success=True, build_id="b"))
        assert built.success
        skipped = GenerationResult(session_id="s1", build_result=BuildResult.skipped("No files to build"))
        assert not skipped.success
        assert skipped.build_result.errors == ["No files to build"]

    def test_summary(self):
        report = RunReport()
        done = PhaseResult(phase="planning")
        done.mark_running()
        done.mark_completed(file_count=1, model_used="claude-3.7-sonnet")
        failed = PhaseResult(phase="foundation")
        failed.mark_running()
        failed.mark_failed("boom")
        report.phases.extend([done, failed])

        result = GenerationResult(
            session_id="s1",
            files=[GeneratedFile(path="README.md", content="# App", phase="planning")],
            build_result=BuildResult(
                success=True,
                build_id="build_1",
                assets=[BuildAsset(path="index.html", content="<html>", type="html")],
            ),
            report=report,
        )
        summary = result.summary()
        assert summary["success"] is True
        assert summary["file_count"] == 1
        assert summary["succeeded_phases"] == ["planning"]
        assert summary["failed_phases"] == ["foundation"]
        assert "assets" not in summary["build"]
        assert summary["quality_score"] is None
        assert report.get("foundation").error_message == "boom"
        assert report.get("styling") is None

    @pytest.mark.parametrize(
        "asset_type,content_type",
        [("html", "text/html"), ("js", "application/javascript"), ("css", "text/css")],
    )
    def test_asset_content_type(self, asset_type, content_type):
        asset = BuildAsset(path=f"x.{asset_type}", content="", type=asset_type)
        assert asset.content_type == content_type

    def test_fallback_choice(self):
        choice = LLMChoice(
            provider=Provider.ANTHROPIC,
            model="claude-3.7-sonnet",
            reason="Planning",
            fallback=FallbackChoice(provider=Provider.OPENAI, model="gpt-5-mini", reason="Budget"),
        )
        fallback = choice.fallback_choice()
        assert fallback.provider == Provider.OPENAI
        assert fallback.model == "gpt-5-mini"
        assert fallback.fallback_choice() is None

    def test_progress_bounds(self):
        with pytest.raises(PydanticValidationError):
            ProgressSnapshot(phase="core", progress=120, status=SessionStatus.GENERATING)


class TestResultTypes:
    """Tests for phase and service result wrappers."""

    def test_phase_lifecycle(self):
        phase = PhaseResult(phase="core")
        assert phase.status == PhaseStatus.PENDING
        phase.mark_running()
        assert phase.started_at is not None
        phase.mark_completed(file_count=3, model_used="gpt-5")
        assert phase.succeeded
        assert phase.file_count == 3
        assert phase.duration_seconds >= 0

    def test_phase_cancelled(self):
        phase = PhaseResult(phase="styling")
        phase.mark_cancelled()
        assert phase.status == PhaseStatus.CANCELLED
        assert not phase.succeeded

    def test_service_result(self):
        ok = ServiceResult.ok([1, 2], phase="core")
        assert ok.success and ok.data == [1, 2]
        assert ok.metadata == {"phase": "core"}
        failed = ServiceResult.fail("nope")
        assert not failed.success and failed.error == "nope"
        warned = ServiceResult.with_warnings("x", ["careful"])
        assert warned.success and warned.warnings == ["careful"]


class TestExceptions:
    """Tests for exception formatting."""

    def test_llm_error(self):
        error = LLMError(message="HTTP 500", operation="complete", provider="openai", model="gpt-5", retryable=True)
        assert error.service_name == "llm"
        assert str(error) == "[openai:gpt-5] [llm.complete] (retryable): HTTP 500"

    def test_provider_not_configured(self):
        error = ProviderNotConfiguredError(message="missing", provider="google", credential="GEMINI_API_KEY")
        assert str(error) == "Provider 'google' is not configured: missing GEMINI_API_KEY"
        assert isinstance(error, LLMError)

    def test_template_not_found(self):
        error = TemplateNotFoundError(message="Unknown template", template_name="nope-app")
        assert str(error) == "Template 'nope-app': Unknown template"

    def test_pipeline_error_with_context(self):
        error = PipelineError(message="Cancelled", context={"phase": 2}, stage="generation", session_id="s1")
        assert str(error) == (
            "Pipeline error at stage 'generation' (session: s1): Cancelled | context: {'phase': 2}"
        )
