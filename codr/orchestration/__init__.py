"""Orchestration module for Codr."""

from .pipeline import CodrPipeline, PipelineResult, generate_app_flow, run_pipeline
from .tasks import customize_template, deploy_customized_app, generate_app, select_template

__all__ = [
    "CodrPipeline",
    "PipelineResult",
    "generate_app_flow",
    "run_pipeline",
    "customize_template",
    "deploy_customized_app",
    "generate_app",
    "select_template",
]
