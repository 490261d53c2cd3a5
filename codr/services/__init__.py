"""Services package for Codr."""

from .build import BuildService
from .codegen import CodeGenerationService
from .quality import QualityAssurance
from .template_customizer import TemplateCustomizer
from .template_matcher import TemplateMatcher

__all__ = [
    "BuildService",
    "CodeGenerationService",
    "QualityAssurance",
    "TemplateCustomizer",
    "TemplateMatcher",
]
