"""Catalog of predefined application templates."""

from .registry import DEFINITIONS_DIR, TemplateRegistry, load_definition

__all__ = ["DEFINITIONS_DIR", "TemplateRegistry", "load_definition"]
