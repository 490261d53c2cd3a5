"""Interpretation of raw LLM output as generated files."""

from .parser import (
    PLANNING_NOTES_FILE,
    PLANNING_STRUCTURE_FILE,
    ParsedResponse,
    RawText,
    ResponseParser,
    SingleNote,
    StructuredFiles,
    classify,
)

__all__ = [
    "PLANNING_NOTES_FILE",
    "PLANNING_STRUCTURE_FILE",
    "ParsedResponse",
    "RawText",
    "ResponseParser",
    "SingleNote",
    "StructuredFiles",
    "classify",
]
