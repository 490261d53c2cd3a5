"""
Response parser.

Raw LLM output is first classified into one of three shapes, then turned into
GeneratedFile entries by a per-phase policy:

- ``StructuredFiles``: the text is a JSON array, one entry per file.
- ``SingleNote``: the text is JSON, but not an array.
- ``RawText``: the text is not JSON at all.

Parsing never raises; every shape has a fallback file.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from ..core.logging import get_logger
from ..llm.gateway import UIGenerationResult
from ..models.generation import GeneratedFile, Phase

logger = get_logger(__name__)

PLANNING_STRUCTURE_FILE = "project-structure.json"
PLANNING_NOTES_FILE = "planning-notes.txt"

_FENCE_RE = re.compile(r"^```[\w-]*\s*\n(.*)\n```$", re.DOTALL)


@dataclass(frozen=True)
class StructuredFiles:
    entries: list[Any]


@dataclass(frozen=True)
class SingleNote:
    data: Any


@dataclass(frozen=True)
class RawText:
    text: str


ParsedResponse = Union[StructuredFiles, SingleNote, RawText]


def _unfence(text: str) -> str:
    match = _FENCE_RE.match(text.strip())
    return match.group(1) if match else text


def classify(raw: str) -> ParsedResponse:
    """Classify raw model output by its JSON shape.

    A single Markdown code fence around the payload is ignored.
    """
    try:
        data = json.loads(_unfence(raw))
    except ValueError:
        return RawText(raw)
    if isinstance(data, list):
        return StructuredFiles(data)
    return SingleNote(data)


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


class ResponseParser:
    """Turns LLM responses into generated files."""

    def parse(self, raw: str, phase: Phase | str) -> list[GeneratedFile]:
        """Parse a text response using the policy for its phase."""
        if str(getattr(phase, "value", phase)) == Phase.PLANNING.value:
            return self.parse_planning(raw)
        return self.parse_code(raw, phase)

    def parse_planning(self, raw: str, phase: Phase | str = Phase.PLANNING) -> list[GeneratedFile]:
        """Wrap a planning response as a single synthetic file.

        JSON responses become ``project-structure.json`` re-serialized with
        2-space indentation; anything else is kept verbatim in ``planning-notes.txt``.
        """
        tag = getattr(phase, "value", phase)
        parsed = classify(raw)
        if isinstance(parsed, RawText):
            logger.debug("Planning response is not JSON", chars=len(raw))
            return [GeneratedFile(path=PLANNING_NOTES_FILE, content=raw, phase=tag)]
        data = parsed.entries if isinstance(parsed, StructuredFiles) else parsed.data
        return [GeneratedFile(path=PLANNING_STRUCTURE_FILE, content=_to_json(data), phase=tag)]

    def parse_code(self, raw: str, phase: Phase | str) -> list[GeneratedFile]:
        """Parse a JSON file list, falling back to one file holding the raw text."""
        tag = getattr(phase, "value", phase)
        parsed = classify(raw)
        if isinstance(parsed, StructuredFiles):
            return [self._entry_to_file(entry, tag) for entry in parsed.entries]

        logger.debug("Code response is not a file list", phase=tag, shape=type(parsed).__name__)
        return [GeneratedFile(path=f"phase-{tag}.tsx", content=raw, phase=tag)]

    @staticmethod
    def _entry_to_file(entry: Any, phase: str) -> GeneratedFile:
        path = f"phase-{phase}.txt"
        if isinstance(entry, dict):
            if isinstance(entry.get("path"), str) and entry["path"]:
                path = entry["path"]
            content = entry.get("content")
            if isinstance(content, str):
                return GeneratedFile(path=path, content=content, phase=phase)
            if content is not None:
                return GeneratedFile(path=path, content=_to_json(content), phase=phase)
        if isinstance(entry, str):
            return GeneratedFile(path=path, content=entry, phase=phase)
        return GeneratedFile(path=path, content=_to_json(entry), phase=phase)

    @staticmethod
    def from_ui_result(result: UIGenerationResult, phase: Phase | str) -> list[GeneratedFile]:
        """Tag the files returned by the UI generation entry point."""
        tag = getattr(phase, "value", phase)
        return [GeneratedFile(path=f.path, content=f.content, phase=tag) for f in result.files]
