"""
Template registry.

Template definitions live as YAML files under ``definitions/``, one file per
template, named after the template. The registry loads the whole catalog once
and keeps it immutable and ordered by file name; that order is the tie-break
order used when matching.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from types import MappingProxyType

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import TemplateNotFoundError
from ..core.logging import get_logger
from ..models.template import TemplateDefinition

logger = get_logger(__name__)

DEFINITIONS_DIR = Path(__file__).parent / "definitions"


def load_definition(path: Path) -> TemplateDefinition:
    """Load a single template definition from a YAML file.

    Raises:
        TemplateNotFoundError: If the file is missing, is not a mapping, or
            does not validate.
    """
    name = path.stem
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise TemplateNotFoundError(
            message=f"Failed to load template definition: {e}",
            template_name=name,
            cause=e,
        )
    if not isinstance(data, dict):
        raise TemplateNotFoundError(
            message="Template definition is not a mapping",
            template_name=name,
            context={"path": str(path)},
        )
    try:
        return TemplateDefinition.model_validate(data)
    except PydanticValidationError as e:
        raise TemplateNotFoundError(
            message=f"Invalid template definition: {e.error_count()} errors",
            template_name=name,
            context={"path": str(path)},
            cause=e,
        )


class TemplateRegistry:
    """Immutable catalog of template definitions keyed by name."""

    def __init__(
        self,
        templates: Iterable[TemplateDefinition],
        load_errors: dict[str, str] | None = None,
    ) -> None:
        catalog: dict[str, TemplateDefinition] = {}
        for template in templates:
            catalog[template.name] = template
        self._templates = MappingProxyType(catalog)
        self._load_errors = MappingProxyType(dict(load_errors or {}))

    @classmethod
    def load(cls, directory: Path = DEFINITIONS_DIR) -> TemplateRegistry:
        """Load every ``*.yaml`` definition in a directory.

        Unparsable files are skipped and remembered, so that asking for them by
        name reports why they are unavailable.
        """
        templates: list[TemplateDefinition] = []
        errors: dict[str, str] = {}
        for path in sorted(directory.glob("*.yaml")):
            try:
                templates.append(load_definition(path))
            except TemplateNotFoundError as e:
                logger.warning("Skipping template definition", path=str(path), error=str(e))
                errors[path.stem] = str(e)

        logger.debug("Template catalog loaded", directory=str(directory), templates=len(templates))
        return cls(templates, errors)

    @classmethod
    def default(cls) -> TemplateRegistry:
        """The catalog shipped with the package."""
        return cls.load(DEFINITIONS_DIR)

    def get(self, name: str) -> TemplateDefinition:
        """Get a template definition by name.

        Raises:
            TemplateNotFoundError: If no valid definition exists for the name.
        """
        template = self._templates.get(name)
        if template is not None:
            return template
        if name in self._load_errors:
            raise TemplateNotFoundError(
                message=f"Failed to load template definition: {self._load_errors[name]}",
                template_name=name,
            )
        raise TemplateNotFoundError(
            message="No such template",
            template_name=name,
            context={"available": list(self._templates)},
        )

    def list_templates(self) -> list[TemplateDefinition]:
        return list(self._templates.values())

    def names(self) -> list[str]:
        return list(self._templates)

    def by_category(self, category: str) -> list[TemplateDefinition]:
        return [t for t in self._templates.values() if t.category == category]

    def by_framework(self, framework: str) -> list[TemplateDefinition]:
        return [t for t in self._templates.values() if t.framework == framework]

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __iter__(self) -> Iterator[TemplateDefinition]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)
