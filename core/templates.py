"""
Template loading and sender lookup.

Templates are read once from a YAML file of the form::

    templates:
      - email: alerts@bank.example
        name: Example Bank
        datePattern: "on (?P<date>[0-9]{8})"
        amountPattern: "(?P<amount>[0-9,.]{3,18}) on "
        vendorReferenceIdPattern: "Description: (?P<vendorReferenceId>[0-9A-Za-z]+)\\.$"

and compiled up front; the registry is read-only afterwards.
"""
from pathlib import Path
from typing import Iterable, List, Optional, Union

import yaml
from pydantic import ValidationError

from core.exceptions import PatternCompileError, TemplateLoadError
from core.extraction import CompiledTemplate
from core.logger import setup_logger
from core.schema import Template

logger = setup_logger(__name__)


def load_templates(path: Union[str, Path]) -> List[Template]:
    """
    Load template definitions from a YAML file.

    Args:
        path: YAML file with a top-level ``templates`` list

    Returns:
        Templates in file order

    Raises:
        TemplateLoadError: If the file is missing, malformed or has invalid entries
    """
    path = Path(path)
    if not path.is_file():
        raise TemplateLoadError(f"Template file not found: {path}", details={"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise TemplateLoadError(
            f"Error reading template file {path}",
            details={"path": str(path), "error": str(e)},
        )

    entries = document.get("templates") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise TemplateLoadError(
            "Template file must contain a 'templates' list",
            details={"path": str(path)},
        )

    templates = []
    for idx, entry in enumerate(entries):
        try:
            templates.append(Template.model_validate(entry))
        except ValidationError as e:
            raise TemplateLoadError(
                f"Invalid template at position {idx}",
                details={"path": str(path), "index": idx, "error": str(e)},
            )

    logger.info(f"Loaded {len(templates)} templates from {path}")
    return templates


class TemplateRegistry:
    """Resolves sender addresses to compiled templates."""

    def __init__(self, templates: Iterable[Template]):
        """
        Compile all templates.

        Raises:
            PatternCompileError: If any template pattern is malformed
        """
        compiled = []
        seen = set()
        for template in templates:
            sender = template.sender_email.casefold()
            if sender in seen:
                # First entry keeps winning; later ones are unreachable
                logger.warning(
                    f"Duplicate template sender {template.sender_email} "
                    f"({template.template_name}); first configured template wins"
                )
            seen.add(sender)
            compiled.append(CompiledTemplate(template))
        self._templates = tuple(compiled)

    def __len__(self) -> int:
        return len(self._templates)

    @property
    def templates(self):
        return self._templates

    def resolve(self, sender_email: str) -> Optional[CompiledTemplate]:
        """
        Find the template for a sender.

        Case-insensitive exact comparison, first match in configuration
        order. Returns None when no template matches.
        """
        if not sender_email:
            return None
        for compiled in self._templates:
            if compiled.sender_email.casefold() == sender_email.casefold():
                return compiled
        return None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TemplateRegistry":
        """
        Load and compile templates from YAML.

        Raises:
            TemplateLoadError: If the file cannot be loaded or a pattern is malformed
        """
        templates = load_templates(path)
        try:
            return cls(templates)
        except PatternCompileError as e:
            raise TemplateLoadError(e.message, details={"path": str(path), **e.details})
