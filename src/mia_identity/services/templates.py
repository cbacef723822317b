"""Response templates loaded once at startup."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
TEMPLATE_SUFFIX = ".txt"


@dataclass(frozen=True)
class TemplateRenderer:
    """Render named response templates with a data bag.

    Unknown template names never raise: the renderer logs a warning and
    returns a placeholder embedding the name and the data.
    """

    templates: Mapping[str, Template] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_directory(cls, directory: Path | None = None) -> "TemplateRenderer":
        """Load every ``*.txt`` template in a directory."""
        templates_dir = directory or DEFAULT_TEMPLATES_DIR
        if not templates_dir.is_dir():
            logger.warning("Templates directory not found: %s", templates_dir)
            return cls()

        loaded: dict[str, Template] = {}
        for path in sorted(templates_dir.glob(f"*{TEMPLATE_SUFFIX}")):
            content = path.read_text(encoding="utf-8").rstrip("\n")
            loaded[path.stem] = Template(content)
        logger.info("Loaded %d templates from %s", len(loaded), templates_dir)
        return cls(templates=MappingProxyType(loaded))

    def render(self, name: str, data: Mapping[str, object]) -> str:
        """Render a template, falling back to a diagnostic placeholder."""
        template = self.templates.get(name)
        if template is None:
            logger.warning("Template %r not found, using fallback", name)
            payload = json.dumps(dict(data), ensure_ascii=False, default=str)
            return f"[{name}] {payload}"
        return template.safe_substitute(data)
