"""Prompt assembly for the language-model layer using Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import jinja2
import structlog

logger = structlog.get_logger()

# Template directory is relative to this module
TEMPLATES_DIR = Path(__file__).parent / "templates"

CONTEXT_MARKER = "REPOSITORY CONTEXT:"

DEFAULT_DIAGRAM_FOCUSES = (
    "High-level system architecture",
    "Main data flow through the system",
    "Module and package dependencies",
)


class DiagramGenerator(Protocol):
    """Boundary to the model that turns a prompt into diagram markup."""

    def generate(self, prompt: str) -> str:
        """Return raw diagram code for ``prompt``."""
        ...


class PromptRenderer:
    """Renders instruction templates and attaches a digest.

    The digest is treated as opaque text and appended after the rendered
    instructions, preceded by ``REPOSITORY CONTEXT:``.

    Example:
        >>> renderer = PromptRenderer()
        >>> prompt = renderer.build_prompt("diagram", digest="# Repository Context: demo")
        >>> prompt.endswith("# Repository Context: demo")
        True
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        """Initialize the renderer.

        Args:
            templates_dir: Directory containing templates.
                          Defaults to built-in templates.
        """
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.templates_dir)),
            autoescape=False,  # We're generating markdown, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )

    def render(self, template_name: str, **context: Any) -> str:
        """Render a template with the given context.

        Raises:
            jinja2.TemplateNotFound: If template doesn't exist.
            jinja2.UndefinedError: If required variable is missing.
        """
        log = logger.bind(template=template_name)
        log.debug("Rendering prompt template")

        template = self.env.get_template(f"{template_name}.md")
        rendered = template.render(**context)

        log.debug("Template rendered", length=len(rendered))
        return rendered

    def build_prompt(self, template_name: str, *, digest: str, **context: Any) -> str:
        """Render instructions and append the repository digest."""
        if template_name == "diagram":
            focuses = list(context.pop("focuses", DEFAULT_DIAGRAM_FOCUSES))
            context.setdefault("diagram_count", len(focuses))
            context.setdefault("max_nodes", 50)
            context["focuses"] = focuses
        elif template_name == "summary":
            context.setdefault("focus", "")

        instructions = self.render(template_name, **context).rstrip()
        return f"{instructions}\n\n{CONTEXT_MARKER}\n{digest}"

    def list_templates(self) -> list[str]:
        """List available template names (without .md extension)."""
        if not self.templates_dir.exists():
            return []
        return sorted(path.stem for path in self.templates_dir.glob("*.md"))
