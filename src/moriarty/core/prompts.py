"""Prompt management with Jinja2 templates."""

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from moriarty.core.logging import get_logger

logger = get_logger(__name__)

PROMPT_DIR = Path(__file__).parent.parent / "prompts"


class PromptManager:
    """Render LLM prompts from Jinja2 templates.

    Templates are loaded from ``moriarty/prompts`` unless another directory
    is given. Used by the risk analyst and the report writer to render system
    and user prompts from vulnerability data.
    """

    def __init__(self, template_dir: Optional[Path] = None) -> None:
        self.template_dir = template_dir or PROMPT_DIR

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, context: Optional[dict[str, Any]] = None) -> str:
        """Render a template file with context variables.

        Args:
            template_name: Filename in the template directory (e.g. "risk_assessment.j2")
            context: Variables to substitute into the template

        Returns:
            Rendered prompt string
        """
        try:
            template = self.env.get_template(template_name)
            return template.render(**(context or {})).strip()
        except TemplateNotFound:
            logger.error("template_not_found", template_name=template_name)
            raise

    def list_templates(self) -> list[str]:
        """List all available template files."""
        return self.env.list_templates()
