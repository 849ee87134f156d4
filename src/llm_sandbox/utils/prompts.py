"""
Prompt template loading and interpolation.

Templates are Markdown files in the prompts directory. Placeholders use the
``{{NAME}}`` syntax, where NAME is made of word characters.
"""

import re
from pathlib import Path

from llm_sandbox.utils.errors import MissingVariableError, TemplateNotFoundError
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")
_TEMPLATE_NAME_PATTERN = re.compile(r"^[\w-]+$")


def extract_variables(template: str) -> list[str]:
    """Return the distinct placeholder names of a template, in order of first use."""
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template)))


def interpolate(template: str, variables: dict[str, str]) -> str:
    """
    Replace every ``{{NAME}}`` with ``variables[NAME]``.

    Raises:
        MissingVariableError: If the template references a name not in ``variables``
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in variables:
            raise MissingVariableError(key)
        return variables[key]

    return PLACEHOLDER_PATTERN.sub(replace, template)


class TemplateStore:
    """Read-only access to the templates of one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def list_templates(self) -> list[str]:
        if not self.directory.is_dir():
            logger.warning(
                "Prompts directory not found",
                extra={"prompts_dir": str(self.directory)},
            )
            return []
        return sorted(
            path.stem
            for path in self.directory.glob("*.md")
            if path.name != "README.md" and path.is_file()
        )

    def load_template(self, name: str) -> str:
        """
        Load a template's raw text.

        Args:
            name: Template name, i.e. the file name without ``.md``

        Returns:
            Template content

        Raises:
            TemplateNotFoundError: If the name is invalid or no such file exists
        """
        if not _TEMPLATE_NAME_PATTERN.match(name):
            raise TemplateNotFoundError(name)

        template_file = self.directory / f"{name}.md"
        try:
            content = template_file.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError) as exc:
            logger.warning(f"Template file {template_file} not found")
            raise TemplateNotFoundError(name) from exc

        logger.debug(f"Loaded template {name} from {template_file}")
        return content

    def load_and_interpolate(self, name: str, variables: dict[str, str]) -> str:
        return interpolate(self.load_template(name), variables)
