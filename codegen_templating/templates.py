"""
Jinja2 rendering for writer snippets.

StreamWriter.write_template renders through a TemplateEngine and then emits
the result line by line, so snippets pick up the writer's indentation and
line counting.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader

from .model.naming import to_camel_case, to_pascal_case, to_snake_case


class TemplateError(Exception):
    """Raised when a snippet cannot be loaded or rendered."""

    pass


class TemplateEngine:
    """Jinja2 environment with in-memory snippets and naming filters."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Args:
            template_dir: Optional directory searched for named templates
                after the in-memory ones
        """
        self.template_dir = template_dir
        self._snippets: Dict[str, str] = {}
        self._env = self._create_environment()

    def _create_environment(self) -> Environment:
        loaders = [DictLoader(self._snippets)]
        if self.template_dir and Path(self.template_dir).is_dir():
            loaders.append(FileSystemLoader(str(self.template_dir)))

        # Output is source code, never HTML
        env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            keep_trailing_newline=False,
            lstrip_blocks=True,
        )
        env.filters.update({
            "snake_case": to_snake_case,
            "camel_case": to_camel_case,
            "pascal_case": to_pascal_case,
            "indent": indent_lines,
            "comment": comment_lines,
        })
        return env

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a snippet added with add_template, or a file in template_dir.

        Raises:
            TemplateError: If the template is missing or fails to render
        """
        try:
            return self._env.get_template(template_name).render(**context)
        except Exception as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def render_string(self, source: str, context: Dict[str, Any]) -> str:
        """Render template source text."""
        try:
            return self._env.from_string(source).render(**context)
        except Exception as e:
            raise TemplateError(f"Failed to render template string: {e}") from e

    def add_template(self, name: str, content: str) -> None:
        self._snippets[name] = content

    def template_exists(self, template_name: str) -> bool:
        if template_name in self._snippets:
            return True
        return bool(self.template_dir and (Path(self.template_dir) / template_name).is_file())


# Filters

def indent_lines(value: Any, spaces: int = 4) -> str:
    """Indent every non-blank line by a number of spaces."""
    prefix = " " * spaces
    return "\n".join(prefix + line if line.strip() else line for line in str(value).split("\n"))


def comment_lines(value: Any, prefix: str = "//") -> str:
    """Turn every non-blank line into a line comment."""
    return "\n".join(f"{prefix} {line}" if line.strip() else line for line in str(value).split("\n"))
