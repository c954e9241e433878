"""Jinja2 rendering of template directories into a virtual file set.

Provides the FileRenderer class which reads every file of a template tree,
renders text files with project-specific context data and returns the result
in memory, keyed by the file's path relative to the template root.  Files
that are not valid UTF-8 are treated as binary and passed through untouched.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from tapflow.errors import TemplateRenderError
from tapflow.models import VirtualFileSet


# ---------------------------------------------------------------------------
# FileRenderer
# ---------------------------------------------------------------------------


class FileRenderer:
    """Renders template trees with Jinja2.

    Templates reference context values as ``{{ projectName }}`` /
    ``{{ appId }}`` (or their snake_case aliases).  Referencing a name that is
    not in the context is an error rather than a silent empty string.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        # Register custom filters
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    async def render_all(
        self,
        source_dir: str | Path,
        pattern: str,
        context: dict[str, Any],
    ) -> VirtualFileSet:
        """Render every file under *source_dir* matching the glob *pattern*.

        Args:
            source_dir: Template root.
            pattern: Glob relative to *source_dir* (``"**/*"`` for the whole
                tree).
            context: Template context variables.

        Returns:
            Mapping of posix path relative to *source_dir* to rendered text,
            or to the raw bytes of binary files.

        Raises:
            TemplateRenderError: If a text file has invalid template syntax
                or uses a variable missing from *context*.
        """
        return await asyncio.to_thread(self._render_all_sync, Path(source_dir), pattern, context)

    def _render_all_sync(
        self, root: Path, pattern: str, context: dict[str, Any]
    ) -> VirtualFileSet:
        files: VirtualFileSet = {}
        for source in sorted(root.glob(pattern)):
            if not source.is_file():
                continue
            rel = source.relative_to(root).as_posix()
            raw = source.read_bytes()
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                files[rel] = raw
                continue
            try:
                files[rel] = self.render_string(text, context)
            except TemplateError as exc:
                raise TemplateRenderError(source, exc.message or str(exc)) from exc
        return files


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
