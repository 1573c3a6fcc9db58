"""Jinja2 template rendering for the preview scaffold.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``preview_scaffold/scaffolder/templates/`` directory and renders them with
project-specific context data.  Supports single-file rendering and batch
tree rendering.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

TEMPLATE_SUFFIX = ".j2"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for the scaffold sub-project.

    The renderer discovers ``.j2`` template files under a configurable
    template directory.  Templates are rendered with a context dictionary
    that carries the previewed project's package name and location.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pascal_case"] = _pascal_case_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"widget_preview_scaffold/pubspec.yaml.j2"``).
            context: Dictionary of variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- File-based rendering ----------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory and use forward
        slashes, which is what the Jinja2 loader expects.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob(f"*{TEMPLATE_SUFFIX}")
        )

    def output_names(self, template_prefix: str) -> list[str]:
        """Relative output paths produced by :meth:`render_tree` for *template_prefix*."""
        names = []
        for key in self.list_templates(template_prefix):
            rel = key[len(template_prefix) + 1:]
            names.append(rel[: -len(TEMPLATE_SUFFIX)])
        return names

    def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        context: dict[str, Any],
        *,
        only: set[str] | None = None,
    ) -> list[Path]:
        """Render every ``*.j2`` file under *template_prefix* to *output_dir*.

        The directory structure is preserved: a template at
        ``widget_preview_scaffold/lib/main.dart.j2`` rendered with
        ``template_prefix="widget_preview_scaffold"`` writes to
        ``<output_dir>/lib/main.dart``.

        Args:
            template_prefix: Subdirectory inside the template root to scan.
            output_dir: Target directory where rendered files are written.
            context: Template context variables.
            only: Optional set of relative output names; templates producing
                any other file are skipped.

        Returns:
            List of written file paths.
        """
        written: list[Path] = []
        out_base = Path(output_dir)

        for template_key, output_name in zip(
            self.list_templates(template_prefix), self.output_names(template_prefix)
        ):
            if only is not None and output_name not in only:
                continue
            output_file = out_base / output_name
            _write_file(output_file, self.render(template_key, context))
            written.append(output_file)

        return written



# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
