"""Widget preview scaffold -- the throwaway Flutter harness project.

This module renders the static scaffold from Jinja2 templates, keeps the
generated ``lib/src/generated_preview.dart`` up to date, and removes the
whole directory on request.

Quick usage::

    from preview_scaffold.scaffolder import PreviewCodeGenerator, ScaffoldManager

    manager = ScaffoldManager(project)
    await manager.ensure(package_name="my_app")
    content = PreviewCodeGenerator("my_app").generate(declarations)
    await manager.write_generated(content)
"""

from preview_scaffold.scaffolder.codegen import (
    GENERATED_PREVIEW_FILE_PATH,
    PreviewCodeGenerator,
    write_generated_file,
)
from preview_scaffold.scaffolder.manager import ScaffoldManager
from preview_scaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "GENERATED_PREVIEW_FILE_PATH",
    "PreviewCodeGenerator",
    "ScaffoldManager",
    "TemplateRenderer",
    "write_generated_file",
]
