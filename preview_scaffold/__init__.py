"""widget-preview -- render Flutter widgets annotated with ``@Preview()``.

The tool validates a Flutter project, materializes a throwaway scaffold app
under ``.dart_tool/widget_preview_scaffold``, generates a Dart library that
collects every preview in the project, resolves the scaffold's dependencies
with ``pub get``, and keeps that library current while the previews run.
"""

from preview_scaffold.command import CommandState, PreviewSession, WidgetPreviewCommand, main
from preview_scaffold.config import Config
from preview_scaffold.errors import WidgetPreviewError
from preview_scaffold.project import FlutterProject, resolve_project

__version__ = "0.1.0"

__all__ = [
    "CommandState",
    "Config",
    "FlutterProject",
    "PreviewSession",
    "WidgetPreviewCommand",
    "WidgetPreviewError",
    "main",
    "resolve_project",
]
