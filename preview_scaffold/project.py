"""Project resolution for widget-preview.

Turns the positional path arguments of a command (plus the working
directory it was invoked from) into a validated ``FlutterProject``.
Resolution is pure validation: nothing on disk is created or modified.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict

from .errors import InvalidPathError, MultipleProjectPathsError, NotAProjectError

PUBSPEC_FILE = "pubspec.yaml"
DART_TOOL_DIR = ".dart_tool"
SCAFFOLD_DIR_NAME = "widget_preview_scaffold"


class FlutterProject(BaseModel):
    """A validated Flutter project root.

    Immutable for the lifetime of a command invocation; every path the tool
    touches is derived from ``root``.
    """

    model_config = ConfigDict(frozen=True)

    root: Path

    @property
    def pubspec_path(self) -> Path:
        return self.root / PUBSPEC_FILE

    @property
    def lib_dir(self) -> Path:
        """Conventional source directory scanned for previews."""
        return self.root / "lib"

    @property
    def dart_tool_dir(self) -> Path:
        return self.root / DART_TOOL_DIR

    @property
    def scaffold_dir(self) -> Path:
        """``<root>/.dart_tool/widget_preview_scaffold``."""
        return self.dart_tool_dir / SCAFFOLD_DIR_NAME


def resolve_project(paths: Sequence[str], cwd: str | Path) -> FlutterProject:
    """Validate the command's path arguments and return the project root.

    Args:
        paths: Positional path arguments exactly as supplied on the command
            line.  At most one is allowed.
        cwd: Directory the command was invoked from.  Used as the project
            root when *paths* is empty and as the base for relative paths.

    Raises:
        MultipleProjectPathsError: More than one path was supplied.
        InvalidPathError: The supplied path is not an existing directory.
        NotAProjectError: The effective root has no ``pubspec.yaml``.
    """
    if len(paths) > 1:
        raise MultipleProjectPathsError(list(paths))

    base = Path(cwd)
    if paths:
        candidate = Path(paths[0])
        if not candidate.is_absolute():
            candidate = base / candidate
        if not candidate.is_dir():
            raise InvalidPathError(paths[0])
        root = candidate
    else:
        root = base

    root = root.resolve()
    if not (root / PUBSPEC_FILE).is_file():
        raise NotAProjectError(root)
    return FlutterProject(root=root)


def read_package_name(project: FlutterProject) -> str:
    """Return the ``name`` declared in the project's ``pubspec.yaml``.

    The name is what generated ``package:`` imports are rooted at.

    Raises:
        NotAProjectError: The pubspec cannot be read, is not valid YAML, or
            does not declare a string ``name``.
    """
    try:
        raw = project.pubspec_path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except (OSError, yaml.YAMLError) as exc:
        raise NotAProjectError(
            project.root, reason=f"Unable to read {PUBSPEC_FILE}: {exc}"
        ) from exc

    name = data.get("name") if isinstance(data, dict) else None
    if not isinstance(name, str) or not name.strip():
        raise NotAProjectError(
            project.root, reason=f"{PUBSPEC_FILE} does not declare a package name."
        )
    return name.strip()
