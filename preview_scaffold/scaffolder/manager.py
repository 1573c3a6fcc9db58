"""Lifecycle management for the widget preview scaffold.

The scaffold is a throwaway Flutter sub-project living at
``<root>/.dart_tool/widget_preview_scaffold``.  It moves between exactly two
states: absent and present.  ``ensure`` takes it from absent to present (or
leaves a present scaffold alone), ``remove`` takes it back to absent.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from ..errors import ScaffoldError
from ..project import FlutterProject
from ..utils import console
from .codegen import GENERATED_PREVIEW_FILE_PATH, write_generated_file
from .templates import TemplateRenderer

TEMPLATE_PREFIX = "widget_preview_scaffold"

DART_SDK_CONSTRAINT = ">=3.4.0 <4.0.0"

_STAGING_SUFFIX = ".staging"


class ScaffoldManager:
    """Creates, refreshes, and removes one project's preview scaffold.

    All mutations of the scaffold directory (creating it, deleting it, and
    replacing the generated preview file) are serialized through ``lock``,
    so a regeneration triggered by a file change can never interleave with
    another one or with a removal.
    """

    def __init__(
        self,
        project: FlutterProject,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.project = project
        self.renderer = renderer or TemplateRenderer()
        self.lock = asyncio.Lock()

    # -- Paths -------------------------------------------------------------

    @property
    def scaffold_dir(self) -> Path:
        return self.project.scaffold_dir

    @property
    def generated_file_path(self) -> Path:
        return self.scaffold_dir / GENERATED_PREVIEW_FILE_PATH

    def exists(self) -> bool:
        return self.scaffold_dir.is_dir()

    def template_files(self) -> list[str]:
        """Relative paths of the static files every scaffold must contain."""
        return self.renderer.output_names(TEMPLATE_PREFIX)

    # -- Public API --------------------------------------------------------

    async def ensure(self, package_name: str) -> Path:
        """Create the scaffold for package *package_name* if absent and return its path.

        A scaffold left by a previous run is reused as is; only static
        template files that have gone missing are rendered again.

        Raises:
            ScaffoldError: The scaffold could not be created.
        """
        async with self.lock:
            return await asyncio.to_thread(self._ensure_sync, package_name)

    async def remove(self) -> bool:
        """Delete the scaffold if present.

        Returns:
            ``True`` if a scaffold was removed, ``False`` if there was none.

        Raises:
            ScaffoldError: The directory exists but could not be deleted.
        """
        async with self.lock:
            return await asyncio.to_thread(self._remove_sync)

    async def write_generated(self, content: str) -> Path:
        """Replace the generated preview file under the scaffold lock."""
        async with self.lock:
            return await asyncio.to_thread(write_generated_file, self.scaffold_dir, content)

    # -- Internals ---------------------------------------------------------

    def _context(self, package_name: str) -> dict[str, Any]:
        relative = os.path.relpath(self.project.root, self.scaffold_dir)
        return {
            "package_name": package_name,
            "project_relative_path": Path(relative).as_posix(),
            "sdk_constraint": DART_SDK_CONSTRAINT,
        }

    def _ensure_sync(self, package_name: str) -> Path:
        scaffold = self.scaffold_dir
        context = self._context(package_name)

        if scaffold.is_dir():
            missing = {
                name for name in self.template_files() if not (scaffold / name).is_file()
            }
            if missing:
                console.print(
                    f"[yellow]Restoring {len(missing)} missing scaffold file(s)[/yellow] "
                    f"in {scaffold}"
                )
                try:
                    self.renderer.render_tree(TEMPLATE_PREFIX, scaffold, context, only=missing)
                except (OSError, TemplateError) as exc:
                    raise ScaffoldError(
                        f"Failed to restore scaffold files in {scaffold}: {exc}", path=scaffold
                    ) from exc
            return scaffold

        if scaffold.exists():
            raise ScaffoldError(
                f"{scaffold} exists but is not a directory. Remove it and try again.",
                path=scaffold,
            )

        console.print(f"[cyan]Creating widget preview scaffold[/cyan] in {scaffold}...")

        # Render into a sibling staging directory, then rename into place, so
        # the final path only ever holds a complete scaffold.
        staging: Path | None = None
        try:
            scaffold.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(
                tempfile.mkdtemp(
                    prefix=f"{scaffold.name}.", suffix=_STAGING_SUFFIX, dir=scaffold.parent
                )
            )
            self.renderer.render_tree(TEMPLATE_PREFIX, staging, context)
            os.rename(staging, scaffold)
            staging = None
        except (OSError, TemplateError) as exc:
            raise ScaffoldError(
                f"Failed to create scaffold at {scaffold}: {exc}", path=scaffold
            ) from exc
        finally:
            if staging is not None:
                shutil.rmtree(staging, ignore_errors=True)

        return scaffold

    def _remove_sync(self) -> bool:
        scaffold = self.scaffold_dir
        try:
            if scaffold.parent.is_dir():
                for leftover in scaffold.parent.glob(f"{scaffold.name}.*{_STAGING_SUFFIX}"):
                    shutil.rmtree(leftover)
            if not scaffold.exists():
                return False
            console.print(f"[yellow]Removing widget preview scaffold[/yellow] {scaffold}...")
            if scaffold.is_dir():
                shutil.rmtree(scaffold)
            else:
                scaffold.unlink()
        except OSError as exc:
            raise ScaffoldError(f"Failed to remove {scaffold}: {exc}", path=scaffold) from exc
        return True
