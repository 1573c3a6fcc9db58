"""Shared pytest fixtures for the widget-preview test suite.

Provides reusable fixtures for:
- Temporary Flutter projects (pubspec.yaml + lib/)
- A recording process runner standing in for ``dart pub get``
- An in-process fake of the preview runtime
- Mock subprocess helpers
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from preview_scaffold.runtime.preview import PreviewRuntime


SAMPLE_PREVIEW_FILE = """\
// This doesn't need to be valid code for testing as long as it has the @Preview() annotation
@Preview()
WidgetPreview preview() => WidgetPreview();"""

EXPECTED_GENERATED_FILE = (
    "// ignore_for_file: no_leading_underscores_for_library_prefixes\n"
    "import 'package:flutter_project/foo.dart' as _i1;"
    "import 'package:widget_preview/widget_preview.dart';"
    "List<WidgetPreview> previews() => [_i1.preview()];"
)


# ---------------------------------------------------------------------------
# Sample sources
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_preview_source() -> str:
    """A library with one preview, preceded by a comment naming the annotation."""
    return SAMPLE_PREVIEW_FILE


@pytest.fixture
def expected_generated_file() -> str:
    """Generated library for SAMPLE_PREVIEW_FILE saved as lib/foo.dart."""
    return EXPECTED_GENERATED_FILE


# ---------------------------------------------------------------------------
# Flutter projects
# ---------------------------------------------------------------------------

@pytest.fixture
def make_flutter_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a minimal Flutter project on disk.

    Usage:
        def test_something(make_flutter_project):
            root = make_flutter_project(files={"lib/foo.dart": "..."})
    """
    def factory(
        name: str = "flutter_project",
        directory: str = "flutter_project",
        files: dict[str, str] | None = None,
    ) -> Path:
        root = tmp_path / directory
        (root / "lib").mkdir(parents=True, exist_ok=True)
        (root / "pubspec.yaml").write_text(
            f"name: {name}\nenvironment:\n  sdk: '>=3.4.0 <4.0.0'\n",
            encoding="utf-8",
        )
        for rel, content in (files or {}).items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return factory


@pytest.fixture
def flutter_project(make_flutter_project) -> Path:
    """A Flutter project named ``flutter_project`` with an empty ``lib/``."""
    return make_flutter_project()


# ---------------------------------------------------------------------------
# Process runner
# ---------------------------------------------------------------------------

class RecordingProcessRunner:
    """Records every command instead of spawning it.

    ``results`` is consumed front to back; once empty every call returns
    ``(returncode, stdout, stderr)`` from the constructor.
    """

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.results: list[tuple[int, str, str]] = []
        self.calls: list[dict[str, Any]] = []

    @property
    def commands(self) -> list[list[str]]:
        return [call["cmd"] for call in self.calls]

    async def run(
        self,
        cmd: list[str],
        *,
        cwd: str | Path | None = None,
        timeout: int = 120,
        env: dict[str, str] | None = None,
    ) -> tuple[int, str, str]:
        self.calls.append({"cmd": list(cmd), "cwd": cwd, "timeout": timeout, "env": env})
        if self.results:
            return self.results.pop(0)
        return (self.returncode, self.stdout, self.stderr)


@pytest.fixture
def process_runner() -> RecordingProcessRunner:
    return RecordingProcessRunner()


# ---------------------------------------------------------------------------
# Preview runtime
# ---------------------------------------------------------------------------

class FakeRuntime(PreviewRuntime):
    """In-process stand-in for ``flutter run``.

    ``wait`` blocks until :meth:`exit` is called (or ``stop``), so a live
    session can be driven step by step from a test.
    """

    def __init__(self) -> None:
        self.launched: list[Path] = []
        self.reloads = 0
        self.stopped = False
        self._exit_code = 0
        self._exited = asyncio.Event()

    async def launch(self, scaffold_dir: Path) -> None:
        self.launched.append(scaffold_dir)

    async def reload(self) -> None:
        self.reloads += 1

    async def wait(self) -> int:
        await self._exited.wait()
        return self._exit_code

    async def stop(self) -> None:
        self.stopped = True
        self._exited.set()

    def exit(self, code: int = 0) -> None:
        self._exit_code = code
        self._exited.set()


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.terminate = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode or 0)
        return mock_proc

    return factory
