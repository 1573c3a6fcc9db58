"""Error taxonomy for the widget-preview command.

Every error the tool raises on purpose derives from ``WidgetPreviewError``.
The CLI entry point is the only place that turns one of these into a
non-zero exit status; every other layer lets them propagate untouched.
"""

from __future__ import annotations

from pathlib import Path


class WidgetPreviewError(Exception):
    """Base class for all user-facing widget-preview failures."""


class MultipleProjectPathsError(WidgetPreviewError):
    """Raised when more than one project directory is supplied."""

    def __init__(self, paths: list[str] | None = None) -> None:
        self.paths = list(paths or [])
        super().__init__("Only one directory should be provided.")


class InvalidPathError(WidgetPreviewError):
    """Raised when the supplied project path does not exist as a directory."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"Could not find {self.path}.")


class NotAProjectError(WidgetPreviewError):
    """Raised when the resolved root lacks a usable ``pubspec.yaml``."""

    def __init__(self, path: str | Path, reason: str = "") -> None:
        self.path = str(path)
        self.reason = reason
        message = f"{self.path} is not a valid Flutter project."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class ScanError(WidgetPreviewError):
    """Raised when the source tree cannot be traversed or read."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = str(path)
        super().__init__(message)


class GenerationError(WidgetPreviewError):
    """Raised when the generated preview file cannot be written."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = str(path)
        super().__init__(message)


class ScaffoldError(WidgetPreviewError):
    """Raised when the scaffold directory cannot be created or removed."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = str(path)
        super().__init__(message)


class DependencyResolutionError(WidgetPreviewError):
    """Raised when ``pub get`` exits non-zero.

    The captured output is kept verbatim so the caller can show exactly what
    the package manager reported.
    """

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        exit_code: int = -1,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = list(command or [])
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class RuntimeLaunchError(WidgetPreviewError):
    """Raised when the preview runtime process cannot be started."""
