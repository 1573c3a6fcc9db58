"""Dependency resolution for the preview scaffold.

Runs ``dart pub get`` inside the scaffold so the generated imports of the
previewed package (and the Flutter SDK) can be resolved.  The package
manager is invoked, never reimplemented: its exit code and captured output
are the only signal consumed here.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from ..errors import DependencyResolutionError
from ..utils import ProcessRunner, console, format_duration


@dataclass
class ResolutionResult:
    """Structured result of a successful ``pub get`` run."""

    command: list[str]
    exit_code: int
    offline: bool
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0


class PubDependencyResolver:
    """Invokes ``<dart> pub get [--offline]`` against a scaffold directory.

    No retries happen here.  Falling back to ``--offline`` after a network
    failure is a user decision made on the command line.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        dart_binary: str = "dart",
        timeout: int = 300,
        environment_tag: str = "flutter_cli:widget-preview",
    ) -> None:
        self.runner = runner or ProcessRunner()
        self.dart_binary = dart_binary
        self.timeout = timeout
        self.environment_tag = environment_tag

    def build_command(self, offline: bool) -> list[str]:
        cmd = [self.dart_binary, "pub", "get"]
        if offline:
            cmd.append("--offline")
        return cmd

    async def resolve(self, scaffold: str | Path, offline: bool = False) -> ResolutionResult:
        """Resolve the scaffold's dependencies.

        Args:
            scaffold: The scaffold directory; used as the working directory.
            offline: Pass ``--offline`` so only the local pub cache is used.

        Raises:
            DependencyResolutionError: ``pub get`` exited non-zero or timed
                out.  The exception carries the command and captured output.
        """
        cmd = self.build_command(offline)
        mode = "offline" if offline else "online"
        console.print(f"[cyan]Resolving scaffold dependencies[/cyan] ({mode})...")

        start = time.monotonic()
        exit_code, stdout, stderr = await self.runner.run(
            cmd,
            cwd=scaffold,
            timeout=self.timeout,
            env={"PUB_ENVIRONMENT": self.environment_tag},
        )
        elapsed = time.monotonic() - start

        if exit_code != 0:
            details = stderr.strip() or stdout.strip()
            message = f"pub get failed (exit {exit_code}): {' '.join(cmd)}"
            if details:
                message = f"{message}\n{details}"
            raise DependencyResolutionError(
                message,
                command=cmd,
                exit_code=exit_code,
                stdout=stdout,
                stderr=stderr,
            )

        console.print(f"[green]Dependencies resolved[/green] in {format_duration(elapsed)}")
        return ResolutionResult(
            command=cmd,
            exit_code=exit_code,
            offline=offline,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=elapsed,
        )
