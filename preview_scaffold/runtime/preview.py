"""Launching the long-running preview runtime.

The runtime is the scaffold app running under ``flutter run``.  It is an
external collaborator: the tool starts it, asks it to hot reload after the
generated preview list changes, and terminates it when the session stops.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from ..errors import RuntimeLaunchError
from ..utils import console, print_success, print_warning, wait_for_health


class PreviewRuntime:
    """Interface for the process that renders the previews.

    ``WidgetPreviewCommand`` only talks to this interface, so tests can run
    full ``start`` sessions against an in-process fake.
    """

    async def launch(self, scaffold_dir: Path) -> None:
        raise NotImplementedError

    async def reload(self) -> None:
        """Pick up a regenerated preview list without restarting."""
        raise NotImplementedError

    async def wait(self) -> int:
        """Block until the runtime exits and return its exit code."""
        raise NotImplementedError

    async def stop(self) -> None:
        raise NotImplementedError


class FlutterRunRuntime(PreviewRuntime):
    """Runs the scaffold with ``flutter run --no-pub``.

    Dependencies were already resolved by ``pub get``, so ``--no-pub``
    avoids a second resolution.  stdin is piped so a hot reload (``r``) can
    be requested after each regeneration.
    """

    def __init__(
        self,
        flutter_binary: str = "flutter",
        device_id: str = "chrome",
        web_port: int | None = None,
        startup_timeout: int = 120,
    ) -> None:
        self.flutter_binary = flutter_binary
        self.device_id = device_id
        self.web_port = web_port
        self.startup_timeout = startup_timeout
        self._process: asyncio.subprocess.Process | None = None

    @property
    def url(self) -> str | None:
        if self.web_port is None:
            return None
        return f"http://localhost:{self.web_port}/"

    def build_command(self) -> list[str]:
        cmd = [self.flutter_binary, "run", "--no-pub"]
        if self.web_port is not None:
            cmd += ["--device-id", "web-server", f"--web-port={self.web_port}"]
        else:
            cmd += ["--device-id", self.device_id]
        return cmd

    async def launch(self, scaffold_dir: Path) -> None:
        cmd = self.build_command()
        console.print(f"[cyan]Launching preview environment:[/cyan] {' '.join(cmd)}")
        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                cwd=str(scaffold_dir),
            )
        except OSError as exc:
            raise RuntimeLaunchError(f"Failed to start {cmd[0]}: {exc}") from exc

        if self.url is not None:
            if await wait_for_health(self.url, timeout=self.startup_timeout):
                print_success(f"Widget previews available at {self.url}")
            else:
                print_warning(
                    f"Preview server did not answer at {self.url} "
                    f"within {self.startup_timeout}s"
                )

    async def reload(self) -> None:
        process = self._process
        if process is None or process.returncode is not None or process.stdin is None:
            return
        try:
            process.stdin.write(b"r")
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The runtime is exiting; wait() will report it.
            pass

    async def wait(self) -> int:
        if self._process is None:
            return 0
        return await self._process.wait()

    async def stop(self) -> None:
        process, self._process = self._process, None
        if process is None or process.returncode is not None:
            return
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), timeout=10)
        except ProcessLookupError:
            pass
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
