"""widget-preview command orchestrator.

Implements the two subcommands of the tool:

start -- validate the project, materialize the scaffold, scan ``lib/`` for
         ``@Preview()`` functions, generate the aggregated preview library,
         resolve the scaffold's dependencies, then run the preview
         environment while regenerating on source changes.
clean -- validate the project and delete the scaffold.

Usage::

    widget-preview start [--no-pub] [--offline] [project-path]
    widget-preview clean [project-path]
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from rich.panel import Panel

from .config import Config
from .detector import PreviewDetector
from .errors import WidgetPreviewError
from .project import FlutterProject, read_package_name, resolve_project
from .runtime import FlutterRunRuntime, PreviewRuntime, PubDependencyResolver, SourceWatcher
from .scaffolder import PreviewCodeGenerator, ScaffoldManager
from .utils import ProcessRunner, console, print_error, print_success

# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


class CommandState(str, Enum):
    """Stages a command moves through; every failure returns to IDLE."""

    IDLE = "idle"
    VALIDATING = "validating"
    SCAFFOLD_READY = "scaffold_ready"
    SCANNING = "scanning"
    GENERATING = "generating"
    RESOLVING = "resolving"
    RUNNING = "running"
    REMOVING = "removing"


RuntimeFactory = Callable[[Config], PreviewRuntime]
WatcherFactory = Callable[[FlutterProject], SourceWatcher]


def _default_runtime(config: Config) -> PreviewRuntime:
    return FlutterRunRuntime(
        flutter_binary=config.flutter_binary,
        device_id=config.runtime.device_id,
        web_port=config.runtime.web_port,
        startup_timeout=config.runtime.startup_timeout,
    )


# ---------------------------------------------------------------------------
# Live session
# ---------------------------------------------------------------------------


class PreviewSession:
    """A ``start`` invocation that got past dependency resolution.

    When launched, the session owns three things: the runtime process, the
    source watcher, and the task that regenerates the preview library for
    each batch of changes.  :meth:`stop` releases all three.
    """

    def __init__(
        self,
        project: FlutterProject,
        manager: ScaffoldManager,
        detector: PreviewDetector,
        generator: PreviewCodeGenerator,
        debounce_seconds: float = 0.5,
    ) -> None:
        self.project = project
        self.manager = manager
        self.detector = detector
        self.generator = generator
        self.debounce_seconds = debounce_seconds
        self.runtime: PreviewRuntime | None = None
        self.watcher: SourceWatcher | None = None
        self.regenerations = 0
        self._regen_task: asyncio.Task[None] | None = None
        self._regen_lock = asyncio.Lock()

    @property
    def is_live(self) -> bool:
        return self.runtime is not None

    async def regenerate(self) -> str:
        """Scan and rewrite the generated library; returns the new content.

        Scan, generation and write run as one unit under the session lock.
        Overlapping callers are serialized, so a slow scan that started
        earlier can never overwrite the output of a later one.
        """
        async with self._regen_lock:
            declarations = await self.detector.scan_async()
            content = self.generator.generate(declarations)
            await self.manager.write_generated(content)
            self.regenerations += 1
            return content

    async def launch(self, runtime: PreviewRuntime, watcher: SourceWatcher) -> None:
        """Start the runtime, the watcher, and the regeneration task."""
        self.runtime = runtime
        self.watcher = watcher
        try:
            await runtime.launch(self.manager.scaffold_dir)
            watcher.start()
            self._regen_task = asyncio.create_task(self._regenerate_on_change())
        except BaseException:
            await self.stop()
            raise

    async def _regenerate_on_change(self) -> None:
        assert self.watcher is not None
        while True:
            changed = await self.watcher.next_batch(self.debounce_seconds)
            console.print(
                f"[dim]{len(changed)} source file(s) changed; regenerating previews...[/dim]"
            )
            await self.regenerate()
            if self.runtime is not None:
                await self.runtime.reload()

    async def wait(self) -> int:
        """Wait for the runtime to exit and return its exit code.

        Raises:
            WidgetPreviewError: A regeneration failed while the session was
                live.  The runtime is left running for :meth:`stop`.
        """
        if self.runtime is None:
            return 0

        runtime_exit = asyncio.ensure_future(self.runtime.wait())
        waiters: set[asyncio.Future] = {runtime_exit}
        if self._regen_task is not None:
            waiters.add(self._regen_task)

        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        if self._regen_task is not None and self._regen_task in done:
            runtime_exit.cancel()
            self._regen_task.result()
        return await runtime_exit

    async def stop(self) -> None:
        """Stop watching, cancel regeneration, and terminate the runtime."""
        if self.watcher is not None:
            self.watcher.stop()
        task, self._regen_task = self._regen_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        runtime, self.runtime = self.runtime, None
        if runtime is not None:
            await runtime.stop()


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class WidgetPreviewCommand:
    """Drives the ``start`` and ``clean`` state machines.

    Collaborators that reach outside the process are injected: ``runner``
    executes ``pub get``, ``runtime_factory`` builds the preview runtime and
    ``watcher_factory`` builds the source watcher for a live session.
    ``cwd`` stands in for the process working directory so tests can run a
    command "from inside" a project without calling ``os.chdir``.

    Attributes:
        state: Current ``CommandState``.
        history: Every state entered since construction, in order.
    """

    def __init__(
        self,
        config: Config | None = None,
        runner: ProcessRunner | None = None,
        runtime_factory: RuntimeFactory | None = None,
        watcher_factory: WatcherFactory | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.config = config or Config()
        self.runner = runner or ProcessRunner()
        self.runtime_factory = runtime_factory or _default_runtime
        self.watcher_factory = watcher_factory or SourceWatcher
        self.cwd = Path(cwd) if cwd is not None else None
        self.state = CommandState.IDLE
        self.history: list[CommandState] = [CommandState.IDLE]

    def _transition(self, state: CommandState) -> None:
        self.state = state
        self.history.append(state)

    def _working_directory(self) -> Path:
        return self.cwd if self.cwd is not None else Path.cwd()

    # -- start -------------------------------------------------------------

    async def start(
        self,
        paths: Sequence[str] = (),
        *,
        pub: bool = True,
        offline: bool = False,
        launch: bool = True,
    ) -> PreviewSession:
        """Run the ``start`` pipeline.

        Args:
            paths: Positional project path arguments (zero or one).
            pub: Resolve the scaffold's dependencies with ``pub get``.
            offline: Resolve from the local pub cache only.
            launch: Start the runtime and watcher.  When ``False`` the
                command ends after generation/resolution and the returned
                session is not live.

        Raises:
            WidgetPreviewError: Any stage failed.  The command aborts at
                that stage and the state returns to IDLE.
        """
        try:
            self._transition(CommandState.VALIDATING)
            project = resolve_project(paths, self._working_directory())
            package_name = read_package_name(project)

            manager = ScaffoldManager(project)
            await manager.ensure(package_name)
            self._transition(CommandState.SCAFFOLD_READY)

            self._transition(CommandState.SCANNING)
            detector = PreviewDetector(project)
            declarations = await detector.scan_async()

            self._transition(CommandState.GENERATING)
            generator = PreviewCodeGenerator(package_name)
            await manager.write_generated(generator.generate(declarations))
            modules = {d.module_path for d in declarations}
            console.print(
                f"  [green]+[/green] Found {len(declarations)} preview(s) "
                f"in {len(modules)} file(s)"
            )

            if pub:
                self._transition(CommandState.RESOLVING)
                resolver = PubDependencyResolver(
                    runner=self.runner,
                    dart_binary=self.config.dart_binary,
                    timeout=self.config.pub.timeout,
                    environment_tag=self.config.pub.environment_tag,
                )
                await resolver.resolve(manager.scaffold_dir, offline=offline)

            session = PreviewSession(
                project,
                manager,
                detector,
                generator,
                debounce_seconds=self.config.debounce_seconds,
            )
            if not launch:
                self._transition(CommandState.IDLE)
                return session

            await session.launch(
                self.runtime_factory(self.config), self.watcher_factory(project)
            )
            self._transition(CommandState.RUNNING)
            return session
        except BaseException:
            self._transition(CommandState.IDLE)
            raise

    async def stop(self, session: PreviewSession) -> None:
        """Tear down a live session and return to IDLE."""
        try:
            await session.stop()
        finally:
            if self.state is not CommandState.IDLE:
                self._transition(CommandState.IDLE)

    # -- clean -------------------------------------------------------------

    async def clean(self, paths: Sequence[str] = ()) -> bool:
        """Run the ``clean`` pipeline.

        Removing a scaffold that a live ``start`` session is still using is
        not supported; stop that session first.

        Returns:
            ``True`` if a scaffold was deleted, ``False`` if none existed.
        """
        try:
            self._transition(CommandState.VALIDATING)
            project = resolve_project(paths, self._working_directory())

            self._transition(CommandState.REMOVING)
            removed = await ScaffoldManager(project).remove()
        finally:
            self._transition(CommandState.IDLE)
        return removed


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


async def _run_start(command: WidgetPreviewCommand, args) -> int:
    session = await command.start(
        args.paths, pub=args.pub, offline=args.offline, launch=args.launch
    )
    project_root = session.project.root
    console.print(
        Panel(
            f"Project  : {project_root}\n"
            f"Scaffold : {session.manager.scaffold_dir}\n"
            f"Pub      : {'offline' if args.offline else 'online' if args.pub else 'skipped'}",
            title="[bold]Widget Preview[/bold]",
            border_style="bright_cyan",
        )
    )
    if not session.is_live:
        return 0
    try:
        return await session.wait()
    finally:
        await command.stop(session)


async def _run_clean(command: WidgetPreviewCommand, args) -> int:
    if await command.clean(args.paths):
        print_success("Widget preview scaffold removed.")
    else:
        console.print("[dim]No widget preview scaffold to remove.[/dim]")
    return 0


def build_parser():
    """Build the ``widget-preview`` argument parser."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="widget-preview",
        description="Preview Flutter widgets annotated with @Preview() in isolation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  widget-preview start\n"
            "  widget-preview start --offline path/to/app\n"
            "  widget-preview clean path/to/app\n"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Generate the scaffold and launch previews")
    start.add_argument(
        "--pub",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run pub get in the scaffold (default: on)",
    )
    start.add_argument(
        "--offline",
        action="store_true",
        help="Resolve dependencies from the local pub cache only",
    )
    start.add_argument(
        "--launch",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the preview environment after generation (default: on)",
    )
    start.add_argument("--device-id", "-d", default=None, help="Device for `flutter run`")
    start.add_argument("paths", nargs="*", metavar="project-path")

    clean = subparsers.add_parser("clean", help="Delete the preview scaffold")
    clean.add_argument("paths", nargs="*", metavar="project-path")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``widget-preview`` and ``python -m preview_scaffold``."""
    args = build_parser().parse_args(argv)

    config = Config.from_env()
    if getattr(args, "device_id", None):
        config.runtime.device_id = args.device_id

    command = WidgetPreviewCommand(config)
    handler = _run_start if args.command == "start" else _run_clean
    try:
        exit_code = asyncio.run(handler(command, args))
    except WidgetPreviewError as exc:
        print_error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/yellow]")
        exit_code = 130

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
