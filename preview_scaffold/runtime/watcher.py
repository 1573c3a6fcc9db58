"""Source watching for a live preview session.

A watchdog ``Observer`` reports changes to ``.dart`` files under ``lib/``.
Observer callbacks run on a background thread, so every event is handed to
the event loop with ``loop.call_soon_threadsafe`` and lands on an
``asyncio.Queue`` that the regeneration task consumes.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..project import FlutterProject

WATCHED_SUFFIX = ".dart"

_RELEVANT_EVENTS = frozenset({"created", "modified", "deleted", "moved"})


class SourceChangeHandler(FileSystemEventHandler):
    """Filters raw filesystem events down to relevant Dart source changes."""

    def __init__(
        self,
        source_dir: Path,
        excluded_dir: Path,
        callback: Callable[[Path], None],
    ) -> None:
        super().__init__()
        self.source_dir = source_dir
        self.excluded_dir = excluded_dir
        self.callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _RELEVANT_EVENTS:
            return
        # A rename into or out of lib/ matters on either side.
        for raw in (event.src_path, getattr(event, "dest_path", "")):
            if not raw:
                continue
            path = Path(os.fsdecode(raw))
            if self.is_relevant(path):
                self.callback(path)

    def is_relevant(self, path: Path) -> bool:
        if path.suffix != WATCHED_SUFFIX:
            return False
        if path.name.startswith(".") or path.name.endswith("~"):
            return False
        if path.is_relative_to(self.excluded_dir):
            return False
        return path.is_relative_to(self.source_dir)


class SourceWatcher:
    """Watches a project's ``lib/`` directory for the lifetime of a session.

    Changed paths accumulate on ``queue``; :meth:`next_batch` waits for the
    first one, lets a quiet period pass, and returns everything that arrived
    in the meantime as one batch.
    """

    def __init__(
        self,
        project: FlutterProject,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.project = project
        self.observer_factory = observer_factory
        self.queue: asyncio.Queue[Path] = asyncio.Queue()
        self._observer: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start observing; must be called from inside the running event loop."""
        if self._observer is not None:
            return
        self._loop = asyncio.get_running_loop()

        source_dir = self.project.lib_dir
        watch_dir = source_dir if source_dir.is_dir() else self.project.root
        handler = SourceChangeHandler(
            source_dir=source_dir,
            excluded_dir=self.project.scaffold_dir,
            callback=self._on_change,
        )

        observer = self.observer_factory()
        observer.schedule(handler, str(watch_dir), recursive=True)
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        """Stop the observer thread and wait for it to exit."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)

    def _on_change(self, path: Path) -> None:
        # Called on the observer thread.
        if self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self.queue.put_nowait, path)
        except RuntimeError:
            # Loop already closed; the session is shutting down.
            pass

    async def next_batch(self, debounce_seconds: float = 0.0) -> set[Path]:
        """Wait for at least one change and return all changes seen since."""
        batch = {await self.queue.get()}
        if debounce_seconds > 0:
            await asyncio.sleep(debounce_seconds)
        while not self.queue.empty():
            batch.add(self.queue.get_nowait())
        return batch
