"""widget-preview runtime glue.

Everything that talks to processes or threads outside the tool itself:
``dart pub get`` against the scaffold, the ``flutter run`` preview
environment, and the watchdog observer that drives regeneration.

Key classes:
    PubDependencyResolver - ``pub get`` invocation, online or offline
    FlutterRunRuntime     - Long-running preview app process
    SourceWatcher         - ``lib/`` change notifications for a live session
"""

from .preview import FlutterRunRuntime, PreviewRuntime
from .pub import PubDependencyResolver, ResolutionResult
from .watcher import SourceChangeHandler, SourceWatcher

__all__ = [
    "FlutterRunRuntime",
    "PreviewRuntime",
    "PubDependencyResolver",
    "ResolutionResult",
    "SourceChangeHandler",
    "SourceWatcher",
]
