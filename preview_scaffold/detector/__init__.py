"""Preview declaration discovery.

Walks a Flutter project's ``lib/`` directory and reports every function
annotated with ``@Preview()`` as a ``PreviewDeclaration``.

Usage::

    from preview_scaffold.detector import PreviewDetector

    declarations = PreviewDetector(project).scan()
"""

from preview_scaffold.detector.models import PreviewDeclaration
from preview_scaffold.detector.scanner import PreviewDetector, find_previews_in_text, scan

__all__ = [
    "PreviewDeclaration",
    "PreviewDetector",
    "find_previews_in_text",
    "scan",
]
