"""Discovery of ``@Preview()`` declarations in a Flutter project.

The scanner is deliberately not a Dart parser.  Comments and the contents
of string literals are blanked out, then a structural regex looks for the
``@Preview(...)`` annotation followed by a function header.  Code around the
match does not have to compile, which keeps discovery working while the user
is mid-edit.
"""

from __future__ import annotations

import asyncio
import os
import re
from collections.abc import Iterable
from pathlib import Path

from ..errors import ScanError
from ..project import FlutterProject
from .models import PreviewDeclaration


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

SOURCE_SUFFIX = ".dart"

# String literals are matched first so a ``//`` inside a URL is not taken for
# a comment.  Triple-quoted strings come before single-line ones.
_STRING_OR_COMMENT = re.compile(
    r"(?P<string>'''.*?'''|" r'""".*?"""|'
    r"""'(?:\\.|[^'\\\n])*'|"(?:\\.|[^"\\\n])*")"""
    r"|(?P<comment>//[^\n]*|/\*.*?\*/)",
    re.DOTALL,
)

_NOT_NEWLINE = re.compile(r"[^\n]")


def _balanced_args(depth: int) -> str:
    """Pattern for an argument list with parentheses nested *depth* levels."""
    inner = r"[^()]*"
    for _ in range(depth):
        inner = rf"[^()]*(?:\({inner}\)[^()]*)*"
    return inner


# Enough for ``Preview(size: Size(1, 2), wrapper: wrap(Theme(x)))``.
_ARGS = _balanced_args(3)
_IDENT = r"[A-Za-z_$][\w$]*"

_PREVIEW_PATTERN = re.compile(
    rf"@(?:{_IDENT}\.)?Preview\s*\({_ARGS}\)"
    rf"(?:\s*@{_IDENT}(?:\.{_IDENT})*(?:\s*\({_ARGS}\))?)*"
    rf"\s*(?:{_IDENT}(?:\.{_IDENT})*(?:\s*<[^;{{}}()=]*>)?\??\s+)?"
    rf"(?P<name>{_IDENT})\s*(?:<[^;{{}}()=]*>\s*)?\("
)

_RESERVED = frozenset({"class", "enum", "extension", "mixin", "typedef", "if", "for", "while"})


def _blank_literals(text: str) -> str:
    """Replace comments and string bodies with spaces, keeping quotes and newlines."""

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if match.group("comment") is not None:
            return _NOT_NEWLINE.sub(" ", token)
        quote = 3 if token[:3] in ("'''", '"""') else 1
        body = _NOT_NEWLINE.sub(" ", token[quote:-quote])
        return token[:quote] + body + token[-quote:]

    return _STRING_OR_COMMENT.sub(_replace, text)


def find_previews_in_text(text: str) -> list[str]:
    """Return the names of ``@Preview()``-annotated functions in *text*.

    Names are returned in source order.  A name annotated twice is reported
    twice; de-duplication is the caller's concern.
    """
    names: list[str] = []
    for match in _PREVIEW_PATTERN.finditer(_blank_literals(text)):
        name = match.group("name")
        if name not in _RESERVED:
            names.append(name)
    return names


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------


class PreviewDetector:
    """Finds every preview declaration under a project's ``lib/`` directory.

    The scaffold directory is always excluded so the tool never discovers
    its own generated output, even if a project keeps ``.dart_tool`` inside
    ``lib/`` through a symlink or unusual layout.
    """

    def __init__(
        self,
        project: FlutterProject,
        exclude_paths: Iterable[Path] = (),
    ) -> None:
        self.project = project
        excluded = {project.scaffold_dir, *exclude_paths}
        self.exclude_paths = frozenset(Path(p).resolve() for p in excluded)

    def is_excluded(self, path: Path) -> bool:
        """``True`` if *path* is inside (or equal to) an excluded path."""
        resolved = path.resolve()
        return any(resolved.is_relative_to(excluded) for excluded in self.exclude_paths)

    def source_files(self) -> list[Path]:
        """Every ``.dart`` file under ``lib/``, sorted by relative POSIX path.

        Raises:
            ScanError: A directory under ``lib/`` cannot be listed.
        """
        lib_dir = self.project.lib_dir
        if not lib_dir.is_dir():
            return []

        def _on_error(exc: OSError) -> None:
            raise ScanError(
                f"Failed to scan {exc.filename}: {exc.strerror or exc}",
                path=exc.filename or lib_dir,
            ) from exc

        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(lib_dir, onerror=_on_error):
            current = Path(dirpath)
            dirnames[:] = [d for d in dirnames if not self.is_excluded(current / d)]
            for filename in filenames:
                candidate = current / filename
                if candidate.suffix == SOURCE_SUFFIX and not self.is_excluded(candidate):
                    found.append(candidate)

        return sorted(found, key=self._relative_key)

    def scan(self) -> list[PreviewDeclaration]:
        """Return the ordered, de-duplicated preview declarations.

        Files are visited in lexicographic order so alias numbering in the
        generated code is reproducible across platforms.  An empty list is a
        normal result.

        Raises:
            ScanError: The tree could not be traversed or a file could not
                be read.
        """
        declarations: list[PreviewDeclaration] = []
        seen: set[PreviewDeclaration] = set()

        for source in self.source_files():
            try:
                text = source.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                raise ScanError(f"Failed to read {source}: {exc}", path=source) from exc

            module_path = self._relative_key(source)
            for name in find_previews_in_text(text):
                declaration = PreviewDeclaration(module_path=module_path, symbol_name=name)
                if declaration in seen:
                    continue
                seen.add(declaration)
                declarations.append(declaration)

        return declarations

    async def scan_async(self) -> list[PreviewDeclaration]:
        """Run :meth:`scan` in a worker thread."""
        return await asyncio.to_thread(self.scan)

    def _relative_key(self, path: Path) -> str:
        return path.relative_to(self.project.root).as_posix()


def scan(root: str | Path, exclude_paths: Iterable[Path] = ()) -> list[PreviewDeclaration]:
    """Scan the project at *root* for preview declarations.

    Convenience wrapper around :class:`PreviewDetector` for callers that
    have a bare path rather than a resolved ``FlutterProject``.
    """
    project = FlutterProject(root=Path(root).resolve())
    return PreviewDetector(project, exclude_paths).scan()
