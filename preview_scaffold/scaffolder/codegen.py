"""Generation of the aggregated preview library.

``PreviewCodeGenerator`` turns the scanner's declarations into the Dart
library the scaffold's ``main.dart`` imports.  Output is a pure function of
the declaration order and package name, so unchanged sources always produce
byte-identical files.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from ..detector.models import PreviewDeclaration
from ..errors import GenerationError

GENERATED_PREVIEW_FILE_PATH = "lib/src/generated_preview.dart"

RUNTIME_LIBRARY_URI = "package:widget_preview/widget_preview.dart"

_HEADER = "// ignore_for_file: no_leading_underscores_for_library_prefixes\n"


class PreviewCodeGenerator:
    """Emits ``lib/src/generated_preview.dart`` for one Flutter package.

    Each distinct module gets an ``_iN`` import prefix in first-occurrence
    order; the ``previews()`` collector then calls every declaration, in
    discovery order, through its module's prefix.
    """

    generated_preview_file_path = GENERATED_PREVIEW_FILE_PATH

    def __init__(self, package_name: str) -> None:
        self.package_name = package_name

    def assign_aliases(self, declarations: Sequence[PreviewDeclaration]) -> dict[str, str]:
        """Map each distinct ``module_path`` to ``_i1``, ``_i2``, ... in first-seen order."""
        aliases: dict[str, str] = {}
        for declaration in declarations:
            if declaration.module_path not in aliases:
                aliases[declaration.module_path] = f"_i{len(aliases) + 1}"
        return aliases

    def import_uri(self, declaration: PreviewDeclaration) -> str:
        return f"package:{self.package_name}/{declaration.library_path}"

    def generate(self, declarations: Sequence[PreviewDeclaration]) -> str:
        """Return the full content of the generated library."""
        aliases = self.assign_aliases(declarations)

        imports: list[str] = []
        emitted: set[str] = set()
        for declaration in declarations:
            if declaration.module_path in emitted:
                continue
            emitted.add(declaration.module_path)
            alias = aliases[declaration.module_path]
            imports.append(f"import '{self.import_uri(declaration)}' as {alias};")
        imports.append(f"import '{RUNTIME_LIBRARY_URI}';")

        calls = ", ".join(
            f"{aliases[d.module_path]}.{d.symbol_name}()" for d in declarations
        )
        collector = f"List<WidgetPreview> previews() => [{calls}];"
        return _HEADER + "".join(imports) + collector


def write_generated_file(scaffold_dir: str | Path, content: str) -> Path:
    """Atomically replace the generated preview file inside *scaffold_dir*.

    The content goes to a temporary file in the destination directory, is
    flushed to disk, and is then renamed over the target, so readers see
    either the previous file or the new one and never a prefix.

    Raises:
        GenerationError: The file could not be written.
    """
    target = Path(scaffold_dir) / GENERATED_PREVIEW_FILE_PATH
    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as exc:
        raise GenerationError(f"Failed to write {target}: {exc}", path=target) from exc
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
    return target
