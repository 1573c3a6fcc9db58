"""Pydantic models for preview discovery."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PreviewDeclaration(BaseModel):
    """A function annotated with ``@Preview()`` somewhere under ``lib/``.

    Two declarations are equal when both fields match, which is what lets a
    scan collapse duplicates with plain set semantics.
    """

    model_config = ConfigDict(frozen=True)

    module_path: str = Field(
        ..., description="POSIX path relative to the project root, e.g. 'lib/foo.dart'"
    )
    symbol_name: str = Field(..., description="Name of the preview-producing function")

    @property
    def library_path(self) -> str:
        """The module path relative to ``lib/``, as used in ``package:`` URIs."""
        prefix = "lib/"
        if self.module_path.startswith(prefix):
            return self.module_path[len(prefix):]
        return self.module_path
