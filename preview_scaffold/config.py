"""widget-preview configuration.

Centralised, typed configuration for the preview tooling. All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class PubConfig(BaseModel):
    """Settings for the ``dart pub get`` invocation against the scaffold."""

    timeout: int = Field(default=300, ge=10, description="pub get timeout in seconds")
    environment_tag: str = Field(
        default="flutter_cli:widget-preview",
        description="Value exported as PUB_ENVIRONMENT for analytics attribution",
    )


class RuntimeConfig(BaseModel):
    """Settings for the long-running preview runtime."""

    device_id: str = Field(default="chrome", description="Device passed to `flutter run`")
    web_port: int | None = Field(
        default=None,
        ge=1024,
        le=65535,
        description="Serve on the web-server device at this port instead of device_id",
    )
    startup_timeout: int = Field(
        default=120, ge=5, description="Seconds to wait for the web server to answer"
    )


class Config(BaseModel):
    """Global widget-preview configuration.

    Instances are typically created once by the CLI entry point and passed
    to ``WidgetPreviewCommand``, which hands the relevant pieces to the
    resolver, scaffold manager, and runtime.
    """

    flutter_root: Path | None = Field(
        default=None, description="Flutter SDK checkout; falls back to tools on PATH"
    )
    debounce_seconds: float = Field(
        default=0.5, ge=0.0, description="Quiet period before regenerating after a change"
    )
    pub: PubConfig = Field(default_factory=PubConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def dart_binary(self) -> str:
        """The ``dart`` executable bundled with the Flutter SDK, or ``dart``."""
        if self.flutter_root is None:
            return "dart"
        return str(self.flutter_root / "bin" / "cache" / "dart-sdk" / "bin" / "dart")

    @property
    def flutter_binary(self) -> str:
        """The ``flutter`` launcher script, or ``flutter`` from PATH."""
        if self.flutter_root is None:
            return "flutter"
        return str(self.flutter_root / "bin" / "flutter")

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            FLUTTER_ROOT, WIDGET_PREVIEW_DEBOUNCE, WIDGET_PREVIEW_PUB_TIMEOUT,
            WIDGET_PREVIEW_DEVICE_ID, WIDGET_PREVIEW_WEB_PORT.
        """
        pub_kwargs: dict[str, Any] = {}
        if os.environ.get("WIDGET_PREVIEW_PUB_TIMEOUT"):
            pub_kwargs["timeout"] = int(os.environ["WIDGET_PREVIEW_PUB_TIMEOUT"])

        runtime_kwargs: dict[str, Any] = {}
        if os.environ.get("WIDGET_PREVIEW_DEVICE_ID"):
            runtime_kwargs["device_id"] = os.environ["WIDGET_PREVIEW_DEVICE_ID"]
        if os.environ.get("WIDGET_PREVIEW_WEB_PORT"):
            runtime_kwargs["web_port"] = int(os.environ["WIDGET_PREVIEW_WEB_PORT"])

        kwargs: dict[str, Any] = {}
        if os.environ.get("FLUTTER_ROOT"):
            kwargs["flutter_root"] = Path(os.environ["FLUTTER_ROOT"])
        if os.environ.get("WIDGET_PREVIEW_DEBOUNCE"):
            kwargs["debounce_seconds"] = float(os.environ["WIDGET_PREVIEW_DEBOUNCE"])

        return cls(
            pub=PubConfig(**pub_kwargs),
            runtime=RuntimeConfig(**runtime_kwargs),
            **kwargs,
        )
