"""Unit tests for Config and related Pydantic models (preview_scaffold.config).

Tests cover:
- PubConfig and RuntimeConfig defaults and validation
- Config defaults and derived tool paths
- Config.from_env
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from preview_scaffold.config import Config, PubConfig, RuntimeConfig


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class TestPubConfig:
    @pytest.mark.unit
    def test_defaults(self):
        pub = PubConfig()
        assert pub.timeout == 300
        assert pub.environment_tag == "flutter_cli:widget-preview"

    @pytest.mark.unit
    def test_timeout_lower_bound(self):
        with pytest.raises(ValidationError):
            PubConfig(timeout=1)


class TestRuntimeConfig:
    @pytest.mark.unit
    def test_defaults(self):
        runtime = RuntimeConfig()
        assert runtime.device_id == "chrome"
        assert runtime.web_port is None
        assert runtime.startup_timeout == 120

    @pytest.mark.unit
    @pytest.mark.parametrize("port", [80, 70000])
    def test_web_port_out_of_range(self, port):
        with pytest.raises(ValidationError):
            RuntimeConfig(web_port=port)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestConfig:
    @pytest.mark.unit
    def test_defaults(self):
        config = Config()
        assert config.flutter_root is None
        assert config.debounce_seconds == 0.5
        assert isinstance(config.pub, PubConfig)
        assert isinstance(config.runtime, RuntimeConfig)

    @pytest.mark.unit
    def test_binaries_from_path_without_flutter_root(self):
        config = Config()
        assert config.dart_binary == "dart"
        assert config.flutter_binary == "flutter"

    @pytest.mark.unit
    def test_binaries_inside_flutter_root(self, tmp_path: Path):
        config = Config(flutter_root=tmp_path)
        assert config.dart_binary == str(
            tmp_path / "bin" / "cache" / "dart-sdk" / "bin" / "dart"
        )
        assert config.flutter_binary == str(tmp_path / "bin" / "flutter")

    @pytest.mark.unit
    def test_negative_debounce_rejected(self):
        with pytest.raises(ValidationError):
            Config(debounce_seconds=-1)


# ---------------------------------------------------------------------------
# Config.from_env
# ---------------------------------------------------------------------------


class TestConfigFromEnv:
    @pytest.mark.unit
    def test_defaults_when_no_env(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config.from_env()
        assert config == Config()

    @pytest.mark.unit
    def test_flutter_root_from_env(self):
        with patch.dict(os.environ, {"FLUTTER_ROOT": "/opt/flutter"}, clear=True):
            config = Config.from_env()
        assert config.flutter_root == Path("/opt/flutter")
        assert config.dart_binary.endswith(str(Path("dart-sdk") / "bin" / "dart"))

    @pytest.mark.unit
    def test_tuning_from_env(self):
        env = {
            "WIDGET_PREVIEW_PUB_TIMEOUT": "60",
            "WIDGET_PREVIEW_DEVICE_ID": "linux",
            "WIDGET_PREVIEW_WEB_PORT": "9100",
            "WIDGET_PREVIEW_DEBOUNCE": "0.25",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config.from_env()
        assert config.pub.timeout == 60
        assert config.runtime.device_id == "linux"
        assert config.runtime.web_port == 9100
        assert config.debounce_seconds == 0.25

    @pytest.mark.unit
    def test_invalid_port_from_env(self):
        with patch.dict(os.environ, {"WIDGET_PREVIEW_WEB_PORT": "22"}, clear=True):
            with pytest.raises(ValidationError):
                Config.from_env()
