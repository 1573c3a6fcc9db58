"""Unit tests for scaffold dependency resolution (preview_scaffold.runtime.pub).

Tests cover:
- Command construction online and offline
- Working directory, timeout, and PUB_ENVIRONMENT passed to the runner
- ResolutionResult on success
- DependencyResolutionError carrying the raw captured output on failure
"""

from __future__ import annotations

from pathlib import Path

import pytest

from preview_scaffold.errors import DependencyResolutionError
from preview_scaffold.runtime.pub import PubDependencyResolver, ResolutionResult


pytestmark = pytest.mark.unit


class TestBuildCommand:
    def test_online(self):
        assert PubDependencyResolver().build_command(offline=False) == ["dart", "pub", "get"]

    def test_offline(self):
        assert PubDependencyResolver().build_command(offline=True) == [
            "dart",
            "pub",
            "get",
            "--offline",
        ]

    def test_custom_dart_binary(self):
        resolver = PubDependencyResolver(dart_binary="/sdk/bin/cache/dart-sdk/bin/dart")
        assert resolver.build_command(offline=False)[0] == "/sdk/bin/cache/dart-sdk/bin/dart"


class TestResolve:
    @pytest.mark.asyncio
    async def test_runs_in_scaffold(self, process_runner, tmp_path: Path):
        resolver = PubDependencyResolver(runner=process_runner, timeout=42)

        result = await resolver.resolve(tmp_path)

        assert isinstance(result, ResolutionResult)
        assert result.exit_code == 0
        assert result.offline is False
        call = process_runner.calls[0]
        assert call["cmd"] == ["dart", "pub", "get"]
        assert call["cwd"] == tmp_path
        assert call["timeout"] == 42
        assert call["env"] == {"PUB_ENVIRONMENT": "flutter_cli:widget-preview"}

    @pytest.mark.asyncio
    async def test_offline_flag_forwarded(self, process_runner, tmp_path: Path):
        result = await PubDependencyResolver(runner=process_runner).resolve(tmp_path, offline=True)
        assert result.offline is True
        assert process_runner.commands == [["dart", "pub", "get", "--offline"]]

    @pytest.mark.asyncio
    async def test_single_invocation_per_call(self, process_runner, tmp_path: Path):
        await PubDependencyResolver(runner=process_runner).resolve(tmp_path)
        assert len(process_runner.calls) == 1

    @pytest.mark.asyncio
    async def test_failure_raises_with_output(self, process_runner, tmp_path: Path):
        process_runner.results.append((69, "Resolving dependencies...", "Could not resolve flutter_project"))
        resolver = PubDependencyResolver(runner=process_runner)

        with pytest.raises(DependencyResolutionError) as exc_info:
            await resolver.resolve(tmp_path, offline=True)

        error = exc_info.value
        assert error.exit_code == 69
        assert error.command == ["dart", "pub", "get", "--offline"]
        assert error.stdout == "Resolving dependencies..."
        assert error.stderr == "Could not resolve flutter_project"
        assert "exit 69" in str(error)
        assert "Could not resolve flutter_project" in str(error)

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_stdout(self, process_runner, tmp_path: Path):
        process_runner.results.append((1, "network unreachable", ""))
        with pytest.raises(DependencyResolutionError, match="network unreachable"):
            await PubDependencyResolver(runner=process_runner).resolve(tmp_path)

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self, process_runner, tmp_path: Path):
        process_runner.results.append((1, "", "boom"))
        with pytest.raises(DependencyResolutionError):
            await PubDependencyResolver(runner=process_runner).resolve(tmp_path)
        assert len(process_runner.calls) == 1

    @pytest.mark.asyncio
    async def test_failure_keeps_raw_output(self, process_runner, tmp_path: Path):
        process_runner.results.append((1, "Resolving dependencies...\n", "  Because x depends on y\n"))

        with pytest.raises(DependencyResolutionError) as exc_info:
            await PubDependencyResolver(runner=process_runner).resolve(tmp_path)

        error = exc_info.value
        assert error.stdout == "Resolving dependencies...\n"
        assert error.stderr == "  Because x depends on y\n"
        assert str(error).endswith("\nBecause x depends on y")

    @pytest.mark.asyncio
    async def test_success_keeps_raw_output(self, process_runner, tmp_path: Path):
        process_runner.results.append((0, "Got dependencies!\n", ""))
        result = await PubDependencyResolver(runner=process_runner).resolve(tmp_path)
        assert result.stdout == "Got dependencies!\n"
