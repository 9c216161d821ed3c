"""
Shared test fixtures and configuration.
"""

import os
import stat
from pathlib import Path

import pytest

from devprovision.adapters.mock import (
    MockFeatureStore,
    MockGallery,
    MockPackageManager,
    MockRunner,
    MockScanner,
)
from devprovision.adapters.probes.local_command import LocalCommandProbe
from devprovision.adapters.registry import Toolchain, assemble_toolchain
from devprovision.core.models.tool import ModuleSpec, ToolSpec


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Create fake executables in a directory prepended to PATH.

    Usage::

        fake_bin("git", 'echo "git version 2.40.0"')
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")

    def make(name: str, body: str) -> Path:
        script = bin_dir / name
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return make


@pytest.fixture
def git_tool() -> ToolSpec:
    return ToolSpec(
        friendly_name="Git",
        candidate_ids=["git"],
        local_command="git",
        version_args="--version",
        registry_name_pattern="Git",
    )


@pytest.fixture
def az_module() -> ModuleSpec:
    return ModuleSpec(name="Az", expected_path_fragment="/usr/local/share/powershell/Modules")


class MockEnvironment:
    """A complete fake platform: adapters plus the toolchain built on them."""

    def __init__(self) -> None:
        self.runner = MockRunner()
        self.apt = MockPackageManager("apt")
        self.snap = MockPackageManager("snap")
        self.scanner = MockScanner()
        self.gallery = MockGallery()
        self.features = MockFeatureStore()
        self.query_timeout = 8.0

    def toolchain(self, platform: str = "ubuntu") -> Toolchain:
        return assemble_toolchain(
            platform,
            managers={"apt": self.apt, "snap": self.snap},
            default_manager="apt",
            scanner=self.scanner,
            gallery=self.gallery,
            feature_store=self.features,
            query_timeout=self.query_timeout,
            local_probe=LocalCommandProbe(runner=self.runner),
        )


@pytest.fixture
def mock_env() -> MockEnvironment:
    """Fake adapters with nothing installed."""
    return MockEnvironment()
