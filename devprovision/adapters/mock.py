"""
Mock adapters — test doubles for every external collaborator.

Used by the test-suite to simulate package managers, manifests,
galleries and feature stores without touching the machine. Each mock
records its calls.
"""

from __future__ import annotations

from devprovision.adapters.base import (
    FeatureResult,
    FeatureStore,
    InstalledModule,
    ManifestScanner,
    ModuleGallery,
    PackageManager,
)
from devprovision.adapters.manifest.matching import display_name_matches
from devprovision.adapters.shell.command import CommandResult
from devprovision.core.models.tool import AptRepository


class MockRunner:
    """Stand-in for ``run_command`` keyed by executable name.

    Commands without a configured response behave as "not on PATH".
    """

    def __init__(self) -> None:
        self._responses: dict[str, CommandResult] = {}
        self.call_log: list[list[str]] = []

    def set_output(self, command: str, stdout: str, returncode: int = 0) -> None:
        self._responses[command] = CommandResult(argv=[command], returncode=returncode, stdout=stdout)

    def __call__(self, argv: list[str], **kwargs) -> CommandResult:
        self.call_log.append(list(argv))
        response = self._responses.get(argv[0])
        if response is None:
            return CommandResult(argv=list(argv), not_found=True)
        return CommandResult(
            argv=list(argv),
            returncode=response.returncode,
            stdout=response.stdout,
        )

    @property
    def call_count(self) -> int:
        return len(self.call_log)


class MockPackageManager(PackageManager):
    """Configurable package manager.

    Packages in ``installed`` answer queries positively. Ids in
    ``hanging`` simulate a stalled query (``timed_out``). Ids in
    ``failing`` make ``install`` fail; any other install succeeds and,
    with ``install_effective``, marks the package installed. Ids in
    ``restart_on_install`` succeed but report that a restart is needed.
    """

    def __init__(
        self,
        manager_name: str = "mock",
        available: bool = True,
        installed: set[str] | None = None,
        install_effective: bool = True,
    ):
        self._name = manager_name
        self._available = available
        self.installed: set[str] = set(installed or ())
        self.hanging: set[str] = set()
        self.failing: set[str] = set()
        self.restart_on_install: set[str] = set()
        self.install_effective = install_effective
        self.repository_ok = True
        self.upgrade_ok = True
        self.query_log: list[tuple[str, float]] = []
        self.install_log: list[str] = []
        self.extra_args_log: dict[str, list[str]] = {}
        self.repository_log: list[str] = []
        self.refresh_count = 0
        self.upgrade_count = 0

    @property
    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available

    def query(self, package_id: str, timeout: float) -> CommandResult:
        self.query_log.append((package_id, timeout))
        argv = [self._name, "query", package_id]
        if package_id in self.hanging:
            return CommandResult(argv=argv, returncode=-9, timed_out=True, elapsed_ms=int(timeout * 1000))
        if package_id in self.installed:
            return CommandResult(argv=argv, returncode=0, stdout=f"{package_id}\tinstall ok installed")
        return CommandResult(argv=argv, returncode=1, stderr=f"no packages found matching {package_id}")

    def install(
        self,
        package_id: str,
        *,
        machine_wide: bool = True,
        extra_args: list[str] | None = None,
    ) -> CommandResult:
        self.install_log.append(package_id)
        self.extra_args_log[package_id] = list(extra_args or [])
        argv = [self._name, "install", package_id]
        if package_id in self.failing:
            return CommandResult(argv=argv, returncode=100, stderr=f"Unable to locate package {package_id}")
        if self.install_effective:
            self.installed.add(package_id)
        return CommandResult(argv=argv, returncode=0, restart_needed=package_id in self.restart_on_install)

    def refresh(self) -> CommandResult:
        self.refresh_count += 1
        return CommandResult(argv=[self._name, "refresh"], returncode=0)

    def upgrade(self) -> CommandResult:
        self.upgrade_count += 1
        argv = [self._name, "upgrade"]
        if self.upgrade_ok:
            return CommandResult(argv=argv, returncode=0)
        return CommandResult(argv=argv, returncode=100, stderr="E: Sub-process /usr/bin/dpkg returned an error code (1)")

    def ensure_repository(self, repository: AptRepository) -> CommandResult:
        self.repository_log.append(repository.name)
        argv = [self._name, "add-repository", repository.name]
        if self.repository_ok:
            return CommandResult(argv=argv, returncode=0)
        return CommandResult(argv=argv, returncode=1, stderr="gpg: no valid OpenPGP data found")

    @property
    def install_count(self) -> int:
        return len(self.install_log)


class MockScanner(ManifestScanner):
    """Manifest scanner over a fixed list of display names."""

    def __init__(
        self,
        display_names: list[str] | None = None,
        available: bool = True,
        broken: bool = False,
    ):
        self.display_names = list(display_names or [])
        self._available = available
        self._broken = broken
        self.call_log: list[str] = []

    @property
    def name(self) -> str:
        return "mock-manifest"

    def is_available(self) -> bool:
        return self._available

    def find(self, pattern: str) -> str | None:
        self.call_log.append(pattern)
        if self._broken:
            raise OSError("manifest unreadable")
        for display_name in self.display_names:
            if display_name_matches(display_name, pattern):
                return display_name
        return None

    @property
    def call_count(self) -> int:
        return len(self.call_log)


class MockGallery(ModuleGallery):
    """Module gallery with in-memory installed copies."""

    def __init__(
        self,
        machine_path: str = "/usr/local/share/powershell/Modules",
        available: bool = True,
    ):
        self.machine_path = machine_path
        self._available = available
        self.copies: dict[str, list[InstalledModule]] = {}
        self.failing: set[str] = set()
        self.broken = False
        self.install_log: list[str] = []

    @property
    def name(self) -> str:
        return "mock-gallery"

    def is_available(self) -> bool:
        return self._available

    def add_copy(self, name: str, version: str, path: str) -> None:
        self.copies.setdefault(name, []).append(InstalledModule(name=name, version=version, path=path))

    def list_installed(self, name: str) -> list[InstalledModule]:
        if self.broken:
            raise OSError("pwsh crashed")
        return list(self.copies.get(name, []))

    def install(self, name: str, *, all_users: bool = True) -> CommandResult:
        self.install_log.append(name)
        argv = ["pwsh", "Install-Module", name]
        if name in self.failing:
            return CommandResult(argv=argv, returncode=1, stderr="No match was found")
        self.add_copy(name, "1.0.0", f"{self.machine_path}/{name}/1.0.0")
        return CommandResult(argv=argv, returncode=0)


class MockFeatureStore(FeatureStore):
    """Feature store where every enable requires a restart by default."""

    def __init__(self, enabled: set[str] | None = None, restart_on_enable: bool = True):
        self.enabled = set(enabled or ())
        self.restart_on_enable = restart_on_enable
        self.failing: set[str] = set()
        self.enable_log: list[str] = []

    @property
    def name(self) -> str:
        return "mock-features"

    def is_available(self) -> bool:
        return True

    def query(self, feature_id: str) -> FeatureResult:
        enabled = feature_id in self.enabled
        return FeatureResult(ok=True, enabled=enabled, detail="Enabled" if enabled else "Disabled")

    def enable(self, feature_id: str) -> FeatureResult:
        self.enable_log.append(feature_id)
        if feature_id in self.failing:
            return FeatureResult(ok=False, detail="exit 87 (The enable-feature option is unknown.)")
        self.enabled.add(feature_id)
        return FeatureResult(ok=True, enabled=True, restart_needed=self.restart_on_enable)
