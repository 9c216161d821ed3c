"""
Adapter base — the contracts between the resolver and the outside world.

Every external collaborator (package manager, installed-software
manifest, module gallery, OS feature store) is reached through one of
these interfaces. The resolver never shells out directly.

Adapters report failures in their return values. The exceptions are the
read-only listings (``ManifestScanner.find``, ``ModuleGallery.list_installed``):
they raise ``OSError`` and the resolver downgrades that to "inconclusive".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from devprovision.adapters.shell.command import CommandResult
from devprovision.core.models.tool import AptRepository


class Adapter(ABC):
    """Abstract base class for all adapters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'apt', 'winget', 'pwsh')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class PackageManager(Adapter):
    """A system package manager that can list and install packages."""

    @abstractmethod
    def query(self, package_id: str, timeout: float) -> CommandResult:
        """List/query one package id.

        The call MUST honour ``timeout`` and kill the child on expiry.
        Exit code 0 with the id in the output means "installed".
        """

    @abstractmethod
    def install(
        self,
        package_id: str,
        *,
        machine_wide: bool = True,
        extra_args: list[str] | None = None,
    ) -> CommandResult:
        """Install one package id."""

    def install_many(self, package_ids: list[str]) -> CommandResult:
        """Install several packages, one at a time, stopping at the first failure."""
        result = CommandResult(argv=[self.name, "install"], returncode=0)
        for package_id in package_ids:
            result = self.install(package_id)
            if not result.ok:
                break
        return result

    def refresh(self) -> CommandResult:
        """Refresh package indexes. No-op for managers without one."""
        return CommandResult(argv=[self.name, "refresh"], returncode=0)

    def upgrade(self) -> CommandResult:
        """Upgrade every installed package. No-op by default."""
        return CommandResult(argv=[self.name, "upgrade"], returncode=0)

    def ensure_repository(self, repository: AptRepository) -> CommandResult:
        """Register a third-party repository. Unsupported by default."""
        return CommandResult(
            argv=[self.name, "add-repository", repository.name],
            error=f"{self.name} does not support third-party repositories",
        )


class ManifestScanner(Adapter):
    """The OS list of installed software (uninstall keys, dpkg database)."""

    @abstractmethod
    def find(self, pattern: str) -> str | None:
        """Return the first display name matching the glob ``pattern``, or None.

        Raises:
            OSError: the manifest could not be read.
        """


@dataclass
class InstalledModule:
    """One installed copy of a PowerShell module."""

    name: str
    version: str
    path: str


class ModuleGallery(Adapter):
    """A PowerShell module repository plus the local module paths."""

    @abstractmethod
    def list_installed(self, name: str) -> list[InstalledModule]:
        """Every installed copy of ``name`` with its filesystem path.

        Raises:
            OSError: the module paths could not be listed.
        """

    @abstractmethod
    def install(self, name: str, *, all_users: bool = True) -> CommandResult:
        """Install ``name`` from the gallery."""


@dataclass
class FeatureResult:
    """Outcome of enabling (or querying) one OS feature."""

    ok: bool
    enabled: bool = False
    restart_needed: bool = False
    detail: str = ""


class FeatureStore(Adapter):
    """The OS optional-feature store."""

    @abstractmethod
    def query(self, feature_id: str) -> FeatureResult:
        """Report whether ``feature_id`` is enabled."""

    @abstractmethod
    def enable(self, feature_id: str) -> FeatureResult:
        """Enable ``feature_id`` without restarting."""
