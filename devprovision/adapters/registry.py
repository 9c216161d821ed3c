"""
Toolchain registry — wires the adapters for one platform.

The use case never constructs adapters itself; it asks for the
toolchain of the current platform and gets back a resolver with the
right probes, package managers, manifest scanner, module gallery and
feature store already plugged in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from devprovision.adapters.base import FeatureStore, ManifestScanner, ModuleGallery, PackageManager
from devprovision.adapters.features.windows import WindowsFeatureStore
from devprovision.adapters.gallery.powershell import PowerShellGallery
from devprovision.adapters.managers.apt import AptManager
from devprovision.adapters.managers.snap import SnapManager
from devprovision.adapters.managers.winget import WingetManager
from devprovision.adapters.manifest.dpkg import DpkgScanner
from devprovision.adapters.manifest.uninstall_keys import UninstallKeyScanner
from devprovision.adapters.probes.local_command import LocalCommandProbe
from devprovision.adapters.probes.package_query import PackageQueryProbe
from devprovision.adapters.probes.registry_scan import RegistryScanProbe
from devprovision.core.services.resolver import DEFAULT_QUERY_TIMEOUT, InstallationResolver

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS = ("ubuntu", "windows")


@dataclass
class Toolchain:
    """Everything a provisioning run talks to on one platform."""

    platform: str
    resolver: InstallationResolver
    primary_manager: PackageManager
    managers: dict[str, PackageManager] = field(default_factory=dict)
    scanner: ManifestScanner | None = None
    gallery: ModuleGallery | None = None
    feature_store: FeatureStore | None = None

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every adapter in the toolchain."""
        adapters: list[Any] = [*self.managers.values(), self.scanner, self.gallery, self.feature_store]
        status = {}
        for adapter in adapters:
            if adapter is None:
                continue
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[adapter.name] = {
                "name": adapter.name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status


def assemble_toolchain(
    platform: str,
    managers: dict[str, PackageManager],
    default_manager: str,
    scanner: ManifestScanner,
    gallery: ModuleGallery | None = None,
    feature_store: FeatureStore | None = None,
    query_timeout: float = DEFAULT_QUERY_TIMEOUT,
    local_probe: LocalCommandProbe | None = None,
) -> Toolchain:
    """Build a Toolchain from explicit adapters (real or fake)."""
    probes = [
        local_probe or LocalCommandProbe(),
        PackageQueryProbe(managers, default_manager),
        RegistryScanProbe(scanner),
    ]
    resolver = InstallationResolver(
        probes=probes,
        managers=managers,
        default_manager=default_manager,
        gallery=gallery,
        query_timeout=query_timeout,
    )
    return Toolchain(
        platform=platform,
        resolver=resolver,
        primary_manager=managers[default_manager],
        managers=managers,
        scanner=scanner,
        gallery=gallery,
        feature_store=feature_store,
    )


def build_toolchain(platform: str, query_timeout: float = DEFAULT_QUERY_TIMEOUT) -> Toolchain:
    """The real adapters for ``platform`` (``ubuntu`` or ``windows``).

    Raises:
        ValueError: unsupported platform.
    """
    if platform == "ubuntu":
        toolchain = assemble_toolchain(
            platform,
            managers={"apt": AptManager(), "snap": SnapManager()},
            default_manager="apt",
            scanner=DpkgScanner(),
            gallery=PowerShellGallery(),
            query_timeout=query_timeout,
        )
    elif platform == "windows":
        toolchain = assemble_toolchain(
            platform,
            managers={"winget": WingetManager()},
            default_manager="winget",
            scanner=UninstallKeyScanner(),
            gallery=PowerShellGallery(),
            feature_store=WindowsFeatureStore(),
            query_timeout=query_timeout,
        )
    else:
        raise ValueError(
            f"Unsupported platform '{platform}'. Valid: {', '.join(SUPPORTED_PLATFORMS)}"
        )

    logger.debug("Built %s toolchain: %s", platform, list(toolchain.adapter_status()))
    return toolchain
