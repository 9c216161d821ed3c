"""Adapters — bindings for package managers, manifests and galleries.

Public re-exports for convenient access. The platform wiring lives in
``devprovision.adapters.registry``.
"""

from devprovision.adapters.base import (
    Adapter,
    FeatureStore,
    ManifestScanner,
    ModuleGallery,
    PackageManager,
)

__all__ = [
    "Adapter",
    "FeatureStore",
    "ManifestScanner",
    "ModuleGallery",
    "PackageManager",
]
