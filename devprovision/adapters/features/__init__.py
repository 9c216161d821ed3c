"""OS feature stores — Windows optional features via DISM."""

from devprovision.adapters.features.windows import WindowsFeatureStore

__all__ = ["WindowsFeatureStore"]
