"""Package managers — apt, snap, winget."""

from devprovision.adapters.managers.apt import AptManager
from devprovision.adapters.managers.snap import SnapManager
from devprovision.adapters.managers.winget import WingetManager

__all__ = ["AptManager", "SnapManager", "WingetManager"]
