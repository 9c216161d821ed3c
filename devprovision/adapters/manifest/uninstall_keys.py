"""
Uninstall-key scanner — the Windows "Apps & features" list.

Reads ``DisplayName`` under every ``...\\CurrentVersion\\Uninstall``
subkey, machine-wide (both registry views) and per-user.
"""

from __future__ import annotations

import logging
import sys

from devprovision.adapters.base import ManifestScanner
from devprovision.adapters.manifest.matching import display_name_matches

logger = logging.getLogger(__name__)

UNINSTALL_PATHS = (
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"),
    ("HKEY_CURRENT_USER", r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
)


class UninstallKeyScanner(ManifestScanner):
    """Registry-backed manifest scan. Windows only."""

    @property
    def name(self) -> str:
        return "registry"

    def is_available(self) -> bool:
        return sys.platform == "win32"

    def find(self, pattern: str) -> str | None:
        for display_name in self.display_names():
            if display_name_matches(display_name, pattern):
                return display_name
        return None

    def display_names(self) -> list[str]:
        """All DisplayName values across the uninstall hives."""
        if sys.platform != "win32":
            raise OSError("registry scan is only available on Windows")

        import winreg

        names: list[str] = []
        for hive_name, path in UNINSTALL_PATHS:
            hive = getattr(winreg, hive_name)
            try:
                root = winreg.OpenKey(hive, path)
            except FileNotFoundError:
                continue
            with root:
                subkey_count = winreg.QueryInfoKey(root)[0]
                for index in range(subkey_count):
                    try:
                        sub_name = winreg.EnumKey(root, index)
                        with winreg.OpenKey(root, sub_name) as sub:
                            value, _ = winreg.QueryValueEx(sub, "DisplayName")
                    except OSError:
                        continue
                    if isinstance(value, str) and value:
                        names.append(value)
        logger.debug("Uninstall keys: %d display names", len(names))
        return names
