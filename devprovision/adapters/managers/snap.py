"""
Snap adapter — classic-confined GUI/CLI apps on Ubuntu.
"""

from __future__ import annotations

from devprovision.adapters.base import PackageManager
from devprovision.adapters.shell.command import CommandResult, command_exists, run_command


class SnapManager(PackageManager):
    """``snap list`` / ``snap install``. Snaps are always machine-wide."""

    def __init__(self, install_timeout: float = 1800):
        self._install_timeout = install_timeout

    @property
    def name(self) -> str:
        return "snap"

    def is_available(self) -> bool:
        return command_exists("snap")

    def query(self, package_id: str, timeout: float) -> CommandResult:
        return run_command(["snap", "list", package_id], timeout=timeout)

    def install(
        self,
        package_id: str,
        *,
        machine_wide: bool = True,
        extra_args: list[str] | None = None,
    ) -> CommandResult:
        return run_command(
            ["snap", "install", package_id, *(extra_args or [])],
            timeout=self._install_timeout,
        )
