"""
Winget adapter — Windows Package Manager.

``winget list`` is notoriously slow and occasionally hangs on source
agreement prompts or a stale index, which is why every query is
time-bounded by the caller.
"""

from __future__ import annotations

import logging

from devprovision.adapters.base import PackageManager
from devprovision.adapters.shell.command import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

_AGREEMENTS = ["--accept-source-agreements"]

# winget exit codes that mean "nothing to do, it is already there"
_ALREADY_INSTALLED_HRESULTS = (
    0x8A15002B,   # APPINSTALLER_CLI_ERROR_UPDATE_NOT_APPLICABLE
    0x8A150061,   # APPINSTALLER_CLI_ERROR_PACKAGE_ALREADY_INSTALLED
)
# installed, but finishing needs a restart
_REBOOT_REQUIRED_HRESULTS = (
    0x8A150109,   # APPINSTALLER_CLI_ERROR_INSTALL_REBOOT_REQUIRED_TO_FINISH
    0x8A15010A,   # APPINSTALLER_CLI_ERROR_INSTALL_REBOOT_REQUIRED_FOR_INSTALL
)
ERROR_SUCCESS_REBOOT_REQUIRED = 3010


def _both_signs(hresults: tuple[int, ...]) -> frozenset[int]:
    # Windows reports the DWORD unsigned; some shells hand it back signed
    return frozenset(code for h in hresults for code in (h, h - (1 << 32)))


ALREADY_INSTALLED_CODES = _both_signs(_ALREADY_INSTALLED_HRESULTS)
REBOOT_REQUIRED_CODES = _both_signs(_REBOOT_REQUIRED_HRESULTS) | {ERROR_SUCCESS_REBOOT_REQUIRED}


class WingetManager(PackageManager):
    """``winget list`` / ``winget install`` with exact id matching."""

    def __init__(self, install_timeout: float = 1800):
        self._install_timeout = install_timeout

    @property
    def name(self) -> str:
        return "winget"

    def is_available(self) -> bool:
        return command_exists("winget")

    def query(self, package_id: str, timeout: float) -> CommandResult:
        return run_command(
            ["winget", "list", "--id", package_id, "--exact", *_AGREEMENTS],
            timeout=timeout,
        )

    def install(
        self,
        package_id: str,
        *,
        machine_wide: bool = True,
        extra_args: list[str] | None = None,
    ) -> CommandResult:
        argv = [
            "winget", "install", "--id", package_id, "--exact", "--silent",
            "--accept-package-agreements", *_AGREEMENTS,
        ]
        if machine_wide:
            argv += ["--scope", "machine"]
        argv += extra_args or []
        result = run_command(argv, timeout=self._install_timeout)
        if result.returncode in ALREADY_INSTALLED_CODES:
            result.returncode = 0
        elif result.returncode in REBOOT_REQUIRED_CODES:
            logger.info("%s installed; a restart is required to finish", package_id)
            result.returncode = 0
            result.restart_needed = True
        return result
