"""
PowerShell Gallery adapter — list and install modules through pwsh.

Each installed copy is reported as ``name|version|ModuleBase`` so the
resolver can tell a machine-wide install from a per-user one.
"""

from __future__ import annotations

import logging
import sys

from devprovision.adapters.base import InstalledModule, ModuleGallery
from devprovision.adapters.shell.command import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

_LIST_SCRIPT = (
    "Get-Module -ListAvailable -Name '{name}' | "
    "ForEach-Object {{ '{{0}}|{{1}}|{{2}}' -f $_.Name, $_.Version, $_.ModuleBase }}"
)
_INSTALL_SCRIPT = (
    "Install-Module -Name '{name}' -Scope {scope} -Repository PSGallery "
    "-Force -AllowClobber -Confirm:$false"
)


class PowerShellGallery(ModuleGallery):
    """Module gallery backed by PowerShell 7 (``pwsh``).

    On Windows, falls back to Windows PowerShell (``powershell``)
    when pwsh is absent.
    """

    def __init__(self, list_timeout: float = 120, install_timeout: float = 1800):
        self._list_timeout = list_timeout
        self._install_timeout = install_timeout

    @property
    def name(self) -> str:
        return "pwsh"

    @property
    def shell(self) -> str | None:
        if command_exists("pwsh"):
            return "pwsh"
        if sys.platform == "win32" and command_exists("powershell"):
            return "powershell"
        return None

    def is_available(self) -> bool:
        return self.shell is not None

    def list_installed(self, name: str) -> list[InstalledModule]:
        result = self._run(_LIST_SCRIPT.format(name=_quote(name)), self._list_timeout)
        if not result.ok:
            raise OSError(f"Cannot list module {name}: {result.describe()}")

        modules: list[InstalledModule] = []
        for line in result.stdout.splitlines():
            parts = line.strip().split("|", 2)
            if len(parts) != 3:
                continue
            modules.append(InstalledModule(name=parts[0], version=parts[1], path=parts[2]))
        logger.debug("Module %s: %d installed copies", name, len(modules))
        return modules

    def install(self, name: str, *, all_users: bool = True) -> CommandResult:
        scope = "AllUsers" if all_users else "CurrentUser"
        return self._run(
            _INSTALL_SCRIPT.format(name=_quote(name), scope=scope),
            self._install_timeout,
        )

    def _run(self, script: str, timeout: float) -> CommandResult:
        shell = self.shell
        if shell is None:
            return CommandResult(argv=["pwsh"], not_found=True)
        return run_command(
            [shell, "-NoProfile", "-NonInteractive", "-Command", script],
            timeout=timeout,
        )


def _quote(value: str) -> str:
    """Escape for a single-quoted PowerShell string."""
    return value.replace("'", "''")
