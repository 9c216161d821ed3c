"""
Installation-state resolver.

Decides, per tool, whether it is installed and from where, by folding
several individually unreliable signal sources in a fixed order:

    Unresolved
      → LocalCommand          (cheap, authoritative when positive)
      → PackageManagerQuery   (time-bounded, killed on timeout)
      → RegistryScan          (manifest fallback, no version)
      → Installed | NotInstalled

The first positive probe wins; later probes are not run. A probe that
crashes is logged and treated as inconclusive, so one bad signal
source never aborts a resolution.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from devprovision.adapters.base import InstalledModule, ModuleGallery, PackageManager
from devprovision.adapters.probes.base import Probe
from devprovision.adapters.shell.command import CommandResult, run_command
from devprovision.core.errors import EnvironmentFailure, InstallFailure
from devprovision.core.models.result import (
    ProbeOutcome,
    ResolutionResult,
    ResolutionSource,
    ResolutionStatus,
)
from devprovision.core.models.tool import ModuleSpec, ToolSpec

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 8.0


class InstallationResolver:
    """Resolve and install tools and modules.

    Args:
        probes: Signal sources, in the order they are consulted.
        managers: Package managers by name (``apt``, ``snap``, ``winget``).
        default_manager: Manager used when a tool does not name one.
        gallery: Module gallery for PowerShell modules (optional).
        runner: Command runner for custom ``install_command`` installers.
        query_timeout: Default bound for package-manager queries.
        install_timeout: Bound for custom ``install_command`` installers.
    """

    def __init__(
        self,
        probes: list[Probe],
        managers: dict[str, PackageManager],
        default_manager: str,
        gallery: ModuleGallery | None = None,
        runner: Callable[..., CommandResult] = run_command,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT,
        install_timeout: float = 1800,
    ):
        self._probes = list(probes)
        self._managers = managers
        self._default_manager = default_manager
        self._gallery = gallery
        self._runner = runner
        self._query_timeout = query_timeout
        self._install_timeout = install_timeout

    @property
    def query_timeout(self) -> float:
        return self._query_timeout

    # ── Tools ────────────────────────────────────────────────────

    def resolve(self, tool: ToolSpec, timeout: float | None = None) -> ResolutionResult:
        """Determine the current installation state of ``tool``."""
        bound = self._query_timeout if timeout is None else timeout

        for probe in self._probes:
            outcome = self._run_probe(probe, tool, bound)
            if outcome.positive:
                logger.info("%s: installed (%s)", tool.friendly_name, probe.source.value)
                return ResolutionResult.for_tool(
                    tool,
                    ResolutionStatus.INSTALLED,
                    source=probe.source,
                    detail=outcome.detail,
                )

        logger.info("%s: not installed", tool.friendly_name)
        return ResolutionResult.for_tool(tool, ResolutionStatus.NOT_INSTALLED)

    def ensure_installed(self, tool: ToolSpec) -> ResolutionResult:
        """Resolve ``tool`` and install it when missing.

        Installed tools are returned untouched, so calling this twice
        installs at most once.

        Raises:
            InstallFailure: every install attempt failed, or the tool is
                still not detected after a successful install.
        """
        current = self.resolve(tool)
        if current.status != ResolutionStatus.NOT_INSTALLED:
            return current

        installed_by, attempts = self._install(tool)

        confirmed = self.resolve(tool)
        if not confirmed.installed:
            raise InstallFailure(
                tool.friendly_name, "still not detected after install", attempts,
            )
        return confirmed.model_copy(
            update={"changed": True, "restart_needed": installed_by.restart_needed},
        )

    def _install(self, tool: ToolSpec) -> tuple[CommandResult, list[str]]:
        """Try each install route in order.

        Returns:
            The successful install result and the attempt log.
        """
        attempts: list[str] = []

        if not tool.candidate_ids:
            if not tool.install_command:
                raise InstallFailure(tool.friendly_name, "no install method defined")
            result = self._runner(tool.install_command, timeout=self._install_timeout)
            attempts.append(f"{' '.join(tool.install_command)}: {_status(result)}")
            if not result.ok:
                raise InstallFailure(tool.friendly_name, "install command failed", attempts)
            return result, attempts

        manager = self._manager_for(tool)

        if tool.repository:
            repo_result = manager.ensure_repository(tool.repository)
            if not repo_result.ok:
                # the package may still come from the default sources
                logger.warning(
                    "%s: repository %s not registered: %s",
                    tool.friendly_name, tool.repository.name, repo_result.describe(),
                )
                attempts.append(f"repository {tool.repository.name}: {repo_result.describe()}")

        for package_id in tool.candidate_ids:
            logger.info("%s: installing %s via %s", tool.friendly_name, package_id, manager.name)
            result = manager.install(package_id, machine_wide=True, extra_args=tool.args_for(package_id))
            attempts.append(f"{package_id}: {_status(result)}")
            if result.ok:
                return result, attempts
            logger.warning("%s: install of %s failed: %s", tool.friendly_name, package_id, result.describe())

        raise InstallFailure(tool.friendly_name, "install failed for every candidate id", attempts)

    def _manager_for(self, tool: ToolSpec) -> PackageManager:
        name = tool.manager or self._default_manager
        manager = self._managers.get(name)
        if manager is None or not manager.is_available():
            raise InstallFailure(tool.friendly_name, f"package manager '{name}' is not available")
        return manager

    @staticmethod
    def _run_probe(probe: Probe, tool: ToolSpec, timeout: float) -> ProbeOutcome:
        try:
            return probe.run(tool, timeout)
        except Exception as e:
            logger.warning(
                "%s: %s probe failed, treating as inconclusive: %s",
                tool.friendly_name, probe.source.value, e,
            )
            return ProbeOutcome.inconclusive(str(e))

    # ── Modules ──────────────────────────────────────────────────

    def resolve_module(self, module: ModuleSpec) -> ResolutionResult:
        """Classify a PowerShell module as Installed, InstalledWrongScope or NotInstalled.

        A listing failure of any kind yields CheckNeeded: presence is unknown.
        """
        gallery = self._require_gallery()
        try:
            copies = gallery.list_installed(module.name)
        except Exception as e:
            logger.warning("%s: module listing failed: %s", module.name, e)
            return ResolutionResult.for_module(module, ResolutionStatus.CHECK_NEEDED, detail=str(e))

        if not copies:
            return ResolutionResult.for_module(module, ResolutionStatus.NOT_INSTALLED)

        fragment = _normalize_path(module.expected_path_fragment)
        machine_wide = [c for c in copies if fragment in _normalize_path(c.path)]
        if machine_wide:
            return ResolutionResult.for_module(
                module, ResolutionStatus.INSTALLED, detail=_newest(machine_wide).version,
            )

        newest = _newest(copies)
        return ResolutionResult.for_module(
            module,
            ResolutionStatus.INSTALLED_WRONG_SCOPE,
            detail=f"{newest.version} at {newest.path}",
        )

    def ensure_module(self, module: ModuleSpec) -> ResolutionResult:
        """Install ``module`` for all users unless it already is.

        Raises:
            InstallFailure: the gallery install failed or the module is
                still not in the machine-wide path afterwards.
        """
        current = self.resolve_module(module)
        if current.status not in (
            ResolutionStatus.NOT_INSTALLED,
            ResolutionStatus.INSTALLED_WRONG_SCOPE,
        ):
            return current

        gallery = self._require_gallery()
        logger.info("%s: installing module for all users", module.name)
        result = gallery.install(module.name, all_users=True)
        if not result.ok:
            raise InstallFailure(module.name, f"Install-Module failed: {result.describe()}")

        confirmed = self.resolve_module(module)
        if not confirmed.installed:
            raise InstallFailure(
                module.name, f"still {confirmed.status.value} after install",
            )
        return confirmed.model_copy(update={"changed": True})

    def _require_gallery(self) -> ModuleGallery:
        if self._gallery is None or not self._gallery.is_available():
            raise EnvironmentFailure("PowerShell is not available; cannot manage modules")
        return self._gallery


def _status(result: CommandResult) -> str:
    return "ok" if result.ok else result.describe()


def _normalize_path(path: str) -> str:
    return path.replace("\\", "/").lower()


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", version))


def _newest(copies: list[InstalledModule]) -> InstalledModule:
    return max(copies, key=lambda c: _version_key(c.version))
