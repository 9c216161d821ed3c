"""
Package-manager query probe — ``dpkg-query`` / ``snap list`` / ``winget list``.

Time-bounded: a query that outlives its timeout is killed and counts
as inconclusive, never as "not installed".
"""

from __future__ import annotations

import logging

from devprovision.adapters.base import PackageManager
from devprovision.adapters.probes.base import Probe
from devprovision.core.models.result import ProbeOutcome, ResolutionSource
from devprovision.core.models.tool import ToolSpec

logger = logging.getLogger(__name__)


class PackageQueryProbe(Probe):
    def __init__(self, managers: dict[str, PackageManager], default_manager: str):
        self._managers = managers
        self._default_manager = default_manager

    @property
    def source(self) -> ResolutionSource:
        return ResolutionSource.PACKAGE_MANAGER_QUERY

    def run(self, tool: ToolSpec, timeout: float) -> ProbeOutcome:
        if not tool.candidate_ids:
            return ProbeOutcome.inconclusive("no candidate ids")

        manager_name = tool.manager or self._default_manager
        manager = self._managers.get(manager_name)
        if manager is None or not manager.is_available():
            return ProbeOutcome.inconclusive(f"{manager_name} not available")

        timed_out: list[str] = []
        for package_id in tool.candidate_ids:
            result = manager.query(package_id, timeout)
            if result.timed_out:
                logger.warning(
                    "%s: %s query for %s timed out after %ss",
                    tool.friendly_name, manager_name, package_id, timeout,
                )
                timed_out.append(package_id)
                continue
            if result.returncode == 0 and package_id.lower() in result.output.lower():
                return ProbeOutcome.found(f"{manager_name}: {package_id}")

        if timed_out:
            return ProbeOutcome.inconclusive(f"query timed out for {', '.join(timed_out)}")
        return ProbeOutcome.absent(f"no {manager_name} package matched")
