"""
Windows optional-feature store — DISM.

Enabling a feature such as ``Microsoft-Windows-Subsystem-Linux`` or
``VirtualMachinePlatform`` usually only takes effect after a restart;
DISM signals that with exit code 3010.
"""

from __future__ import annotations

import logging
import re
import sys

from devprovision.adapters.base import FeatureResult, FeatureStore
from devprovision.adapters.shell.command import command_exists, run_command

logger = logging.getLogger(__name__)

ERROR_SUCCESS_REBOOT_REQUIRED = 3010

_STATE_RE = re.compile(r"^\s*State\s*:\s*(.+?)\s*$", re.MULTILINE)


class WindowsFeatureStore(FeatureStore):
    """``dism /online`` feature queries and enables."""

    def __init__(self, timeout: float = 900):
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "dism"

    def is_available(self) -> bool:
        return sys.platform == "win32" and command_exists("dism")

    def query(self, feature_id: str) -> FeatureResult:
        result = run_command(
            ["dism", "/online", "/English", "/get-featureinfo", f"/featurename:{feature_id}"],
            timeout=self._timeout,
        )
        if not result.ok:
            return FeatureResult(ok=False, detail=result.describe())

        match = _STATE_RE.search(result.stdout)
        state = match.group(1) if match else "Unknown"
        return FeatureResult(
            ok=True,
            enabled=state.lower() == "enabled",
            restart_needed="pending" in state.lower(),
            detail=state,
        )

    def enable(self, feature_id: str) -> FeatureResult:
        result = run_command(
            ["dism", "/online", "/enable-feature", f"/featurename:{feature_id}", "/all", "/norestart"],
            timeout=self._timeout,
        )
        if result.returncode == ERROR_SUCCESS_REBOOT_REQUIRED:
            logger.info("Feature %s enabled, restart required", feature_id)
            return FeatureResult(ok=True, enabled=True, restart_needed=True, detail="restart required")
        if result.ok:
            return FeatureResult(ok=True, enabled=True, detail="enabled")
        return FeatureResult(ok=False, detail=result.describe())
