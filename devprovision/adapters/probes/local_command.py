"""
Local command probe — run ``<command> <version args>`` from PATH.

Cheap and authoritative when positive. A missing command is not a
failure, just no signal.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from devprovision.adapters.probes.base import Probe
from devprovision.adapters.shell.command import CommandResult, run_command
from devprovision.core.models.result import ProbeOutcome, ResolutionSource
from devprovision.core.models.tool import ToolSpec

logger = logging.getLogger(__name__)


class LocalCommandProbe(Probe):
    def __init__(
        self,
        runner: Callable[..., CommandResult] = run_command,
        command_timeout: float = 30,
    ):
        self._runner = runner
        self._command_timeout = command_timeout

    @property
    def source(self) -> ResolutionSource:
        return ResolutionSource.LOCAL_COMMAND

    def run(self, tool: ToolSpec, timeout: float) -> ProbeOutcome:
        if not tool.local_command:
            return ProbeOutcome.inconclusive("no local command")

        result = self._runner(
            [tool.local_command, *tool.version_argv],
            timeout=self._command_timeout,
        )
        if result.not_found:
            logger.debug("%s: %s not on PATH", tool.friendly_name, tool.local_command)
            return ProbeOutcome.inconclusive(f"{tool.local_command} not on PATH")
        if not result.ok:
            logger.debug("%s: %s failed: %s", tool.friendly_name, tool.local_command, result.describe())
            return ProbeOutcome.inconclusive(result.describe())

        return ProbeOutcome.found(result.first_line or None)
