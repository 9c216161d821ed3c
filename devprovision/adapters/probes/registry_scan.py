"""
Registry/manifest scan probe — last resort, no version detail.

Catches tools that are installed but not (yet) on this process's PATH,
e.g. right after a winget install.
"""

from __future__ import annotations

import logging

from devprovision.adapters.base import ManifestScanner
from devprovision.adapters.probes.base import Probe
from devprovision.core.models.result import ProbeOutcome, ResolutionSource
from devprovision.core.models.tool import ToolSpec

logger = logging.getLogger(__name__)


class RegistryScanProbe(Probe):
    def __init__(self, scanner: ManifestScanner):
        self._scanner = scanner

    @property
    def source(self) -> ResolutionSource:
        return ResolutionSource.REGISTRY_SCAN

    def run(self, tool: ToolSpec, timeout: float) -> ProbeOutcome:
        if not tool.registry_name_pattern:
            return ProbeOutcome.inconclusive("no registry pattern")
        if not self._scanner.is_available():
            return ProbeOutcome.inconclusive(f"{self._scanner.name} not available")

        try:
            match = self._scanner.find(tool.registry_name_pattern)
        except OSError as e:
            logger.warning("%s: %s scan failed: %s", tool.friendly_name, self._scanner.name, e)
            return ProbeOutcome.inconclusive(str(e))

        if match:
            logger.debug("%s: manifest entry %r", tool.friendly_name, match)
            return ProbeOutcome.found()
        return ProbeOutcome.absent()
