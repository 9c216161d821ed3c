"""
Probe base — one signal source, one question: "is this tool here?"

Probes are composed by the resolver in a fixed order (cheapest and most
precise first). A probe answers with a ProbeOutcome and should not
raise; the resolver still guards every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from devprovision.core.models.result import ProbeOutcome, ResolutionSource
from devprovision.core.models.tool import ToolSpec


class Probe(ABC):
    """Abstract signal source."""

    @property
    @abstractmethod
    def source(self) -> ResolutionSource:
        """Which ResolutionSource a positive outcome is attributed to."""

    @abstractmethod
    def run(self, tool: ToolSpec, timeout: float) -> ProbeOutcome:
        """Probe ``tool``.

        Args:
            tool: The tool to look for.
            timeout: Upper bound for the package-manager query. Other
                probes apply their own generous timeout.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} source={self.source.value}>"
