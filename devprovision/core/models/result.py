"""
ProbeOutcome and ResolutionResult — the resolution contract.

Probes return ProbeOutcomes; the resolver folds them into exactly one
ResolutionResult per tool. Like the adapters that produce them, probes
never raise: a probe that cannot decide says so with ``inconclusive``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from devprovision.core.models.tool import ModuleSpec, ToolSpec


class ResolutionStatus(str, Enum):
    """Terminal states of a single resolution."""

    INSTALLED = "installed"
    INSTALLED_WRONG_SCOPE = "installed_wrong_scope"
    NOT_INSTALLED = "not_installed"
    CHECK_NEEDED = "check_needed"


class ResolutionSource(str, Enum):
    """Which signal source produced the verdict."""

    LOCAL_COMMAND = "local_command"
    PACKAGE_MANAGER_QUERY = "package_manager_query"
    REGISTRY_SCAN = "registry_scan"
    NONE = "none"


class ProbeOutcome(BaseModel):
    """What one signal source could tell us about one tool.

    ``conclusive=False`` means "could not confirm presence or absence":
    the resolver moves on to the next source.
    """

    conclusive: bool = False
    installed: bool = False
    detail: str | None = None
    error: str | None = None

    @property
    def positive(self) -> bool:
        return self.conclusive and self.installed

    @classmethod
    def found(cls, detail: str | None = None) -> ProbeOutcome:
        """The tool is present."""
        return cls(conclusive=True, installed=True, detail=detail)

    @classmethod
    def absent(cls, detail: str | None = None) -> ProbeOutcome:
        """The source is sure the tool is not there."""
        return cls(conclusive=True, installed=False, detail=detail)

    @classmethod
    def inconclusive(cls, error: str | None = None) -> ProbeOutcome:
        """The source could not decide (missing binary, timeout, crash)."""
        return cls(conclusive=False, installed=False, error=error)


class ResolutionResult(BaseModel):
    """Outcome of resolving one tool or module. Never persisted."""

    name: str
    status: ResolutionStatus
    source: ResolutionSource = ResolutionSource.NONE
    detail: str | None = None
    changed: bool = False     # an install happened during this call
    restart_needed: bool = False
    tool: ToolSpec | None = None
    module: ModuleSpec | None = None

    @property
    def installed(self) -> bool:
        return self.status == ResolutionStatus.INSTALLED

    @property
    def present(self) -> bool:
        """Installed in any scope."""
        return self.status in (
            ResolutionStatus.INSTALLED,
            ResolutionStatus.INSTALLED_WRONG_SCOPE,
        )

    @classmethod
    def for_tool(
        cls,
        tool: ToolSpec,
        status: ResolutionStatus,
        source: ResolutionSource = ResolutionSource.NONE,
        detail: str | None = None,
    ) -> ResolutionResult:
        return cls(
            name=tool.friendly_name,
            status=status,
            source=source,
            detail=detail,
            tool=tool,
        )

    @classmethod
    def for_module(
        cls,
        module: ModuleSpec,
        status: ResolutionStatus,
        detail: str | None = None,
    ) -> ResolutionResult:
        return cls(
            name=module.name,
            status=status,
            detail=detail,
            module=module,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "source": self.source.value,
            "detail": self.detail,
            "changed": self.changed,
            "restart_needed": self.restart_needed,
        }
