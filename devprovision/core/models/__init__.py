"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from devprovision.core.models import ToolSpec, ResolutionResult, RunReport
"""

from devprovision.core.models.report import ReportEntry, RunReport
from devprovision.core.models.result import (
    ProbeOutcome,
    ResolutionResult,
    ResolutionSource,
    ResolutionStatus,
)
from devprovision.core.models.tool import (
    AptRepository,
    FeatureSpec,
    ModuleSpec,
    ProvisionCatalog,
    ToolSpec,
)

__all__ = [
    # tool.py
    "AptRepository",
    "FeatureSpec",
    "ModuleSpec",
    "ProvisionCatalog",
    "ToolSpec",
    # result.py
    "ProbeOutcome",
    "ResolutionResult",
    "ResolutionSource",
    "ResolutionStatus",
    # report.py
    "ReportEntry",
    "RunReport",
]
