"""
Error taxonomy for provisioning runs.

Inconclusive probes are not errors at all (see ``ProbeOutcome``) and
unexpected probe crashes are logged and downgraded where they happen.
What remains are the two failures that cross component boundaries.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for provisioning failures."""


class InstallFailure(ProvisionError):
    """An install step failed, or the tool is still missing afterwards.

    Caught at the tool boundary: the run continues with the next tool
    but the final exit status reflects the failure.
    """

    def __init__(self, name: str, message: str, attempts: list[str] | None = None):
        super().__init__(f"{name}: {message}")
        self.name = name
        self.message = message
        self.attempts = attempts or []


class EnvironmentFailure(ProvisionError):
    """The installer itself is unusable (missing package manager, no privileges).

    Fatal for the whole run: reported once, no further work attempted.
    """
