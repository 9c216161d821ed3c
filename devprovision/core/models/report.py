"""
RunReport — the summary of one provisioning run.

Each tool, module and feature contributes exactly one ReportEntry.
The restart accumulator lives here and is returned from the run
instead of being a process-wide flag.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Outcome = Literal["OK", "FAIL", "WARN"]
EntryKind = Literal["prerequisite", "tool", "feature", "module"]


class ReportEntry(BaseModel):
    """One line of the status summary."""

    name: str
    kind: EntryKind = "tool"
    outcome: Outcome = "OK"
    detail: str | None = None
    fatal: bool = False      # an install step failed outright


class RunReport(BaseModel):
    """Everything a run observed and did."""

    platform: str = ""
    mode: Literal["verify", "install"] = "verify"
    entries: list[ReportEntry] = Field(default_factory=list)
    restart_needed: bool = False
    error: str | None = None  # EnvironmentFailure, run stopped early

    def add(
        self,
        name: str,
        outcome: Outcome,
        detail: str | None = None,
        *,
        kind: EntryKind = "tool",
        fatal: bool = False,
    ) -> ReportEntry:
        entry = ReportEntry(name=name, kind=kind, outcome=outcome, detail=detail, fatal=fatal)
        self.entries.append(entry)
        return entry

    def merge_restart(self, needed: bool) -> None:
        """Fold one operation's restart requirement into the accumulator."""
        self.restart_needed = self.restart_needed or needed

    def by_kind(self, kind: EntryKind) -> list[ReportEntry]:
        return [e for e in self.entries if e.kind == kind]

    @property
    def failed(self) -> list[ReportEntry]:
        return [e for e in self.entries if e.fatal]

    @property
    def exit_code(self) -> int:
        """Non-zero only for environment failures or failed installs."""
        if self.error or self.failed:
            return 1
        return 0

    def counts(self) -> dict[str, int]:
        counts = {"OK": 0, "FAIL": 0, "WARN": 0}
        for entry in self.entries:
            counts[entry.outcome] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "platform": self.platform,
            "mode": self.mode,
            "entries": [e.model_dump() for e in self.entries],
            "counts": self.counts(),
            "restart_needed": self.restart_needed,
            "exit_code": self.exit_code,
        }
        if self.error:
            result["error"] = self.error
        return result
