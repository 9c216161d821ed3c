"""
Catalog models — what the provisioner knows about tools, modules and features.

A ToolSpec describes one logical tool and every signal source that can
tell us whether it is present. Catalogs are loaded from YAML
(see ``core/config/loader.py``) and validated against these models.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class AptRepository(BaseModel):
    """A third-party apt repository that must exist before installing.

    ``entry`` is the sources.list line; ``{arch}`` and ``{codename}``
    are substituted at registration time.
    """

    name: str                 # file stem under /etc/apt/sources.list.d/
    key_url: str
    keyring: str              # e.g. /etc/apt/keyrings/docker.gpg
    entry: str


class ToolSpec(BaseModel):
    """One logical tool and the ways to detect and install it."""

    friendly_name: str
    candidate_ids: list[str] = Field(default_factory=list)   # preference order
    local_command: str | None = None
    version_args: str | None = None
    registry_name_pattern: str | None = None

    # ── Install knobs ────────────────────────────────────────────
    manager: str | None = None          # None = platform default
    install_args: list[str] = Field(default_factory=list)
    candidate_args: dict[str, list[str]] = Field(default_factory=dict)   # per-id, replaces install_args
    install_command: list[str] | None = None
    repository: AptRepository | None = None
    user_group: str | None = None

    @model_validator(mode="after")
    def _check_identifiable(self) -> ToolSpec:
        if not self.candidate_ids and not self.local_command:
            raise ValueError(
                f"Tool '{self.friendly_name}' needs at least one candidate id "
                "or a local command"
            )
        return self

    def args_for(self, package_id: str) -> list[str]:
        """Extra install arguments for one candidate id."""
        return self.candidate_args.get(package_id, self.install_args)

    @property
    def version_argv(self) -> list[str]:
        """``version_args`` split into argv form."""
        return self.version_args.split() if self.version_args else []


class ModuleSpec(BaseModel):
    """A PowerShell module expected in the machine-wide module path."""

    name: str
    expected_path_fragment: str


class FeatureSpec(BaseModel):
    """An optional OS feature (e.g. Windows ``Microsoft-Windows-Subsystem-Linux``)."""

    name: str
    feature_id: str


class ProvisionCatalog(BaseModel):
    """Everything one platform's provisioning run covers."""

    platform: str
    description: str = ""
    prerequisites: list[str] = Field(default_factory=list)
    tools: list[ToolSpec] = Field(default_factory=list)
    modules: list[ModuleSpec] = Field(default_factory=list)
    features: list[FeatureSpec] = Field(default_factory=list)

    def get_tool(self, name: str) -> ToolSpec | None:
        """Look up a tool by friendly name (case-insensitive)."""
        for tool in self.tools:
            if tool.friendly_name.lower() == name.lower():
                return tool
        return None
