"""
Provision use case — verify or install a whole catalog.

Ties together the catalog, the platform toolchain and the resolver,
and folds every outcome into a RunReport:

    environment check  →  prerequisites  →  tools  →  OS features  →  modules

Failures are isolated per item: an InstallFailure becomes a FAIL entry
and the run moves on. Only an EnvironmentFailure stops the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from devprovision.adapters.registry import Toolchain
from devprovision.adapters.shell.command import CommandResult, run_command
from devprovision.core.errors import EnvironmentFailure, InstallFailure
from devprovision.core.models.report import RunReport
from devprovision.core.models.result import ResolutionResult, ResolutionStatus
from devprovision.core.models.tool import FeatureSpec, ProvisionCatalog, ToolSpec
from devprovision.core.services.platform import invoking_user, is_elevated

logger = logging.getLogger(__name__)


def run_provision(
    catalog: ProvisionCatalog,
    toolchain: Toolchain,
    *,
    install: bool = False,
    skip_modules: bool = False,
    skip_features: bool = False,
    upgrade: bool = False,
    require_elevation: bool = True,
    runner: Callable[..., CommandResult] = run_command,
) -> RunReport:
    """Resolve (and optionally install) everything in ``catalog``.

    Args:
        catalog: What to provision.
        toolchain: Adapters for the current platform.
        install: Install missing items; otherwise only report.
        skip_modules: Leave PowerShell modules alone.
        skip_features: Leave OS features alone.
        upgrade: Upgrade installed system packages before the base packages.
        require_elevation: Refuse to install without root/Administrator.
        runner: Command runner for post-install steps (group membership).

    Returns:
        RunReport. ``report.error`` is set when the run stopped early.
    """
    report = RunReport(platform=catalog.platform, mode="install" if install else "verify")

    try:
        _check_environment(toolchain, install=install, require_elevation=require_elevation)
    except EnvironmentFailure as e:
        logger.error("Environment check failed: %s", e)
        report.error = str(e)
        return report

    if install and catalog.prerequisites:
        _install_prerequisites(catalog, toolchain, report, upgrade=upgrade)

    for tool in catalog.tools:
        _provision_tool(tool, toolchain, report, install=install, runner=runner)

    if catalog.features and not skip_features:
        for feature in catalog.features:
            _provision_feature(feature, toolchain, report, install=install)

    if catalog.modules and not skip_modules:
        try:
            _provision_modules(catalog, toolchain, report, install=install)
        except EnvironmentFailure as e:
            logger.error("Module phase aborted: %s", e)
            report.error = str(e)

    logger.info(
        "Run finished: %s (restart needed: %s)", report.counts(), report.restart_needed,
    )
    return report


# ── Environment ─────────────────────────────────────────────────


def _check_environment(toolchain: Toolchain, *, install: bool, require_elevation: bool) -> None:
    manager = toolchain.primary_manager
    if not manager.is_available():
        raise EnvironmentFailure(
            f"Package manager '{manager.name}' not found; cannot provision {toolchain.platform}"
        )
    if install and require_elevation and not is_elevated():
        hint = "an elevated (Administrator) shell" if toolchain.platform == "windows" else "sudo"
        raise EnvironmentFailure(f"Installing requires elevated privileges; re-run with {hint}")


def _install_prerequisites(
    catalog: ProvisionCatalog,
    toolchain: Toolchain,
    report: RunReport,
    *,
    upgrade: bool,
) -> None:
    manager = toolchain.primary_manager

    refreshed = manager.refresh()
    if not refreshed.ok:
        report.add(
            "Package index", "FAIL", refreshed.describe(), kind="prerequisite", fatal=True,
        )
        return

    if upgrade:
        logger.info("Upgrading installed %s packages", manager.name)
        upgraded = manager.upgrade()
        if upgraded.ok:
            report.add("System upgrade", "OK", "installed packages upgraded", kind="prerequisite")
        else:
            # the run continues on the un-upgraded system
            report.add("System upgrade", "FAIL", upgraded.describe(), kind="prerequisite", fatal=True)

    result = manager.install_many(catalog.prerequisites)
    if result.ok:
        report.add("Base packages", "OK", ", ".join(catalog.prerequisites), kind="prerequisite")
    else:
        report.add("Base packages", "FAIL", result.describe(), kind="prerequisite", fatal=True)


# ── Tools ───────────────────────────────────────────────────────


def _provision_tool(
    tool: ToolSpec,
    toolchain: Toolchain,
    report: RunReport,
    *,
    install: bool,
    runner: Callable[..., CommandResult],
) -> None:
    resolver = toolchain.resolver
    try:
        if install:
            result = resolver.ensure_installed(tool)
        else:
            result = resolver.resolve(tool)
    except InstallFailure as e:
        logger.error("Install failed: %s (%s)", e, "; ".join(e.attempts))
        report.add(tool.friendly_name, "FAIL", e.message, fatal=True)
        return
    except Exception as e:
        logger.exception("Unexpected error while provisioning %s", tool.friendly_name)
        report.add(tool.friendly_name, "FAIL", f"unexpected error: {e}", fatal=install)
        return

    if result.installed:
        detail = _installed_detail(result)
        if result.restart_needed:
            report.merge_restart(True)
            detail = f"{detail}; restart required"
        if result.changed and tool.user_group:
            note = _add_user_to_group(tool.user_group, runner)
            if note:
                report.merge_restart(True)
                detail = f"{detail}; {note}"
        report.add(tool.friendly_name, "OK", detail)
    else:
        report.add(tool.friendly_name, "WARN", "not installed")


def _installed_detail(result: ResolutionResult) -> str:
    detail = result.detail or f"found via {result.source.value.replace('_', ' ')}"
    if result.changed:
        detail = f"installed now ({detail})"
    return detail


def _add_user_to_group(group: str, runner: Callable[..., CommandResult]) -> str | None:
    """Add the sudo-invoking user to ``group``. Returns a note for the report."""
    user = invoking_user()
    if user is None:
        return None
    result = runner(["usermod", "-aG", group, user], timeout=30)
    if not result.ok:
        logger.warning("Could not add %s to group %s: %s", user, group, result.describe())
        return None
    logger.warning("User %s added to the %s group; log out and back in for it to take effect", user, group)
    return f"{user} added to group '{group}'"


# ── OS features ─────────────────────────────────────────────────


def _provision_feature(
    feature: FeatureSpec,
    toolchain: Toolchain,
    report: RunReport,
    *,
    install: bool,
) -> None:
    store = toolchain.feature_store
    if store is None or not store.is_available():
        report.add(feature.name, "WARN", "feature store not available", kind="feature")
        return

    state = store.query(feature.feature_id)
    if state.ok and state.enabled:
        report.merge_restart(state.restart_needed)
        report.add(feature.name, "OK", state.detail or "enabled", kind="feature")
        return

    if not install:
        report.add(feature.name, "WARN", state.detail or "not enabled", kind="feature")
        return

    result = store.enable(feature.feature_id)
    if not result.ok:
        report.add(feature.name, "FAIL", result.detail, kind="feature", fatal=True)
        return

    report.merge_restart(result.restart_needed)
    detail = "enabled, restart required" if result.restart_needed else "enabled"
    report.add(feature.name, "OK", detail, kind="feature")


# ── Modules ─────────────────────────────────────────────────────


def _provision_modules(
    catalog: ProvisionCatalog,
    toolchain: Toolchain,
    report: RunReport,
    *,
    install: bool,
) -> None:
    gallery = toolchain.gallery
    if gallery is None or not gallery.is_available():
        raise EnvironmentFailure("PowerShell is not available; cannot check modules")

    resolver = toolchain.resolver
    for module in catalog.modules:
        try:
            if install:
                result = resolver.ensure_module(module)
            else:
                result = resolver.resolve_module(module)
        except InstallFailure as e:
            logger.error("Module install failed: %s", e)
            report.add(module.name, "FAIL", e.message, kind="module", fatal=True)
            continue
        except EnvironmentFailure:
            raise
        except Exception as e:
            logger.exception("Unexpected error while provisioning module %s", module.name)
            report.add(module.name, "FAIL", f"unexpected error: {e}", kind="module", fatal=install)
            continue

        if result.status == ResolutionStatus.INSTALLED:
            detail = result.detail or "installed"
            if result.changed:
                detail = f"installed now ({detail})"
            report.add(module.name, "OK", detail, kind="module")
        elif result.status == ResolutionStatus.INSTALLED_WRONG_SCOPE:
            report.add(module.name, "WARN", f"not in the all-users path: {result.detail}", kind="module")
        elif result.status == ResolutionStatus.CHECK_NEEDED:
            report.add(module.name, "WARN", f"check needed: {result.detail}", kind="module")
        else:
            report.add(module.name, "WARN", "not installed", kind="module")
