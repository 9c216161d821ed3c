"""
devprovision — CLI entrypoint.

Usage:
    devprovision --help
    devprovision verify
    sudo devprovision install
    devprovision catalog --json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devprovision import __version__
from devprovision.adapters.registry import Toolchain, build_toolchain
from devprovision.core.config.loader import ConfigError, resolve_catalog
from devprovision.core.config.settings import Settings
from devprovision.core.models.report import ReportEntry, RunReport
from devprovision.core.models.tool import ProvisionCatalog
from devprovision.core.observability.logging_config import resolve_level, setup_logging
from devprovision.core.services.platform import detect_platform

_OUTCOME_STYLE = {
    "OK": ("✅", "green"),
    "WARN": ("⚠️ ", "yellow"),
    "FAIL": ("❌", "red"),
}

_SECTIONS = (
    ("prerequisite", "Prerequisites"),
    ("tool", "Developer tools"),
    ("feature", "OS features"),
    ("module", "PowerShell modules (all users)"),
)


@click.group()
@click.version_option(version=__version__, prog_name="devprovision")
@click.option("--verbose", "-v", is_flag=True, help="Log each probe and install decision.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--platform",
    "platform_name",
    type=click.Choice(["ubuntu", "windows"]),
    default=None,
    help="Target platform (default: auto-detect).",
)
@click.option(
    "--catalog",
    "-c",
    "catalog_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Custom catalog YAML (default: built-in catalog for the platform).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    platform_name: str | None,
    catalog_path: str | None,
) -> None:
    """devprovision — verify and install a developer workstation."""
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env(
            platform=platform_name,
            catalog=Path(catalog_path) if catalog_path else None,
        )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)

    ctx.obj["settings"] = settings
    ctx.obj["quiet"] = quiet

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet, env_level=settings.log_level),
        log_file=settings.log_file,
        log_file_level=settings.log_file_level,
        quiet_third_party=not debug,
    )


def _load_catalog(settings: Settings) -> ProvisionCatalog:
    """Resolve platform + catalog or exit with a message."""
    platform_name = settings.platform or detect_platform()
    if platform_name is None:
        click.secho("❌ Unsupported platform: only Ubuntu and Windows are supported.", fg="red")
        sys.exit(1)
    try:
        return resolve_catalog(platform_name, settings.catalog)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _toolchain(catalog: ProvisionCatalog, timeout: float) -> Toolchain:
    try:
        return build_toolchain(catalog.platform, query_timeout=timeout)
    except ValueError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


# ── verify / install ────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Package-manager query timeout (seconds).",
)
@click.option("--skip-modules", is_flag=True, help="Do not check PowerShell modules.")
@click.option("--skip-features", is_flag=True, help="Do not check OS features.")
@click.pass_context
def verify(
    ctx: click.Context,
    as_json: bool,
    timeout: float | None,
    skip_modules: bool,
    skip_features: bool,
) -> None:
    """Report what is installed. Changes nothing."""
    _run(ctx, install=False, as_json=as_json, timeout=timeout,
         skip_modules=skip_modules, skip_features=skip_features)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Package-manager query timeout (seconds).",
)
@click.option("--skip-modules", is_flag=True, help="Do not install PowerShell modules.")
@click.option("--skip-features", is_flag=True, help="Do not enable OS features.")
@click.option(
    "--upgrade/--no-upgrade",
    default=True,
    show_default=True,
    help="Upgrade installed system packages before installing (apt only).",
)
@click.pass_context
def install(
    ctx: click.Context,
    as_json: bool,
    timeout: float | None,
    skip_modules: bool,
    skip_features: bool,
    upgrade: bool,
) -> None:
    """Install everything that is missing (needs root / Administrator)."""
    _run(ctx, install=True, as_json=as_json, timeout=timeout,
         skip_modules=skip_modules, skip_features=skip_features, upgrade=upgrade)


def _run(
    ctx: click.Context,
    *,
    install: bool,
    as_json: bool,
    timeout: float | None,
    skip_modules: bool,
    skip_features: bool,
    upgrade: bool = False,
) -> None:
    from devprovision.core.use_cases.provision import run_provision

    settings: Settings = ctx.obj["settings"]
    catalog = _load_catalog(settings)
    toolchain = _toolchain(catalog, settings.query_timeout if timeout is None else timeout)

    report = run_provision(
        catalog,
        toolchain,
        install=install,
        skip_modules=skip_modules,
        skip_features=skip_features,
        upgrade=upgrade,
    )

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report, quiet=ctx.obj.get("quiet", False))

    sys.exit(report.exit_code)


def _print_report(report: RunReport, quiet: bool) -> None:
    if report.error and not report.entries:
        click.secho(f"❌ {report.error}", fg="red")
        return

    for kind, title in _SECTIONS:
        entries = report.by_kind(kind)
        if not entries:
            continue
        if not quiet:
            click.secho(f"\n=== {title} ===", fg="cyan", bold=True)
        for entry in entries:
            if quiet and entry.outcome == "OK":
                continue
            _print_entry(entry)

    if report.error:
        click.echo()
        click.secho(f"❌ {report.error}", fg="red")

    counts = report.counts()
    click.echo()
    click.secho("=== Summary ===", fg="cyan", bold=True)
    click.echo(f"   {counts['OK']} ok, {counts['WARN']} warnings, {counts['FAIL']} failed")
    if report.restart_needed:
        click.secho("   ⚠️  A restart (or re-login) is recommended to finish setup.", fg="yellow")
    elif not quiet:
        click.secho("   No restart required.", fg="green")


def _print_entry(entry: ReportEntry) -> None:
    icon, color = _OUTCOME_STYLE[entry.outcome]
    click.echo(f"   {icon} ", nl=False)
    click.secho(f"{entry.name:<34}", fg=color, nl=False)
    click.echo(f" {entry.detail or ''}".rstrip())


# ── catalog ─────────────────────────────────────────────────────


@cli.command("catalog")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show_catalog(ctx: click.Context, as_json: bool) -> None:
    """Show the effective catalog for this platform."""
    catalog = _load_catalog(ctx.obj["settings"])

    if as_json:
        click.echo(json.dumps(catalog.model_dump(exclude_none=True), indent=2))
        return

    click.secho(f"\n📋 {catalog.platform}", fg="cyan", bold=True)
    if catalog.description:
        click.echo(f"   {catalog.description}")

    click.secho(f"\n   Tools: {len(catalog.tools)}", bold=True)
    for tool in catalog.tools:
        ids = ", ".join(tool.candidate_ids) or " ".join(tool.install_command or [])
        manager = f" [{tool.manager}]" if tool.manager else ""
        click.echo(f"     • {tool.friendly_name:<18}{manager} {ids}")

    if catalog.features:
        click.secho(f"\n   Features: {len(catalog.features)}", bold=True)
        for feature in catalog.features:
            click.echo(f"     • {feature.name} ({feature.feature_id})")

    if catalog.modules:
        click.secho(f"\n   Modules: {len(catalog.modules)}", bold=True)
        for module in catalog.modules:
            click.echo(f"     • {module.name}  → {module.expected_path_fragment}")
    click.echo()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
