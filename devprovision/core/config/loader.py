"""
Catalog loader — reads a provisioning catalog YAML into domain models.

A catalog lists the tools, PowerShell modules and OS features one
platform's run covers. Built-in catalogs ship in ``core/data/catalogs``;
a custom one can be passed with ``--catalog`` or ``DEVPROV_CATALOG``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from devprovision.core.data import builtin_catalog_path
from devprovision.core.models.tool import ProvisionCatalog

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a catalog is invalid or missing."""


def load_catalog(path: Path) -> ProvisionCatalog:
    """Load and validate a catalog file.

    Args:
        path: Path to a catalog YAML file.

    Returns:
        Validated ProvisionCatalog.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Catalog file not found: {path}")

    logger.debug("Loading catalog from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "catalog" key or be flat
    catalog_data = data.get("catalog", data)

    try:
        catalog = ProvisionCatalog.model_validate(catalog_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid catalog {path}: {e}") from e

    _check_unique_names(catalog, path)

    logger.info(
        "Loaded %s catalog: %d tools, %d modules, %d features",
        catalog.platform, len(catalog.tools), len(catalog.modules), len(catalog.features),
    )
    return catalog


def load_builtin_catalog(platform: str) -> ProvisionCatalog:
    """Load the catalog shipped for ``platform``.

    Raises:
        ConfigError: No built-in catalog for this platform.
    """
    path = builtin_catalog_path(platform)
    if path is None:
        raise ConfigError(f"No built-in catalog for platform '{platform}'")
    return load_catalog(path)


def resolve_catalog(platform: str, catalog_path: Path | None = None) -> ProvisionCatalog:
    """Explicit catalog file if given, else the built-in one.

    Raises:
        ConfigError: the catalog cannot be loaded, or it targets another platform.
    """
    if catalog_path is None:
        return load_builtin_catalog(platform)

    catalog = load_catalog(catalog_path)
    if catalog.platform != platform:
        raise ConfigError(
            f"Catalog {catalog_path} targets '{catalog.platform}', "
            f"but this run is for '{platform}'"
        )
    return catalog


def _check_unique_names(catalog: ProvisionCatalog, path: Path) -> None:
    seen: set[str] = set()
    for tool in catalog.tools:
        key = tool.friendly_name.lower()
        if key in seen:
            raise ConfigError(f"Duplicate tool '{tool.friendly_name}' in {path}")
        seen.add(key)
