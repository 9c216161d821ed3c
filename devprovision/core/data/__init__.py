"""
Built-in data — the catalogs shipped with the package.

Usage::

    from devprovision.core.data import builtin_catalog_path, builtin_platforms

    path = builtin_catalog_path("ubuntu")   # .../catalogs/ubuntu.yml
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent
_CATALOG_DIR = _DATA_DIR / "catalogs"


def builtin_platforms() -> list[str]:
    """Platforms that have a built-in catalog."""
    return sorted(p.stem for p in _CATALOG_DIR.glob("*.yml"))


def builtin_catalog_path(platform: str) -> Path | None:
    """Path to the built-in catalog for ``platform``, or None."""
    path = _CATALOG_DIR / f"{platform}.yml"
    if not path.is_file():
        logger.warning("Catalog file not found: %s", path)
        return None
    return path
