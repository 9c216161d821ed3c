"""
Dpkg manifest scanner — reads ``/var/lib/dpkg/status`` directly.

This is the Ubuntu counterpart of the Windows uninstall-key scan: it
catches tools installed by package but missing from PATH.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devprovision.adapters.base import ManifestScanner
from devprovision.adapters.manifest.matching import display_name_matches

logger = logging.getLogger(__name__)

DPKG_STATUS = Path("/var/lib/dpkg/status")


class DpkgScanner(ManifestScanner):
    """Match installed packages by package name."""

    def __init__(self, status_file: Path = DPKG_STATUS):
        self._status_file = status_file

    @property
    def name(self) -> str:
        return "dpkg"

    def is_available(self) -> bool:
        return self._status_file.is_file()

    def find(self, pattern: str) -> str | None:
        raw = self._status_file.read_text(encoding="utf-8", errors="replace")
        for stanza in raw.split("\n\n"):
            fields = _parse_stanza(stanza)
            if "install ok installed" not in fields.get("Status", ""):
                continue
            package = fields.get("Package", "")
            if package and display_name_matches(package, pattern):
                logger.debug("dpkg match for %r: %s", pattern, package)
                return package
        return None


def _parse_stanza(stanza: str) -> dict[str, str]:
    """Parse the single-line fields of one RFC-822 style stanza."""
    fields: dict[str, str] = {}
    for line in stanza.splitlines():
        if not line or line[0].isspace() or ":" not in line:
            continue
        key, _, value = line.partition(":")
        fields[key] = value.strip()
    return fields
