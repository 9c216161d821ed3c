"""Installed-software manifests — Windows uninstall keys, dpkg database."""

from devprovision.adapters.manifest.dpkg import DpkgScanner
from devprovision.adapters.manifest.matching import display_name_matches
from devprovision.adapters.manifest.uninstall_keys import UninstallKeyScanner

__all__ = ["DpkgScanner", "UninstallKeyScanner", "display_name_matches"]
