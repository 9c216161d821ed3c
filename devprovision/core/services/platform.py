"""
Host platform detection — which catalog applies, and who is running us.

Read-only probes over ``platform``, ``/etc/os-release`` and the
process credentials.
"""

from __future__ import annotations

import ctypes
import logging
import os
import platform
from pathlib import Path

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")


def read_os_release(path: Path = OS_RELEASE) -> dict[str, str]:
    """Parse ``/etc/os-release`` into a dict (empty if unreadable)."""
    info: dict[str, str] = {}
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            if "=" in line and not line.startswith("#"):
                key, value = line.split("=", 1)
                info[key.strip()] = value.strip().strip('"')
    except OSError:
        pass
    return info


def detect_platform(os_release: Path = OS_RELEASE) -> str | None:
    """Return ``"windows"``, ``"ubuntu"`` or None for unsupported hosts.

    Ubuntu derivatives (``ID_LIKE=ubuntu``) count as Ubuntu.
    """
    system = platform.system()
    if system == "Windows":
        return "windows"
    if system == "Linux":
        info = read_os_release(os_release)
        ids = {info.get("ID", "")} | set(info.get("ID_LIKE", "").split())
        if "ubuntu" in ids:
            return "ubuntu"
        logger.debug("Unsupported Linux distribution: %s", info.get("ID", "unknown"))
    return None


def is_elevated() -> bool:
    """Whether the process runs as root / Administrator."""
    if os.name == "nt":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0


def invoking_user() -> str | None:
    """The real user behind ``sudo``, if any."""
    user = os.environ.get("SUDO_USER")
    if user and user != "root":
        return user
    return None
