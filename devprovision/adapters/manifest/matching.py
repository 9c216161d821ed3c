"""Display-name matching shared by the manifest scanners."""

from __future__ import annotations

from fnmatch import fnmatchcase


def display_name_matches(display_name: str, pattern: str) -> bool:
    """Case-insensitive glob over the whole name, like PowerShell ``-like``.

    ``"Git"`` matches only ``Git``; ``"Microsoft Visual Studio Code*"``
    also matches ``Microsoft Visual Studio Code (User)``.
    """
    return fnmatchcase(display_name.strip().lower(), pattern.strip().lower())
