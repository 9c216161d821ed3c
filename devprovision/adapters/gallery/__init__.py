"""Module galleries — PowerShell Gallery via pwsh."""

from devprovision.adapters.gallery.powershell import PowerShellGallery

__all__ = ["PowerShellGallery"]
