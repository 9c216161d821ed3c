"""devprovision — developer workstation provisioner for Ubuntu and Windows."""

__version__ = "0.1.0"
