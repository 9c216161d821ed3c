"""Signal sources — the three ways to tell whether a tool is installed."""

from devprovision.adapters.probes.base import Probe
from devprovision.adapters.probes.local_command import LocalCommandProbe
from devprovision.adapters.probes.package_query import PackageQueryProbe
from devprovision.adapters.probes.registry_scan import RegistryScanProbe

__all__ = ["LocalCommandProbe", "PackageQueryProbe", "Probe", "RegistryScanProbe"]
