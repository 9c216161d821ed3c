"""
Apt adapter — Debian/Ubuntu system packages.

Queries go to ``dpkg-query`` (local database, fast); installs go to
``apt-get``. Third-party repositories (GitHub CLI, VS Code, Azure CLI,
Docker) are registered the way their vendors document: a dearmored
keyring under ``/etc/apt/keyrings`` plus a ``sources.list.d`` entry.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from devprovision.adapters.base import PackageManager
from devprovision.adapters.shell.command import CommandResult, command_exists, run_command
from devprovision.core.models.tool import AptRepository

logger = logging.getLogger(__name__)

_NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}
_INSTALLED_STATUS = "install ok installed"


class AptManager(PackageManager):
    """apt-get / dpkg-query package manager."""

    def __init__(
        self,
        install_timeout: float = 1800,
        sources_dir: Path = Path("/etc/apt/sources.list.d"),
    ):
        self._install_timeout = install_timeout
        self._sources_dir = sources_dir

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return command_exists("apt-get") and command_exists("dpkg-query")

    def query(self, package_id: str, timeout: float) -> CommandResult:
        result = run_command(
            ["dpkg-query", "-W", "-f=${Package}\t${Status}\n", package_id],
            timeout=timeout,
        )
        # dpkg-query also exits 0 for removed-but-configured packages
        if result.returncode == 0 and _INSTALLED_STATUS not in result.stdout:
            result.returncode = 1
        return result

    def install(
        self,
        package_id: str,
        *,
        machine_wide: bool = True,
        extra_args: list[str] | None = None,
    ) -> CommandResult:
        return run_command(
            ["apt-get", "install", "-y", package_id, *(extra_args or [])],
            timeout=self._install_timeout,
            env_overrides=_NONINTERACTIVE,
        )

    def install_many(self, package_ids: list[str]) -> CommandResult:
        return run_command(
            ["apt-get", "install", "-y", *package_ids],
            timeout=self._install_timeout,
            env_overrides=_NONINTERACTIVE,
        )

    def refresh(self) -> CommandResult:
        return run_command(
            ["apt-get", "update", "-y"],
            timeout=self._install_timeout,
            env_overrides=_NONINTERACTIVE,
        )

    def upgrade(self) -> CommandResult:
        return run_command(
            ["apt-get", "upgrade", "-y"],
            timeout=self._install_timeout,
            env_overrides=_NONINTERACTIVE,
        )

    def ensure_repository(self, repository: AptRepository) -> CommandResult:
        """Install the signing key and sources entry, then refresh.

        Skips everything when the sources entry already exists.
        """
        list_file = self._sources_dir / f"{repository.name}.list"
        if list_file.is_file():
            logger.debug("Repository %s already registered", repository.name)
            return CommandResult(argv=["apt", "add-repository", repository.name], returncode=0)

        keyring = shlex.quote(repository.keyring)
        keyring_dir = shlex.quote(str(Path(repository.keyring).parent))
        script = (
            f"mkdir -p {keyring_dir} && "
            f"curl -fsSL {shlex.quote(repository.key_url)} | gpg --dearmor --yes -o {keyring} && "
            f"chmod go+r {keyring}"
        )
        key_result = run_command(["sh", "-c", script], timeout=120)
        if not key_result.ok:
            logger.warning("Cannot fetch signing key for %s: %s", repository.name, key_result.describe())
            return key_result

        entry = repository.entry.format(arch=_dpkg_architecture(), codename=_codename())
        try:
            self._sources_dir.mkdir(parents=True, exist_ok=True)
            list_file.write_text(entry + "\n", encoding="utf-8")
        except OSError as e:
            return CommandResult(
                argv=["apt", "add-repository", repository.name],
                error=f"Cannot write {list_file}: {e}",
            )

        logger.info("Registered apt repository %s", repository.name)
        return self.refresh()


def _dpkg_architecture() -> str:
    result = run_command(["dpkg", "--print-architecture"], timeout=10)
    return result.first_line or "amd64"


def _codename() -> str:
    """Distribution codename (``jammy``, ``noble``…)."""
    result = run_command(["lsb_release", "-cs"], timeout=10)
    if result.ok and result.first_line:
        return result.first_line
    try:
        for line in Path("/etc/os-release").read_text(encoding="utf-8").splitlines():
            if line.startswith("VERSION_CODENAME="):
                return line.split("=", 1)[1].strip('"')
    except OSError:
        pass
    return "stable"
