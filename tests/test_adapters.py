"""
Tests for the platform adapters — package managers, manifest scanners,
module gallery, feature store, toolchain registry and mocks.
"""

import sys

import pytest

from devprovision.adapters.features.windows import WindowsFeatureStore
from devprovision.adapters.gallery.powershell import PowerShellGallery
from devprovision.adapters.managers.apt import AptManager
from devprovision.adapters.managers.winget import (
    ALREADY_INSTALLED_CODES,
    REBOOT_REQUIRED_CODES,
    WingetManager,
)
from devprovision.adapters.manifest.dpkg import DpkgScanner
from devprovision.adapters.manifest.matching import display_name_matches
from devprovision.adapters.manifest.uninstall_keys import UninstallKeyScanner
from devprovision.adapters.probes.package_query import PackageQueryProbe
from devprovision.adapters.probes.registry_scan import RegistryScanProbe
from devprovision.adapters.mock import MockPackageManager, MockScanner
from devprovision.adapters.registry import build_toolchain
from devprovision.adapters.shell.command import CommandResult
from devprovision.core.config.loader import load_builtin_catalog
from devprovision.core.models import AptRepository, ToolSpec

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")


class _Recorder:
    """Stand-in for run_command that replays one canned result."""

    def __init__(self, result: CommandResult):
        self.result = result
        self.calls: list[list[str]] = []

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        self.result.argv = list(argv)
        return self.result


# ── Display-name matching ───────────────────────────────────────────


class TestDisplayNameMatching:
    def test_exact_name(self):
        assert display_name_matches("Git", "Git")
        assert display_name_matches("git", "Git")

    def test_no_substring_matches(self):
        assert not display_name_matches("GitHub CLI", "Git")
        assert not display_name_matches("libgit2-1.7", "git")

    def test_wildcards(self):
        assert display_name_matches("Microsoft Visual Studio Code (User)", "Microsoft Visual Studio Code*")
        assert display_name_matches("Python 3.12.2 (64-bit)", "Python 3.*")
        assert not display_name_matches("Python Launcher", "Python 3.*")


# ── Dpkg scanner ────────────────────────────────────────────────────

_DPKG_STATUS = """\
Package: git
Status: install ok installed
Priority: optional
Version: 1:2.43.0-1ubuntu7
Description: fast, scalable, distributed revision control system
 Git is popular.

Package: docker-ce
Status: deinstall ok config-files
Version: 5:24.0.7-1~ubuntu.22.04~jammy

Package: powershell
Status: install ok installed
Version: 7.4.1-1.deb
"""


class TestDpkgScanner:
    @pytest.fixture
    def scanner(self, tmp_path):
        status = tmp_path / "status"
        status.write_text(_DPKG_STATUS)
        return DpkgScanner(status_file=status)

    def test_finds_installed_package(self, scanner):
        assert scanner.find("git") == "git"
        assert scanner.find("powershell*") == "powershell"

    def test_ignores_removed_package(self, scanner):
        assert scanner.find("docker-ce") is None

    def test_continuation_lines_ignored(self, scanner):
        assert scanner.find("Git is popular.") is None

    def test_missing_status_file(self, tmp_path):
        scanner = DpkgScanner(status_file=tmp_path / "nope")
        assert not scanner.is_available()
        with pytest.raises(OSError):
            scanner.find("git")


class TestUninstallKeyScanner:
    @pytest.mark.skipif(sys.platform == "win32", reason="registry exists on Windows")
    def test_unavailable_off_windows(self):
        scanner = UninstallKeyScanner()
        assert not scanner.is_available()
        with pytest.raises(OSError):
            scanner.find("Git")

    def test_find_uses_glob_matching(self, monkeypatch):
        scanner = UninstallKeyScanner()
        monkeypatch.setattr(scanner, "display_names", lambda: ["GitHub CLI", "Git", "Docker Desktop"])

        assert scanner.find("Git") == "Git"
        assert scanner.find("Docker Desktop*") == "Docker Desktop"
        assert scanner.find("Bicep*") is None


# ── Apt ─────────────────────────────────────────────────────────────


@posix_only
class TestAptManager:
    def test_query_installed(self, fake_bin):
        fake_bin("dpkg-query", 'printf "git\\tinstall ok installed\\n"')

        result = AptManager().query("git", timeout=8)

        assert result.returncode == 0
        assert "git" in result.output

    def test_query_config_files_only_is_not_installed(self, fake_bin):
        fake_bin("dpkg-query", 'printf "docker-ce\\tdeinstall ok config-files\\n"')

        result = AptManager().query("docker-ce", timeout=8)

        assert result.returncode == 1

    def test_query_unknown_package(self, fake_bin):
        fake_bin("dpkg-query", 'echo "dpkg-query: no packages found matching gh" >&2\nexit 1')

        result = AptManager().query("gh", timeout=8)

        assert result.returncode == 1

    def test_install_argv(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", recorder)

        AptManager().install("python3", extra_args=["python3-pip", "python3-venv"])

        assert recorder.calls == [["apt-get", "install", "-y", "python3", "python3-pip", "python3-venv"]]

    @pytest.mark.parametrize("package_id, expected", [
        ("docker-ce", ["apt-get", "install", "-y", "docker-ce", "docker-ce-cli", "containerd.io",
                       "docker-buildx-plugin", "docker-compose-plugin"]),
        ("docker.io", ["apt-get", "install", "-y", "docker.io"]),
    ])
    def test_docker_candidates_install_their_own_packages(self, monkeypatch, package_id, expected):
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", recorder)
        docker = load_builtin_catalog("ubuntu").get_tool("Docker Engine")

        AptManager().install(package_id, extra_args=docker.args_for(package_id))

        assert recorder.calls == [expected]

    def test_install_many_is_one_transaction(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", recorder)

        result = AptManager().install_many(["curl", "gnupg", "ca-certificates"])

        assert result.ok
        assert recorder.calls == [["apt-get", "install", "-y", "curl", "gnupg", "ca-certificates"]]

    def test_upgrade_argv(self, monkeypatch):
        seen = {}

        def fake_run(argv, **kwargs):
            seen["argv"] = argv
            seen.update(kwargs)
            return CommandResult(argv=argv, returncode=0)

        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", fake_run)

        assert AptManager().upgrade().ok
        assert seen["argv"] == ["apt-get", "upgrade", "-y"]
        assert seen["env_overrides"]["DEBIAN_FRONTEND"] == "noninteractive"

    def test_existing_repository_is_skipped(self, tmp_path, monkeypatch):
        (tmp_path / "docker.list").write_text("deb https://download.docker.com/linux/ubuntu jammy stable\n")
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", recorder)
        repo = AptRepository(name="docker", key_url="https://x/gpg", keyring="/etc/apt/keyrings/docker.gpg",
                             entry="deb [arch={arch}] https://x {codename} stable")

        result = AptManager(sources_dir=tmp_path).ensure_repository(repo)

        assert result.ok
        assert recorder.calls == []

    def test_registers_repository(self, tmp_path, monkeypatch):
        monkeypatch.setattr("devprovision.adapters.managers.apt._dpkg_architecture", lambda: "arm64")
        monkeypatch.setattr("devprovision.adapters.managers.apt._codename", lambda: "noble")
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", recorder)
        repo = AptRepository(name="docker", key_url="https://x/gpg", keyring="/etc/apt/keyrings/docker.gpg",
                             entry="deb [arch={arch}] https://x {codename} stable")

        result = AptManager(sources_dir=tmp_path).ensure_repository(repo)

        assert result.ok
        assert (tmp_path / "docker.list").read_text() == "deb [arch=arm64] https://x noble stable\n"
        assert recorder.calls[0][:2] == ["sh", "-c"]
        assert "gpg --dearmor" in recorder.calls[0][2]
        assert recorder.calls[-1] == ["apt-get", "update", "-y"]

    def test_key_failure_writes_nothing(self, tmp_path, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=22, stderr="curl: (22) 404"))
        monkeypatch.setattr("devprovision.adapters.managers.apt.run_command", recorder)
        repo = AptRepository(name="gh", key_url="https://x/gpg", keyring="/k/gh.gpg", entry="deb x")

        result = AptManager(sources_dir=tmp_path).ensure_repository(repo)

        assert not result.ok
        assert not (tmp_path / "gh.list").exists()


# ── Winget ──────────────────────────────────────────────────────────


class TestWingetManager:
    @pytest.mark.parametrize("code", [0x8A150061, 0x8A150061 - (1 << 32), 0x8A15002B])
    def test_already_installed_is_success(self, monkeypatch, code):
        recorder = _Recorder(CommandResult(returncode=code))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        result = WingetManager().install("Git.Git")

        assert result.ok
        assert code in ALREADY_INSTALLED_CODES

    def test_install_is_machine_scope_and_silent(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        WingetManager().install("Microsoft.VisualStudioCode")

        argv = recorder.calls[0]
        assert argv[:5] == ["winget", "install", "--id", "Microsoft.VisualStudioCode", "--exact"]
        assert "--silent" in argv
        assert argv[-2:] == ["--scope", "machine"]

    def test_real_failure_stays_failure(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0x8A150014))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        assert not WingetManager().install("No.Such.Package").ok

    @pytest.mark.parametrize("code", [0x8A150109, 0x8A15010A - (1 << 32), 3010])
    def test_reboot_required_is_success_with_restart(self, monkeypatch, code):
        recorder = _Recorder(CommandResult(returncode=code))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        result = WingetManager().install("Microsoft.DotNet.SDK.8")

        assert result.ok
        assert result.restart_needed
        assert code in REBOOT_REQUIRED_CODES

    def test_plain_success_needs_no_restart(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        assert not WingetManager().install("Git.Git").restart_needed

    def test_upgrade_is_a_no_op(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=1))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        assert WingetManager().upgrade().ok
        assert recorder.calls == []

    def test_install_many_stops_at_first_failure(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0x8A150014))
        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", recorder)

        result = WingetManager().install_many(["Git.Git", "GitHub.cli"])

        assert not result.ok
        assert len(recorder.calls) == 1
        assert recorder.calls[0][3] == "Git.Git"

    def test_query_passes_timeout(self, monkeypatch):
        seen = {}

        def fake_run(argv, **kwargs):
            seen.update(kwargs)
            return CommandResult(argv=argv, returncode=0, stdout="Git  Git.Git  2.43.0")

        monkeypatch.setattr("devprovision.adapters.managers.winget.run_command", fake_run)

        WingetManager().query("Git.Git", timeout=8)

        assert seen["timeout"] == 8


# ── Package query probe ─────────────────────────────────────────────


class TestPackageQueryProbe:
    def test_id_must_appear_in_output(self):
        class Liar(MockPackageManager):
            def query(self, package_id, timeout):
                return CommandResult(argv=["winget"], returncode=0, stdout="No installed package found.")

        probe = PackageQueryProbe({"winget": Liar("winget")}, "winget")
        outcome = probe.run(ToolSpec(friendly_name="Git", candidate_ids=["Git.Git"]), timeout=8)

        assert outcome.conclusive
        assert not outcome.installed

    def test_timeout_is_inconclusive(self):
        manager = MockPackageManager("winget")
        manager.hanging.add("Git.Git")

        outcome = PackageQueryProbe({"winget": manager}, "winget").run(
            ToolSpec(friendly_name="Git", candidate_ids=["Git.Git"]), timeout=8,
        )

        assert not outcome.conclusive
        assert "timed out" in outcome.error


class TestRegistryScanProbe:
    def test_match_has_no_detail(self):
        outcome = RegistryScanProbe(MockScanner(["Git"])).run(
            ToolSpec(friendly_name="Git", candidate_ids=["Git.Git"], registry_name_pattern="Git"), timeout=8,
        )

        assert outcome.positive
        assert outcome.detail is None

    def test_unavailable_scanner(self):
        outcome = RegistryScanProbe(MockScanner(["Git"], available=False)).run(
            ToolSpec(friendly_name="Git", candidate_ids=["Git.Git"], registry_name_pattern="Git"), timeout=8,
        )

        assert not outcome.conclusive


# ── PowerShell gallery ──────────────────────────────────────────────


@posix_only
class TestPowerShellGallery:
    def test_lists_installed_copies(self, fake_bin):
        fake_bin("pwsh", "\n".join([
            'echo "Az|11.0.0|/usr/local/share/powershell/Modules/Az/11.0.0"',
            'echo "Az|10.4.1|/root/.local/share/powershell/Modules/Az/10.4.1"',
            'echo "WARNING: something unrelated"',
        ]))

        copies = PowerShellGallery().list_installed("Az")

        assert [(c.version, c.path) for c in copies] == [
            ("11.0.0", "/usr/local/share/powershell/Modules/Az/11.0.0"),
            ("10.4.1", "/root/.local/share/powershell/Modules/Az/10.4.1"),
        ]

    def test_listing_failure_raises(self, fake_bin):
        fake_bin("pwsh", "exit 1")

        with pytest.raises(OSError):
            PowerShellGallery().list_installed("Az")

    def test_install_script(self, fake_bin, monkeypatch):
        fake_bin("pwsh", "exit 0")
        recorder = _Recorder(CommandResult(returncode=0))
        monkeypatch.setattr("devprovision.adapters.gallery.powershell.run_command", recorder)

        PowerShellGallery().install("PnP.PowerShell")

        argv = recorder.calls[0]
        assert argv[:4] == ["pwsh", "-NoProfile", "-NonInteractive", "-Command"]
        assert "Install-Module -Name 'PnP.PowerShell' -Scope AllUsers" in argv[4]

    def test_unavailable_without_pwsh(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PATH", str(tmp_path))
        gallery = PowerShellGallery()

        assert not gallery.is_available()
        assert gallery.install("Az").not_found


# ── DISM feature store ──────────────────────────────────────────────


class TestWindowsFeatureStore:
    def test_query_parses_state(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0, stdout="Feature Name : VirtualMachinePlatform\nState : Enabled\n"))
        monkeypatch.setattr("devprovision.adapters.features.windows.run_command", recorder)

        state = WindowsFeatureStore().query("VirtualMachinePlatform")

        assert state.enabled
        assert not state.restart_needed

    def test_enable_pending_state(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=0, stdout="State : Enable Pending"))
        monkeypatch.setattr("devprovision.adapters.features.windows.run_command", recorder)

        state = WindowsFeatureStore().query("Microsoft-Windows-Subsystem-Linux")

        assert not state.enabled
        assert state.restart_needed

    def test_enable_reboot_required(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=3010))
        monkeypatch.setattr("devprovision.adapters.features.windows.run_command", recorder)

        result = WindowsFeatureStore().enable("Microsoft-Windows-Subsystem-Linux")

        assert result.ok
        assert result.restart_needed
        assert "/norestart" in recorder.calls[0]

    def test_enable_failure(self, monkeypatch):
        recorder = _Recorder(CommandResult(returncode=87, stdout="Error: 87"))
        monkeypatch.setattr("devprovision.adapters.features.windows.run_command", recorder)

        assert not WindowsFeatureStore().enable("Bogus").ok


# ── Toolchain registry ──────────────────────────────────────────────


class TestBuildToolchain:
    def test_ubuntu(self):
        toolchain = build_toolchain("ubuntu")

        assert toolchain.primary_manager.name == "apt"
        assert set(toolchain.managers) == {"apt", "snap"}
        assert toolchain.scanner.name == "dpkg"
        assert toolchain.feature_store is None
        assert toolchain.resolver.query_timeout == 8.0

    def test_windows(self):
        toolchain = build_toolchain("windows", query_timeout=15)

        assert toolchain.primary_manager.name == "winget"
        assert toolchain.scanner.name == "registry"
        assert toolchain.feature_store.name == "dism"
        assert toolchain.resolver.query_timeout == 15

    def test_unknown_platform(self):
        with pytest.raises(ValueError, match="Unsupported platform"):
            build_toolchain("macos")

    def test_adapter_status(self, mock_env):
        status = mock_env.toolchain().adapter_status()

        assert status["apt"]["available"] is True
        assert status["apt"]["type"] == "MockPackageManager"
        assert "mock-gallery" in status
