"""
Shell command runner — the single place child processes are started.

Every adapter goes through ``run_command``. It never raises: a missing
executable, a timeout or an OS error all come back as a CommandResult
the caller can inspect. On timeout the whole process tree is killed so
a stalled package manager cannot leak helper processes.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import sys
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120


@dataclass
class CommandResult:
    """Captured outcome of one child process."""

    argv: list[str] = field(default_factory=list)
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    not_found: bool = False
    timed_out: bool = False
    error: str | None = None
    restart_needed: bool = False   # succeeded, but only takes effect after a restart

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and self.error is None

    @property
    def output(self) -> str:
        """stdout and stderr combined (some tools report on stderr)."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr

    @property
    def first_line(self) -> str:
        """First non-empty line of output, trimmed."""
        for line in self.output.splitlines():
            if line.strip():
                return line.strip()
        return ""

    def describe(self) -> str:
        """Short human-readable failure reason."""
        if self.not_found:
            return f"{self.argv[0] if self.argv else 'command'}: not found"
        if self.timed_out:
            return f"timed out after {self.elapsed_ms / 1000:.1f}s"
        if self.error:
            return self.error
        tail = self.stderr.strip().splitlines()[-1:] or self.stdout.strip().splitlines()[-1:]
        suffix = f" ({tail[0]})" if tail else ""
        return f"exit {self.returncode}{suffix}"


def run_command(
    argv: list[str],
    *,
    timeout: float = DEFAULT_TIMEOUT,
    input_text: str | None = None,
    env_overrides: dict[str, str] | None = None,
) -> CommandResult:
    """Run ``argv`` with a hard wall-clock timeout.

    Args:
        argv: Command and arguments. ``argv[0]`` is resolved on PATH.
        timeout: Seconds before the process tree is killed.
        input_text: Optional text piped to stdin.
        env_overrides: Extra environment variables.

    Returns:
        CommandResult. ``not_found`` is set when the executable does
        not exist; ``timed_out`` when the deadline was hit.
    """
    result = CommandResult(argv=list(argv))
    if not argv:
        result.error = "empty command"
        return result

    executable = shutil.which(argv[0])
    if executable is None:
        result.not_found = True
        return result

    env = None
    if env_overrides:
        env = os.environ.copy()
        env.update(env_overrides)

    popen_kwargs: dict = {}
    if sys.platform == "win32":
        popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        popen_kwargs["start_new_session"] = True

    logger.debug("Executing: %s (timeout=%ss)", " ".join(argv), timeout)
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            [executable, *argv[1:]],
            stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=env,
            **popen_kwargs,
        )
    except OSError as e:
        result.error = f"cannot start {argv[0]}: {e}"
        return result

    try:
        stdout, stderr = proc.communicate(input=input_text, timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_tree(proc)
        try:
            stdout, stderr = proc.communicate(timeout=5)
        except subprocess.TimeoutExpired:
            stdout, stderr = "", ""
        result.timed_out = True
        logger.warning("Command timed out after %ss, killed: %s", timeout, " ".join(argv))

    result.elapsed_ms = int((time.monotonic() - start) * 1000)
    result.returncode = proc.returncode
    result.stdout = (stdout or "").strip()
    result.stderr = (stderr or "").strip()
    return result


def _kill_tree(proc: subprocess.Popen) -> None:
    """Forcibly terminate ``proc`` and everything it spawned."""
    try:
        if sys.platform == "win32":
            subprocess.run(
                ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
                capture_output=True,
                timeout=10,
            )
        else:
            os.killpg(proc.pid, signal.SIGKILL)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Process-tree kill failed for pid %s: %s", proc.pid, e)
    if proc.poll() is None:
        proc.kill()


def command_exists(name: str) -> bool:
    """Whether ``name`` resolves on PATH."""
    return shutil.which(name) is not None
