"""Launch strategies for deployment commands."""

import logging
import shlex
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from deploy_hook.config import Settings

logger = logging.getLogger(__name__)

# Exit codes reported when the command could not run at all (as in the shell)
EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class LaunchResult:
    """Outcome of launching a command."""

    command: str
    output: str
    result_code: int


class Launcher(Protocol):
    def launch(self, command: str) -> LaunchResult: ...


class AtLauncher:
    """Queue the command on ``at now`` with its output appended to a log file."""

    def __init__(self, log_file: Path) -> None:
        self.log_file = log_file

    def job(self, command: str) -> str:
        return f"{command} >> {shlex.quote(str(self.log_file))} 2>&1"

    def launch(self, command: str) -> LaunchResult:
        job = self.job(command)
        logger.info(f"Queueing deployment: {job}")

        try:
            process = subprocess.run(
                ["at", "now"],
                input=job + "\n",
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            logger.error("The at command is not available")
            return LaunchResult(job, "at: command not found", EXIT_NOT_FOUND)

        # at reports the queued job on stderr
        output = (process.stdout + process.stderr).strip()
        if process.returncode != 0:
            logger.error(f"Failed to queue deployment: {output}")
        return LaunchResult(job, output, process.returncode)


class DetachedLauncher:
    """Start the command in its own session and return without waiting."""

    def __init__(self, log_file: Path) -> None:
        self.log_file = log_file

    def launch(self, command: str) -> LaunchResult:
        logger.info(f"Starting detached deployment: {command}")

        with open(self.log_file, "ab") as log:
            process = subprocess.Popen(
                command,
                shell=True,
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )

        # The child is reaped in the background once it exits
        threading.Thread(target=self._reap, args=(process,), daemon=True).start()

        return LaunchResult(command, f"Started process {process.pid}", 0)

    def _reap(self, process: subprocess.Popen) -> None:
        result_code = process.wait()
        if result_code != 0:
            logger.error(f"Detached deployment {process.pid} exited with code {result_code}")
        else:
            logger.info(f"Detached deployment {process.pid} exited with code 0")


class SyncLauncher:
    """Run the command to completion and capture its output."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def launch(self, command: str) -> LaunchResult:
        logger.info(f"Running deployment: {command}")

        try:
            process = subprocess.run(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"Deployment timed out after {self.timeout}s")
            output = e.output or ""
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            return LaunchResult(command, output, EXIT_TIMEOUT)

        if process.returncode != 0:
            logger.warning(f"Deployment exited with code {process.returncode}")
        return LaunchResult(command, process.stdout.rstrip("\n"), process.returncode)


def build_launcher(settings: "Settings") -> Launcher:
    """Pick the launcher for the configured deploy mode."""
    if settings.deploy_mode == "sync":
        return SyncLauncher(timeout=settings.deploy_timeout)
    if settings.deploy_mode == "detached":
        return DetachedLauncher(settings.deployer_log_file)
    return AtLauncher(settings.deployer_log_file)
