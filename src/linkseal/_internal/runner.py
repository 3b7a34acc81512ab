"""Run a step's command and capture its byproducts.

The command runs once, synchronously. Its exit code is data recorded in the
link; failing to start the process at all (missing executable, bad run
directory, permissions, timeout) raises and aborts the run.
"""

import errno
import logging
import os
import subprocess  # nosec
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one command execution."""
    stdout: str
    stderr: str
    return_value: int

    def to_byproducts(self) -> Dict[str, Any]:
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "return-value": self.return_value,
        }


def _check_run_dir(run_dir: str) -> None:
    if os.path.islink(run_dir):
        raise NotADirectoryError(errno.ENOTDIR, "Run directory must not be a symlink", run_dir)
    if not os.path.exists(run_dir):
        raise FileNotFoundError(errno.ENOENT, "Run directory does not exist", run_dir)
    if not os.path.isdir(run_dir):
        raise NotADirectoryError(errno.ENOTDIR, "Run directory is not a directory", run_dir)
    if not os.access(run_dir, os.W_OK):
        raise PermissionError(errno.EACCES, "Run directory is not writable", run_dir)


def run_command(
    command: Sequence[str],
    run_dir: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Execute command and capture stdout, stderr and the exit code.

    Args:
        command: Executable followed by its arguments (no shell involved)
        run_dir: Working directory; the current directory if None
        timeout: Seconds before the process is killed; no limit if None

    Raises:
        ValueError: If command is empty
        OSError: If the run directory is unusable or the process cannot start
        subprocess.TimeoutExpired: If timeout elapses
    """
    if not command:
        raise ValueError("Command must contain at least one token")
    if run_dir:
        _check_run_dir(run_dir)

    logger.info("Running command: %s", " ".join(command))
    process = subprocess.run(  # nosec
        list(command),
        cwd=run_dir or None,
        capture_output=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
        check=False,
    )
    logger.info("Command exited with return value %d", process.returncode)
    return CommandResult(
        stdout=process.stdout,
        stderr=process.stderr,
        return_value=process.returncode,
    )
