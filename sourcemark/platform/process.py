"""Subprocess execution for external tools (sentry-cli, git).

Commands never raise: a missing executable, a non-zero exit and a timeout all
come back as Err(ProcessError), and callers turn that into a ReleaseError.

Usage:
    match run(["sentry-cli", "releases", "new", name], cwd=root, timeout=60):
        case Ok(_):
            ...
        case Err(error):
            console.error(error.detail)
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from sourcemark.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# Shown in error messages; the remaining arguments may be long path lists.
_SHOWN_ARGS = 3


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run or did not succeed.

    Attributes:
        command: Full argument vector.
        returncode: Exit status; -1 when the process never completed.
        stdout: Captured standard output.
        stderr: Captured standard error, or the reason the command could not run.
        timed_out: The command was killed after its timeout.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    def __str__(self) -> str:
        shown = " ".join(self.command[:_SHOWN_ARGS])
        if len(self.command) > _SHOWN_ARGS:
            shown += " ..."
        if self.timed_out:
            return f"{shown} timed out"
        return f"{shown} failed (exit {self.returncode})"

    @property
    def detail(self) -> str:
        """Last non-empty line of stderr (or stdout), else the summary line."""
        for stream in (self.stderr, self.stdout):
            lines = [line.strip() for line in stream.splitlines() if line.strip()]
            if lines:
                return lines[-1]
        return str(self)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run cmd to completion and return its stdout.

    Args:
        cmd: Executable and arguments.
        cwd: Working directory.
        env: Complete environment for the child (default: inherit).
        timeout: Seconds before the child is killed (default: no limit).
    """
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        reason = f"Command timed out after {timeout}s"
        return Err(ProcessError(command, -1, partial, reason, timed_out=True))
    except OSError as e:
        return Err(ProcessError(command, -1, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(command, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)
