"""
Async subprocess execution for git commands.

Commands run from an argv list (never a shell) and always yield a
ProcessResult; a non-zero exit is data, not an exception. Callers decide what
a failure means.

No timeout is applied. A hung clone, pull or push blocks until the caller
is cancelled, at which point the whole process group is killed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

IS_UNIX = sys.platform != "win32"


class ProcessResult(BaseModel):
    """Structured result from process execution."""

    command: list[str]
    """The argv that was executed."""

    success: bool
    """Whether the process completed successfully (exit code 0)."""

    exit_code: int | None
    """Process exit code, or None if the process never started."""

    stdout: str
    """Standard output from the process."""

    stderr: str
    """Standard error from the process."""

    duration_ms: int
    """Execution duration in milliseconds."""

    error: str | None = None
    """Error message if the process could not be run."""

    @property
    def failure_text(self) -> str:
        """Best available description of why the process failed."""
        return self.error or self.stderr.strip() or self.stdout.strip() or (
            f"exit code {self.exit_code}"
        )


def _elapsed_ms(started_at: datetime) -> int:
    return int((datetime.now(timezone.utc) - started_at).total_seconds() * 1000)


async def run_process(
    command: list[str],
    *,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
) -> ProcessResult:
    """
    Run a subprocess to completion and capture its output.

    Args:
        command: Command and arguments as a list (e.g., ["git", "status"])
        cwd: Optional working directory for the process.
        env: Optional environment variables. Merged with os.environ if provided.

    Returns:
        ProcessResult with output, exit code, and timing information.

    Example:
        >>> result = await run_process(["git", "status"], cwd="/path/to/repo")
        >>> if result.success:
        ...     print(result.stdout)
    """
    started_at = datetime.now(timezone.utc)
    process: asyncio.subprocess.Process | None = None

    process_env = None
    if env is not None:
        process_env = os.environ.copy()
        process_env.update(env)

    kwargs: dict[str, Any] = {
        "stdin": asyncio.subprocess.DEVNULL,
        "stdout": asyncio.subprocess.PIPE,
        "stderr": asyncio.subprocess.PIPE,
        "cwd": str(cwd) if cwd is not None else None,
        "env": process_env,
    }

    # New session so the whole process group can be killed on cancellation
    if IS_UNIX:
        kwargs["start_new_session"] = True

    logger.debug("Running process: %s", " ".join(command))

    try:
        process = await asyncio.create_subprocess_exec(*command, **kwargs)
        stdout_bytes, stderr_bytes = await process.communicate()

    except FileNotFoundError:
        if cwd is not None and not Path(cwd).is_dir():
            error = f"Working directory does not exist: {cwd}"
        else:
            error = f"Command not found: {command[0]}. Ensure it is installed and in PATH."
        return ProcessResult(
            command=command,
            success=False,
            exit_code=None,
            stdout="",
            stderr="",
            duration_ms=_elapsed_ms(started_at),
            error=error,
        )

    except OSError as e:
        return ProcessResult(
            command=command,
            success=False,
            exit_code=None,
            stdout="",
            stderr="",
            duration_ms=_elapsed_ms(started_at),
            error=f"Failed to start {command[0]}: {e}",
        )

    finally:
        if process is not None and process.returncode is None:
            await kill_process_group(process)

    stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
    stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""

    return ProcessResult(
        command=command,
        success=process.returncode == 0,
        exit_code=process.returncode,
        stdout=stdout,
        stderr=stderr,
        duration_ms=_elapsed_ms(started_at),
    )


async def kill_process_group(process: asyncio.subprocess.Process) -> None:
    """
    Terminate a still-running process and its children.

    Tries SIGTERM first, then SIGKILL on the process group (Unix) or a direct
    kill (Windows) if the process does not exit within two seconds.
    """
    if process.returncode is not None:
        return

    try:
        process.terminate()
        await asyncio.wait_for(process.wait(), timeout=2.0)
        logger.debug("Process %s terminated gracefully", process.pid)
        return
    except ProcessLookupError:
        return
    except asyncio.TimeoutError:
        logger.debug("Process %s did not terminate gracefully, force killing", process.pid)

    try:
        if IS_UNIX:
            os.killpg(os.getpgid(process.pid), signal.SIGKILL)
        else:
            process.kill()
        await asyncio.wait_for(process.wait(), timeout=5.0)
    except (ProcessLookupError, OSError, asyncio.TimeoutError) as e:
        logger.warning("Error during process group kill: %s", e)
