"""Async subprocess execution for build-tool commands (Maven).

Commands run with a timeout, captured output and an explicit working
directory; the caller decides what a non-zero exit code means.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    """Exit code of the process."""

    stdout: str
    """Standard output captured from the process."""

    stderr: str
    """Standard error captured from the process."""

    success: bool
    """True if returncode is 0 and the process did not time out."""

    timed_out: bool = False
    """True if the process was terminated due to timeout."""

    duration_ms: float = 0.0
    """Actual duration of execution in milliseconds."""


async def run_subprocess(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float = 300.0,
    env: dict[str, str] | None = None,
    check: bool = False,
) -> SubprocessResult:
    """Execute a command in a subprocess with timeout and error handling.

    Args:
        command: Command and arguments, e.g. ``['mvn', 'dependency:tree']``.
        cwd: Working directory for the subprocess. Defaults to current directory.
        timeout: Maximum seconds to wait for completion.
        env: Extra environment variables, merged over the current environment.
        check: If True, raise SubprocessError on failure.

    Returns:
        SubprocessResult with exit code, output, and metadata.

    Raises:
        SubprocessError: If the command is missing, or check=True and it fails.
        ValueError: If command is empty, timeout is invalid or cwd is missing.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    if timeout <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout}")

    work_dir = cwd.resolve() if cwd else Path.cwd()
    if not work_dir.exists():
        raise ValueError(f"Working directory does not exist: {work_dir}")

    full_env = {**os.environ, **env} if env else None

    logger.debug(
        "Running subprocess: %s (cwd=%s, timeout=%s)",
        " ".join(str(c) for c in command),
        work_dir,
        timeout,
    )

    start_time = time.perf_counter()
    timed_out = False

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=work_dir,
            env=full_env,
        )
    except FileNotFoundError as exc:
        logger.error("Command not found: %s", command[0])
        raise SubprocessError(
            f"Command not found: {command[0]}",
            result=SubprocessResult(returncode=-1, stdout="", stderr=str(exc), success=False),
        ) from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        logger.warning("Subprocess timed out after %s seconds", timeout)
        timed_out = True
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass  # already exited
        stdout_bytes = b""
        stderr_bytes = b"Process timed out and was killed"

    duration_ms = (time.perf_counter() - start_time) * 1000
    returncode = process.returncode if process.returncode is not None else -1
    if timed_out and returncode == 0:
        returncode = -1

    result = SubprocessResult(
        returncode=returncode,
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        success=(returncode == 0 and not timed_out),
        timed_out=timed_out,
        duration_ms=duration_ms,
    )

    logger.debug(
        "Subprocess completed: returncode=%d, duration=%.2fms, success=%s",
        returncode,
        duration_ms,
        result.success,
    )

    if check and not result.success:
        raise SubprocessError(
            f"Command failed with exit code {returncode}: {' '.join(str(c) for c in command)}",
            result=result,
        )
    return result


class SubprocessError(Exception):
    """Exception raised when subprocess execution fails."""

    def __init__(self, message: str, result: SubprocessResult) -> None:
        """Initialize with error message and result.

        Args:
            message: Error description.
            result: The SubprocessResult from the failed execution.
        """
        super().__init__(message)
        self.result = result
