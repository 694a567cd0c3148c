"""Shared subprocess execution utility."""

from __future__ import annotations

import asyncio
import subprocess
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from pathlib import Path


async def run_command(
    cmd: list[str],
    *,
    cwd: Path | None = None,
    check: bool = False,
    log_on_error: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run a command capturing stdout and stderr.

    The process is started without a shell and awaited to completion; only the
    fully collected output is returned.

    Args:
        cmd: Command and arguments to run.
        cwd: Working directory for the command. Defaults to the current directory.
        check: If True and the command exits non-zero, raise CalledProcessError.
        log_on_error: If True, log stderr/stdout before raising on non-zero exit.

    Raises:
        OSError: If the executable cannot be started (missing, not executable).
        subprocess.CalledProcessError: If ``check`` is set and the exit code is non-zero.

    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    returncode = process.returncode if process.returncode is not None else -1
    result = subprocess.CompletedProcess(
        cmd,
        returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )
    if result.returncode != 0 and check:
        if log_on_error:
            output = (result.stderr or result.stdout).strip()
            logger.error(f"Command {cmd!r} failed: {output}")
        raise subprocess.CalledProcessError(result.returncode, cmd, result.stdout, result.stderr)
    return result


async def run_interactive(command: str, *, cwd: Path) -> int:
    """Run a shell command in a visible terminal and wait for it to close.

    Output is not captured. On Windows the command gets its own console window,
    elsewhere it shares the caller's terminal.
    """
    kwargs: dict[str, Any] = {}
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.CREATE_NEW_CONSOLE
    process = await asyncio.create_subprocess_shell(command, cwd=cwd, **kwargs)
    return await process.wait()
