"""Secure shell — runs an allowed command and sanitizes its stdout.

Only commands named in ALLOWED_COMMANDS may run. The command is executed
directly (no shell), with the caller's environment. stdout carries the
payload and is sanitized; stderr is returned untouched.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from quarantine.constants import ALLOWED_COMMANDS, SHELL_TIMEOUT_EXIT_CODE, SHELL_TIMEOUT_S
from quarantine.guard import ContentGuard
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ShellResult:
    stdout: str
    stderr: str
    exit_code: int
    sanitized: bool
    scan_summary: Optional[dict[str, Any]] = None
    quarantine_file: Optional[str] = None


async def run_command(
    command: str,
    args: Sequence[str],
    timeout: float,
) -> tuple[str, str, int]:
    """Run ``command`` and return ``(stdout, stderr, exit_code)``.

    Launch failures are reported as exit code 127 with the error on stderr.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=dict(os.environ),
        )
    except OSError as exc:
        logger.warning("Command could not be started", command=command, error=str(exc))
        return "", str(exc), 127

    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        out, err = await proc.communicate()
        logger.warning("Command timed out — killed", command=command, timeout_s=timeout)
        return (
            out.decode("utf-8", errors="replace"),
            err.decode("utf-8", errors="replace") + f"\ncommand timed out after {timeout}s",
            SHELL_TIMEOUT_EXIT_CODE,
        )

    return (
        out.decode("utf-8", errors="replace"),
        err.decode("utf-8", errors="replace"),
        proc.returncode if proc.returncode is not None else 1,
    )


async def secure_shell(
    guard: ContentGuard,
    command: str,
    args: Sequence[str] = (),
    timeout: float = SHELL_TIMEOUT_S,
    allowed: Sequence[str] = ALLOWED_COMMANDS,
) -> ShellResult:
    if command not in allowed:
        return ShellResult(
            stdout="",
            stderr=(
                f'Command "{command}" is not in the allowlist. '
                f"Allowed: {', '.join(allowed)}"
            ),
            exit_code=1,
            sanitized=False,
        )

    stdout, stderr, exit_code = await run_command(command, args, timeout)

    result = guard.sanitize(stdout, source=f"shell:{os.path.basename(command)}")
    return ShellResult(
        stdout=result.content,
        stderr=stderr,
        exit_code=exit_code,
        sanitized=result.modified,
        scan_summary=guard.scan_summary(result),
        quarantine_file=result.quarantine_file,
    )
