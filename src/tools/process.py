# src/tools/process.py — v1
"""Asynchronous subprocess execution for external build tools.

Every git, mvn, ant, keytool, ssh and scp invocation goes through
``run_command`` so that failures, timeouts and secret redaction are handled
in one place.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

REDACTED = "****"
_OUTPUT_TAIL_LINES = 20


class BuildError(Exception):
    """An external tool could not be started, failed, or timed out."""

    def __init__(self, message: str, result: CommandResult | None = None) -> None:
        super().__init__(message)
        self.result = result


@dataclass
class CommandResult:
    """Outcome of one external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def redact(text: str, secrets: Sequence[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def format_command(args: Sequence[str], secrets: Sequence[str] = ()) -> str:
    return redact(" ".join(str(a) for a in args), secrets)


def _tail(text: str, lines: int = _OUTPUT_TAIL_LINES) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


async def run_command(
    args: Sequence[str | os.PathLike[str]],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout_s: float | None = None,
    check: bool = True,
    secrets: Sequence[str] = (),
) -> CommandResult:
    """Run a command to completion and capture its output.

    Args:
        args: Program and arguments.
        cwd: Working directory.
        env: Extra environment variables, added to the current environment.
        timeout_s: Kill the process after this many seconds (None or 0 = wait forever).
        check: Raise BuildError on a non-zero exit status.
        secrets: Strings replaced by "****" in logs and error messages.

    Raises:
        BuildError: If the program is missing, exits non-zero (check=True) or times out.
    """
    argv = [str(a) for a in args]
    shown = format_command(argv, secrets)
    logger.debug("Running: %s%s", shown, f" (in {cwd})" if cwd else "")

    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    start_ns = time.monotonic_ns()
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            env=full_env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise BuildError(f"Cannot run {argv[0]}: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(), timeout=timeout_s or None
        )
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise BuildError(f"Command timed out after {timeout_s}s: {shown}") from exc

    result = CommandResult(
        args=argv,
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        duration_ms=(time.monotonic_ns() - start_ns) // 1_000_000,
    )
    logger.debug("Exit %d after %dms: %s", result.returncode, result.duration_ms, shown)

    if check and not result.ok:
        output = redact(_tail(result.stderr or result.stdout), secrets)
        if output:
            logger.error("Output of failed command:\n%s", output)
        raise BuildError(
            f"Command failed with exit code {result.returncode}: {shown}", result
        )
    return result


def define_flags(properties: Mapping[str, str]) -> list[str]:
    """``-Dkey=value`` flags, as understood by both Maven and Ant."""
    return [f"-D{key}={value}" for key, value in properties.items()]
