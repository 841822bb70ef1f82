from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from models.errors import CommandError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


async def run_command(argv: list[str]) -> CommandResult:
    """
    Run an external tool and buffer both output streams before returning.

    No timeout is applied here; wrap the call in asyncio.timeout() to bound it.
    If the awaiting task is cancelled the child is killed and reaped.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning("command_runner.spawn_failed", argv=argv, error=str(e))
        raise CommandError(argv, None, stderr=str(e), message=f"failed to run {argv[0]!r}: {e}") from e

    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
        raise

    return CommandResult(
        argv=argv,
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
