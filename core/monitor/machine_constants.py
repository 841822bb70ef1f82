from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Callable

import structlog

from config.settings import settings
from infrastructure.command_runner import run_command
from models.errors import CommandError, ConstantsUnavailableError
from models.schemas import MachineConstants

logger = structlog.get_logger(__name__)

Acquirer = Callable[[], Awaitable[MachineConstants]]


async def _getconf(name: str) -> float:
    argv = [settings.GETCONF_BINARY, name]
    try:
        result = await run_command(argv)
    except CommandError as e:
        raise ConstantsUnavailableError(f"getconf {name} could not be run: {e}") from e
    if result.returncode != 0:
        raise ConstantsUnavailableError(
            f"getconf {name} exited with code {result.returncode}: {result.stderr.strip()}"
        )
    try:
        return float(result.stdout.strip())
    except ValueError as e:
        raise ConstantsUnavailableError(f"getconf {name} returned {result.stdout.strip()!r}") from e


async def acquire_machine_constants() -> MachineConstants:
    try:
        clock_ticks = float(os.sysconf("SC_CLK_TCK"))
        page_size = float(os.sysconf("SC_PAGE_SIZE"))
    except (AttributeError, ValueError, OSError):
        # os.sysconf is missing on some platforms; ask the system utility instead
        clock_ticks = await _getconf("CLK_TCK")
        page_size = await _getconf("PAGESIZE")

    if clock_ticks <= 0 or page_size <= 0:
        raise ConstantsUnavailableError(
            f"invalid machine constants: clock_ticks={clock_ticks}, page_size={page_size}"
        )
    return MachineConstants(clock_ticks_per_second=clock_ticks, page_size_bytes=page_size)


class MachineConstantsProvider:
    """
    Compute-once holder for the clock tick rate and page size.

    Concurrent first callers share a single acquisition. A failed acquisition
    caches nothing, so the next call tries again.
    """

    def __init__(self, acquire: Acquirer | None = None) -> None:
        self._acquire = acquire or acquire_machine_constants
        self._value: MachineConstants | None = None
        self._lock = asyncio.Lock()
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @property
    def cached(self) -> MachineConstants | None:
        return self._value

    async def get(self) -> MachineConstants:
        if self._value is not None:
            return self._value

        async with self._loop_lock():
            if self._value is None:
                try:
                    value = await self._acquire()
                except ConstantsUnavailableError:
                    logger.warning("machine_constants.unavailable")
                    raise
                self._value = value
                logger.info(
                    "machine_constants.acquired",
                    clock_ticks_per_second=value.clock_ticks_per_second,
                    page_size_bytes=value.page_size_bytes,
                )
        return self._value

    def _loop_lock(self) -> asyncio.Lock:
        # an asyncio.Lock is bound to the first loop it waits on; each asyncio.run() gets a fresh one
        loop = asyncio.get_running_loop()
        if self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock


# Singleton
machine_constants = MachineConstantsProvider()
