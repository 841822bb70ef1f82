"""Unit tests for MachineConstantsProvider."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from core.monitor.machine_constants import MachineConstantsProvider, acquire_machine_constants
from infrastructure.command_runner import CommandResult
from models.errors import ConstantsUnavailableError
from models.schemas import MachineConstants

CONSTANTS = MachineConstants(clock_ticks_per_second=100.0, page_size_bytes=4096.0)


class TestMachineConstantsProvider:
    @pytest.mark.asyncio
    async def test_concurrent_first_calls_acquire_once(self) -> None:
        calls = 0

        async def acquire() -> MachineConstants:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return MachineConstants(clock_ticks_per_second=100.0, page_size_bytes=4096.0)

        provider = MachineConstantsProvider(acquire=acquire)
        results = await asyncio.gather(*(provider.get() for _ in range(10)))

        assert calls == 1
        assert all(r is results[0] for r in results)
        assert provider.cached is results[0]

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self) -> None:
        acquire = AsyncMock(side_effect=[ConstantsUnavailableError("no sysconf"), CONSTANTS])
        provider = MachineConstantsProvider(acquire=acquire)

        with pytest.raises(ConstantsUnavailableError):
            await provider.get()
        assert provider.cached is None

        assert await provider.get() == CONSTANTS
        assert await provider.get() == CONSTANTS
        assert acquire.await_count == 2


    def test_contended_lookups_across_event_loops(self) -> None:
        async def acquire() -> MachineConstants:
            await asyncio.sleep(0.01)
            raise ConstantsUnavailableError("not yet")

        provider = MachineConstantsProvider(acquire=acquire)

        async def contend() -> list[BaseException]:
            return await asyncio.gather(*(provider.get() for _ in range(3)), return_exceptions=True)

        for _ in range(2):
            errors = asyncio.run(contend())
            assert all(isinstance(e, ConstantsUnavailableError) for e in errors)


class TestAcquireMachineConstants:
    @pytest.mark.asyncio
    async def test_reads_sysconf(self) -> None:
        values = {"SC_CLK_TCK": 100, "SC_PAGE_SIZE": 4096}
        with patch("core.monitor.machine_constants.os.sysconf", side_effect=values.__getitem__):
            constants = await acquire_machine_constants()
        assert constants == CONSTANTS

    @pytest.mark.asyncio
    async def test_falls_back_to_getconf(self) -> None:
        runner = AsyncMock(
            side_effect=[
                CommandResult(argv=["getconf", "CLK_TCK"], returncode=0, stdout="100\n", stderr=""),
                CommandResult(argv=["getconf", "PAGESIZE"], returncode=0, stdout="4096\n", stderr=""),
            ]
        )
        with (
            patch("core.monitor.machine_constants.os.sysconf", side_effect=ValueError("unknown")),
            patch("core.monitor.machine_constants.run_command", runner),
        ):
            constants = await acquire_machine_constants()
        assert constants == CONSTANTS
        assert runner.await_count == 2

    @pytest.mark.asyncio
    async def test_getconf_failure_is_unavailable(self) -> None:
        failed = CommandResult(argv=["getconf", "CLK_TCK"], returncode=1, stdout="", stderr="bad name")
        with (
            patch("core.monitor.machine_constants.os.sysconf", side_effect=ValueError("unknown")),
            patch("core.monitor.machine_constants.run_command", AsyncMock(return_value=failed)),
        ):
            with pytest.raises(ConstantsUnavailableError):
                await acquire_machine_constants()

    @pytest.mark.asyncio
    async def test_non_positive_values_are_rejected(self) -> None:
        values = {"SC_CLK_TCK": -1, "SC_PAGE_SIZE": 4096}
        with patch("core.monitor.machine_constants.os.sysconf", side_effect=values.__getitem__):
            with pytest.raises(ConstantsUnavailableError):
                await acquire_machine_constants()
