from __future__ import annotations

import math

import structlog

from config.settings import settings
from models.errors import ConstantsUnavailableError
from models.schemas import (
    HistoryEntry,
    MachineConstants,
    ProcRawSample,
    PsRawSample,
    RawSample,
    SampleOptions,
    UsageResult,
    WmicRawSample,
)

logger = structlog.get_logger(__name__)


class DeltaEngine:
    """
    Turns raw counters into a UsageResult.

    Stateless: the previous HistoryEntry is passed in and the entry to store
    for the next call is returned alongside the result. Sources whose samples
    are already rates (ps) produce no entry.
    """

    def __init__(self, zero_elapsed_seconds: float | None = None) -> None:
        self.zero_elapsed_seconds = (
            settings.ZERO_ELAPSED_SECONDS if zero_elapsed_seconds is None else zero_elapsed_seconds
        )

    def compute(
        self,
        sample: RawSample,
        previous: HistoryEntry | None,
        constants: MachineConstants | None = None,
        options: SampleOptions | None = None,
    ) -> tuple[UsageResult, HistoryEntry | None]:
        options = options or SampleOptions()
        # History left by a different source is as good as none
        if previous is not None and previous.sample.kind != sample.kind:
            previous = None

        if isinstance(sample, ProcRawSample):
            if constants is None:
                raise ConstantsUnavailableError("kernel counters need machine constants")
            cpu, memory, entry = self._proc(sample, previous, constants, options)
        elif isinstance(sample, PsRawSample):
            cpu, memory, entry = sample.cpu_percent_instant, sample.resident_kb * 1024, None
        elif isinstance(sample, WmicRawSample):
            cpu, memory, entry = self._wmic(sample, previous)
        else:
            raise TypeError(f"unknown sample type {type(sample).__name__}")

        result = UsageResult(
            cpu_percent=self._sanitize(cpu, "cpu_percent", sample.kind),
            memory_bytes=self._sanitize(memory, "memory_bytes", sample.kind),
        )
        return result, entry

    def _proc(
        self,
        sample: ProcRawSample,
        previous: HistoryEntry | None,
        constants: MachineConstants,
        options: SampleOptions,
    ) -> tuple[float, float, HistoryEntry]:
        clock_ticks = constants.clock_ticks_per_second
        prev = previous.sample if previous is not None else None

        # No history means a zero baseline; the first reading is knowingly low.
        ticks = (sample.user_ticks - (prev.user_ticks if prev else 0.0)) + (
            sample.system_ticks - (prev.system_ticks if prev else 0.0)
        )
        if options.include_children:
            # child times are accumulated totals, added whole on every call
            ticks += sample.child_user_ticks + sample.child_system_ticks
        cpu_seconds = ticks / clock_ticks

        if previous is not None and previous.uptime_seconds is not None:
            elapsed = abs(sample.uptime_seconds - previous.uptime_seconds)
        else:
            elapsed = abs(sample.start_ticks / clock_ticks - sample.uptime_seconds)
        if elapsed == 0:
            elapsed = self.zero_elapsed_seconds

        cpu = (cpu_seconds / elapsed) * 100
        memory = sample.resident_pages * constants.page_size_bytes
        entry = HistoryEntry(sample=sample, elapsed_seconds=elapsed, uptime_seconds=sample.uptime_seconds)
        return cpu, memory, entry

    def _wmic(
        self,
        sample: WmicRawSample,
        previous: HistoryEntry | None,
    ) -> tuple[float, float, HistoryEntry]:
        # PercentProcessorTime and TimeStamp_Sys100NS are both 100ns counters
        if previous is None:
            if sample.cumulative_elapsed_time_units == 0:
                cpu = 0.0
            else:
                cpu = 100 - (100 * (1 - sample.cumulative_cpu_time_units / sample.cumulative_elapsed_time_units))
        else:
            prev = previous.sample
            elapsed_delta = sample.cumulative_elapsed_time_units - prev.cumulative_elapsed_time_units
            if elapsed_delta == 0:
                cpu = 0.0
            else:
                cpu_delta = sample.cumulative_cpu_time_units - prev.cumulative_cpu_time_units
                cpu = 100 - (100 * (1 - (cpu_delta / elapsed_delta)))

        return cpu, sample.working_set_bytes, HistoryEntry(sample=sample)

    def _sanitize(self, value: float, field: str, kind: str) -> float:
        if not math.isfinite(value) or value < 0:
            # counter reset or a recycled pid
            logger.debug("delta_engine.value_clamped", field=field, source=kind, value=value)
            return 0.0
        return value
