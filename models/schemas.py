from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class MachineConstants(BaseModel):
    model_config = ConfigDict(frozen=True)

    clock_ticks_per_second: float = Field(gt=0)
    page_size_bytes: float = Field(gt=0)


class SampleOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    include_children: bool = False


class UsageResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    cpu_percent: float = Field(ge=0.0)
    memory_bytes: float = Field(ge=0.0)


# ─── Raw samples, one case per counter source ─────────────────────────────────

class ProcRawSample(BaseModel):
    """Fields of /proc/<pid>/stat, in clock ticks and pages."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["proc"] = "proc"
    user_ticks: float
    system_ticks: float
    child_user_ticks: float
    child_system_ticks: float
    start_ticks: float
    resident_pages: float
    uptime_seconds: float


class PsRawSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ps"] = "ps"
    cpu_percent_instant: float
    resident_kb: float


class WmicRawSample(BaseModel):
    """Win32_PerfRawData_PerfProc_Process counters, cumulative since process start."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["wmic"] = "wmic"
    cumulative_cpu_time_units: float
    cumulative_elapsed_time_units: float
    working_set_bytes: float


RawSample = Annotated[
    Union[ProcRawSample, PsRawSample, WmicRawSample],
    Field(discriminator="kind"),
]


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    sample: RawSample
    elapsed_seconds: float | None = None
    uptime_seconds: float | None = None
