from __future__ import annotations

import os
import re
from datetime import datetime

from config.settings import settings
from core.sources.base import CounterSource
from infrastructure.command_runner import CommandResult, run_command
from models.enums import SourceKind
from models.errors import CommandError, ParseError
from models.schemas import WmicRawSample

# wmic terminates lines with "\r\r\n"
_LINE_BREAK = re.compile(r"\r*\n")

# https://msdn.microsoft.com/en-us/library/aa394277(v=vs.85).aspx
_QUERY = (
    "path Win32_PerfRawData_PerfProc_Process WHERE IDProcess={pid} "
    "get PercentProcessorTime, TimeStamp_Sys100NS, WorkingSet"
)


def parse_wmic_output(stdout: str) -> WmicRawSample:
    lines = _LINE_BREAK.split(stdout.strip())
    if len(lines) < 2 or not lines[1].strip():
        raise ParseError("wmic returned no row for the process")
    values = lines[1].split()
    try:
        return WmicRawSample(
            cumulative_cpu_time_units=float(values[0]),
            cumulative_elapsed_time_units=float(values[1]),
            working_set_bytes=float(values[2]),
        )
    except (IndexError, ValueError) as e:
        raise ParseError(f"unexpected wmic row {lines[1]!r}") from e


def describe_failure(result: CommandResult) -> str:
    stdout = result.stdout.strip()
    stderr = result.stderr.strip()
    command = " ".join(result.argv)
    parts = [
        f"{datetime.now().isoformat(timespec='seconds')} wmic failed.",
        f'Command was "{command}".',
        f"Wmic reported the following error: {stderr}." if stderr else "Wmic reported no errors.",
        f"Wmic exited with code {result.returncode}.",
    ]
    if stdout:
        parts.append(f"Stdout was {stdout}")
    return os.linesep.join(parts)


class WmicSource(CounterSource):
    """Reads raw performance counters through `wmic`."""

    kind = SourceKind.WMIC

    def __init__(self, binary: str | None = None) -> None:
        self.binary = binary or settings.WMIC_BINARY

    def command(self, pid: int) -> list[str]:
        return [self.binary, *_QUERY.format(pid=pid).split(" ")]

    async def read(self, pid: int) -> WmicRawSample:
        result = await run_command(self.command(pid))
        if result.returncode != 0 or not result.stdout.strip():
            raise CommandError(
                result.argv,
                result.returncode,
                result.stdout,
                result.stderr,
                message=describe_failure(result),
            )
        return parse_wmic_output(result.stdout)
