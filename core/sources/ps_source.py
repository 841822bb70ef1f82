from __future__ import annotations

import re
import sys

from config.settings import settings
from core.sources.base import CounterSource
from infrastructure.command_runner import run_command
from models.enums import SourceKind
from models.errors import CommandError, ParseError
from models.schemas import PsRawSample

_WHITESPACE = re.compile(r"\s+")


def _to_float(value: str) -> float:
    # ps honours LC_NUMERIC, so "12,3" is as likely as "12.3"
    return float(value.replace(",", "."))


def parse_ps_output(stdout: str) -> PsRawSample:
    lines = stdout.splitlines()
    if len(lines) < 2 or not lines[1].strip():
        raise ParseError("ps returned no row for the process")
    values = _WHITESPACE.sub(" ", lines[1].strip()).split(" ")
    try:
        return PsRawSample(
            cpu_percent_instant=_to_float(values[0]),
            resident_kb=_to_float(values[1]),
        )
    except (IndexError, ValueError) as e:
        raise ParseError(f"unexpected ps row {lines[1]!r}") from e


class PsSource(CounterSource):
    """Asks `ps` for an instantaneous %CPU and resident size in KB."""

    kind = SourceKind.PS

    def __init__(self, binary: str | None = None, platform: str | None = None) -> None:
        self.binary = binary or settings.PS_BINARY
        platform = platform or sys.platform
        # AIX calls the resident size column "rssize"
        self.rss_column = "rssize" if platform.startswith("aix") else "rss"

    def command(self, pid: int) -> list[str]:
        return [self.binary, "-o", f"pcpu,{self.rss_column}", "-p", str(pid)]

    async def read(self, pid: int) -> PsRawSample:
        result = await run_command(self.command(pid))
        if result.returncode != 0:
            raise CommandError(result.argv, result.returncode, result.stdout, result.stderr)
        return parse_ps_output(result.stdout)
