from __future__ import annotations

import asyncio
import time
from pathlib import Path

import psutil
import structlog

from config.settings import settings
from core.sources.base import CounterSource
from models.enums import SourceKind
from models.errors import ParseError, ProcessNotFoundError, ReadError
from models.schemas import ProcRawSample

logger = structlog.get_logger(__name__)

# Offsets into /proc/<pid>/stat counted from the field after "(comm)",
# see proc(5): field 3 (state) is offset 0.
_UTIME = 11
_STIME = 12
_CUTIME = 13
_CSTIME = 14
_STARTTIME = 19
_RSS = 21


def parse_stat(content: str) -> dict[str, float]:
    # comm may itself contain spaces and parentheses, so anchor on the last ")"
    index = content.rfind(")")
    if index == -1:
        raise ParseError("stat record has no command name terminator")
    fields = content[index + 1:].split()
    try:
        return {
            "user_ticks": float(fields[_UTIME]),
            "system_ticks": float(fields[_STIME]),
            "child_user_ticks": float(fields[_CUTIME]),
            "child_system_ticks": float(fields[_CSTIME]),
            "start_ticks": float(fields[_STARTTIME]),
            "resident_pages": float(fields[_RSS]),
        }
    except (IndexError, ValueError) as e:
        raise ParseError(f"malformed stat record: {e}") from e


def parse_uptime(content: str) -> float:
    try:
        return float(content.split()[0])
    except (IndexError, ValueError) as e:
        raise ParseError(f"malformed uptime record: {content!r}") from e


def _read_text(path: Path) -> str:
    # comm is arbitrary bytes; the numeric fields after it are ASCII
    return path.read_bytes().decode("utf-8", errors="replace")


def fallback_uptime() -> float:
    return max(time.time() - psutil.boot_time(), 0.0)


class ProcSource(CounterSource):
    """Reads /proc/<pid>/stat and /proc/uptime."""

    kind = SourceKind.PROC
    requires_constants = True

    def __init__(self, proc_root: str | None = None, uptime_path: str | None = None) -> None:
        self.proc_root = Path(proc_root or settings.PROC_ROOT)
        self.uptime_path = Path(uptime_path or settings.UPTIME_PATH)

    def stat_path(self, pid: int) -> Path:
        return self.proc_root / str(pid) / "stat"

    async def read(self, pid: int) -> ProcRawSample:
        path = self.stat_path(pid)
        try:
            content = await asyncio.to_thread(_read_text, path)
        except (FileNotFoundError, ProcessLookupError) as e:
            raise ProcessNotFoundError(pid, str(path)) from e
        except OSError as e:
            raise ReadError(f"failed to read {path}: {e}") from e

        fields = parse_stat(content)
        uptime = await self._read_uptime()
        return ProcRawSample(**fields, uptime_seconds=uptime)

    async def _read_uptime(self) -> float:
        try:
            content = await asyncio.to_thread(_read_text, self.uptime_path)
            return parse_uptime(content)
        except (OSError, ParseError) as e:
            uptime = fallback_uptime()
            logger.warning(
                "proc_source.uptime_fallback",
                path=str(self.uptime_path),
                error=str(e),
                uptime_seconds=uptime,
            )
            return uptime
