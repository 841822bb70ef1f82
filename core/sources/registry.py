from __future__ import annotations

import sys

from core.sources.base import CounterSource
from core.sources.proc_source import ProcSource
from core.sources.ps_source import PsSource
from core.sources.wmic_source import WmicSource
from models.enums import SourceKind
from models.errors import UnsupportedPlatformError

_PLATFORM_SOURCES: dict[str, SourceKind] = {
    "linux": SourceKind.PROC,
    "darwin": SourceKind.PS,
    "aix": SourceKind.PS,
    "sunos": SourceKind.PS,
    "freebsd": SourceKind.PS,
    "openbsd": SourceKind.PS,
    "win32": SourceKind.WMIC,
}


def source_kind_for_platform(platform: str | None = None) -> SourceKind:
    platform = platform or sys.platform
    # sys.platform carries a version suffix on some systems ("aix7", "sunos5", "freebsd14")
    for prefix, kind in _PLATFORM_SOURCES.items():
        if platform.startswith(prefix):
            return kind
    raise UnsupportedPlatformError(f"no counter source for platform {platform!r}")


def source_for_platform(platform: str | None = None) -> CounterSource:
    platform = platform or sys.platform
    kind = source_kind_for_platform(platform)
    if kind == SourceKind.PROC:
        return ProcSource()
    if kind == SourceKind.PS:
        return PsSource(platform=platform)
    return WmicSource()
