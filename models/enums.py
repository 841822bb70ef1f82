from __future__ import annotations

from enum import Enum


class SourceKind(str, Enum):
    PROC = "proc"
    PS = "ps"
    WMIC = "wmic"
