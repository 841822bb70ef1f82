from __future__ import annotations

from abc import ABC, abstractmethod

from models.enums import SourceKind
from models.schemas import RawSample


class CounterSource(ABC):
    """Acquires raw accounting counters for one process on one platform.

    Subclasses implement `read()`. Sources hold no per-process state; history
    lives in the Sampler's HistoryStore.
    """

    kind: SourceKind
    # True when the delta engine needs MachineConstants to normalize this source's samples
    requires_constants: bool = False

    @abstractmethod
    async def read(self, pid: int) -> RawSample:
        ...
