from __future__ import annotations

import structlog

from config.settings import settings
from core.monitor.delta_engine import DeltaEngine
from core.monitor.history_store import HistoryStore
from core.monitor.machine_constants import MachineConstantsProvider, machine_constants
from core.sources.base import CounterSource
from models.errors import UsageError
from models.schemas import SampleOptions, UsageResult

logger = structlog.get_logger(__name__)


class Sampler:
    """
    Samples CPU and memory usage of a process through one CounterSource.

    Each Sampler owns its HistoryStore, so independent Samplers never see each
    other's history. Calls for different pids run concurrently; calls for the
    same pid are not serialized and the last one to finish wins.
    """

    def __init__(
        self,
        source: CounterSource,
        history: HistoryStore | None = None,
        constants: MachineConstantsProvider | None = None,
        engine: DeltaEngine | None = None,
    ) -> None:
        self.source = source
        self.history = history if history is not None else HistoryStore()
        self._constants = constants or machine_constants
        self._engine = engine or DeltaEngine()

    async def sample(self, pid: int, options: SampleOptions | None = None) -> UsageResult:
        options = options or SampleOptions(include_children=settings.INCLUDE_CHILDREN)
        try:
            constants = await self._constants.get() if self.source.requires_constants else None
            raw = await self.source.read(pid)
            result, entry = self._engine.compute(raw, self.history.get(pid), constants, options)
        except UsageError as e:
            logger.warning(
                "sampler.sample_failed",
                pid=pid,
                source=self.source.kind.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        if entry is not None:
            self.history.put(pid, entry)
        return result
