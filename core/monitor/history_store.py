from __future__ import annotations

import threading

from models.schemas import HistoryEntry


class HistoryStore:
    """Last sample seen per process id.

    Entries are overwritten on every successful sample and never expired, so
    a recycled pid inherits the previous owner's entry for one reading.
    """

    def __init__(self) -> None:
        self._entries: dict[int, HistoryEntry] = {}
        self._lock = threading.Lock()

    def get(self, pid: int) -> HistoryEntry | None:
        with self._lock:
            return self._entries.get(pid)

    def put(self, pid: int, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries[pid] = entry

    def __contains__(self, pid: object) -> bool:
        with self._lock:
            return pid in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
