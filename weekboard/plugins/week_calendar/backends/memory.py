"""
In-process backend. Keeps rows in a dict; handy for demos and for running without a database.
"""
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from .base import DayStatus, DayStatusBackend


class MemoryBackend(DayStatusBackend):
    def __init__(self, config: Optional[Dict[str, Any]] = None, logger: Optional[logging.Logger] = None):
        self.config = config or {}
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._rows: Dict[str, DayStatus] = {}
        self._lock = threading.Lock()
        for key, value in (self.config.get("seed") or {}).items():
            self._rows[key] = DayStatus(key, bool(value))

    def select(self, keys: Iterable[str]) -> List[DayStatus]:
        with self._lock:
            return [self._rows[k] for k in keys if k in self._rows]

    def upsert(self, status: DayStatus) -> None:
        with self._lock:
            self._rows[status.date] = status

    def rows(self) -> Dict[str, DayStatus]:
        with self._lock:
            return dict(self._rows)
