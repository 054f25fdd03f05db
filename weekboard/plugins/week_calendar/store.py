"""
Client-side status map for the visible window.

The map is owned by one week calendar instance: created empty, replaced by a
successful load, and mutated one key at a time by the toggle reconciler. Keys missing
from the map are working days.

Loads and toggles race: a read dispatched before a click can land after it. Every load
carries the generation it was dispatched under (begin_load), and apply() keeps the
local value of any date whose write is still pending or was confirmed after that
dispatch, so a stale read never hides a newer write.
"""
import logging
from typing import Dict, Iterable, Optional, Set

from .backends.base import DayStatusBackend


class LoadResult:
    """Outcome of one bulk read. statuses is empty when error is set."""

    def __init__(
        self,
        statuses: Optional[Dict[str, bool]] = None,
        error: Optional[BaseException] = None,
        generation: int = 0,
    ):
        self.statuses = statuses or {}
        self.error = error
        self.generation = generation

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.ok:
            return f"LoadResult(statuses={self.statuses!r}, generation={self.generation})"
        return f"LoadResult(error={self.error!r}, generation={self.generation})"


class DayStatusStore:
    def __init__(self, backend: DayStatusBackend):
        self.backend = backend
        self.logger = logging.getLogger(self.__class__.__name__)
        self._statuses: Dict[str, bool] = {}
        self.last_load: Optional[LoadResult] = None
        self.window: Optional[Set[str]] = None
        self._generation = 0
        self._pending: Set[str] = set()
        # key -> generation under which its last write was confirmed
        self._confirmed: Dict[str, int] = {}
        # remote value read for a key while its write was pending
        self._read_while_pending: Dict[str, bool] = {}

    def get(self, key: str) -> bool:
        return self._statuses.get(key, False)

    def set(self, key: str, value: bool) -> None:
        self._statuses[key] = bool(value)

    def replace(self, statuses: Dict[str, bool]) -> None:
        self._statuses = {k: bool(v) for k, v in statuses.items()}

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._statuses)

    def in_window(self, key: str) -> bool:
        return self.window is None or key in self.window

    def retain(self, keys: Iterable[str]) -> None:
        """Narrow the map to a new window; values for dates that stay visible are kept."""
        self.window = set(keys)
        self._statuses = {k: v for k, v in self._statuses.items() if k in self.window}
        self._confirmed = {k: g for k, g in self._confirmed.items() if k in self.window}
        self._read_while_pending = {
            k: v for k, v in self._read_while_pending.items() if k in self.window
        }

    # local writes, driven by the reconciler

    def hold(self, key: str, value: bool) -> None:
        """Optimistic value for key; loads leave it alone until the write settles."""
        self.set(key, value)
        self._pending.add(key)

    def confirm(self, key: str) -> None:
        self._pending.discard(key)
        self._read_while_pending.pop(key, None)
        self._confirmed[key] = self._generation

    def revert(self, key: str, previous: bool) -> Optional[bool]:
        """
        Undo a failed write. A load that arrived while the write was pending wins over
        previous. Dates that have left the window are not written back.
        Returns the restored value, or None when nothing was restored.
        """
        self._pending.discard(key)
        value = self._read_while_pending.pop(key, previous)
        if not self.in_window(key):
            self.logger.debug(f"Not restoring {key}: outside the current window")
            return None
        self.set(key, value)
        return value

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    # loads

    def begin_load(self) -> int:
        """Mark a read as dispatched now; pass the returned generation to fetch()."""
        self._generation += 1
        return self._generation

    def fetch(self, keys: Iterable[str], generation: int = 0) -> LoadResult:
        """One bulk read for keys. Never raises; failures come back in LoadResult.error."""
        keys = list(keys)
        try:
            records = self.backend.select(keys)
        except Exception as e:
            self.logger.warning(f"Loading day statuses failed: {e}")
            return LoadResult(error=e, generation=generation)
        wanted = set(keys)
        statuses = {r.date: bool(r.is_holiday) for r in records if r.date in wanted}
        self.logger.debug(f"Loaded {len(statuses)} of {len(keys)} day statuses")
        return LoadResult(statuses=statuses, generation=generation)

    def apply(self, result: LoadResult) -> LoadResult:
        """Install a fetched result. A failed load keeps the current map."""
        self.last_load = result
        if not result.ok:
            return result

        statuses = {k: v for k, v in result.statuses.items() if self.in_window(k)}
        for key in self._pending:
            if not self.in_window(key):
                continue
            self._read_while_pending[key] = statuses.get(key, False)
            statuses[key] = self.get(key)
        for key, generation in self._confirmed.items():
            if generation >= result.generation and key not in self._pending:
                self.logger.debug(f"Keeping {key}: confirmed after the read was dispatched")
                statuses[key] = self.get(key)
        self._confirmed = {k: g for k, g in self._confirmed.items() if g >= result.generation}
        self.replace(statuses)
        return result

    def load(self, keys: Iterable[str]) -> LoadResult:
        return self.apply(self.fetch(keys, self.begin_load()))

    def is_holiday(self, key: str) -> bool:
        return self.get(key)

    def holiday_count(self, keys: Iterable[str]) -> int:
        return sum(1 for k in keys if self.is_holiday(k))
