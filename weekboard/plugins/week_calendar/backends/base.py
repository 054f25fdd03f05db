"""
Base type and interface for day-status backends.
All backends read and write DayStatus tuples; no dicts cross this boundary.
"""
from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Iterable, List

DayStatus = namedtuple(
    "DayStatus",
    [
        "date",        # DateKey, "YYYY-MM-DD"
        "is_holiday",  # bool
        "updated_at",  # datetime or None
    ],
    defaults=(False, None),
)

CONFLICT_KEY = "date"


class DayStatusBackend(ABC):
    """Abstract store for per-date holiday flags."""

    table = "day_status"

    @abstractmethod
    def select(self, keys: Iterable[str]) -> List[DayStatus]:
        """Return the stored records whose date is in keys. Raise BackendError on failure."""
        pass

    @abstractmethod
    def upsert(self, status: DayStatus) -> None:
        """Insert or replace the record for status.date. Raise BackendError on failure."""
        pass
