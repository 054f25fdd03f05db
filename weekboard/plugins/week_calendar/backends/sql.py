"""
Local backend: the day_status table in the app's SQLAlchemy database.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from weekboard.core.db import session_scope
from weekboard.core.errors import BackendError
from weekboard.plugins.week_calendar.models import DayStatusRecord
from .base import DayStatus, DayStatusBackend


def _naive_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SqlBackend(DayStatusBackend):
    """Reads and writes DayStatusRecord rows through session_scope()."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger: Optional[logging.Logger] = None):
        self.config = config or {}
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def select(self, keys: Iterable[str]) -> List[DayStatus]:
        keys = list(keys)
        if not keys:
            return []
        try:
            with session_scope() as session:
                rows = session.execute(
                    select(DayStatusRecord).where(DayStatusRecord.date.in_(keys))
                ).scalars().all()
                return [DayStatus(r.date, bool(r.is_holiday), r.updated_at) for r in rows]
        except SQLAlchemyError as e:
            raise BackendError(f"Error reading day_status: {e}") from e

    def upsert(self, status: DayStatus) -> None:
        """Update the row for status.date or insert it; one row per date afterwards."""
        updated_at = _naive_utc(status.updated_at)
        try:
            with session_scope() as session:
                row = session.execute(
                    select(DayStatusRecord).where(DayStatusRecord.date == status.date)
                ).scalars().first()
                if row:
                    row.is_holiday = bool(status.is_holiday)
                    row.updated_at = updated_at
                else:
                    session.add(DayStatusRecord(
                        date=status.date,
                        is_holiday=bool(status.is_holiday),
                        created_at=updated_at,
                        updated_at=updated_at,
                    ))
        except SQLAlchemyError as e:
            raise BackendError(f"Error writing day_status for {status.date}: {e}") from e
