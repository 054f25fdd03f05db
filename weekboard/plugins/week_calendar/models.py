"""
SQLAlchemy model for the local day_status table (used by the sql backend).
Mirrors the hosted table: one row per date, date is the upsert key.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, DateTime, Integer

from weekboard.core.db import Base


def _utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DayStatusRecord(Base):
    """Holiday flag for one calendar date. date is an ISO YYYY-MM-DD string."""
    __tablename__ = "day_status"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10), nullable=False, unique=True, index=True)
    is_holiday = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)
