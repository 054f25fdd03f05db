"""
Seven-day window shown by the week calendar: yesterday through yesterday + 6.
DateKeys are ISO YYYY-MM-DD strings; time of day and tzinfo never affect the key.
"""
import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Union

WINDOW_DAYS = 7

DateLike = Union[date, datetime, str]

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not _ISO_DATE.match(text):
            raise ValueError(f"Invalid date key: {value!r}")
        if len(text) == 10:
            return date.fromisoformat(text)
        # a full timestamp is accepted, only its calendar date is kept
        if text[10] not in "T ":
            raise ValueError(f"Invalid date key: {value!r}")
        return datetime.fromisoformat(text).date()
    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


def date_key(value: DateLike) -> str:
    """Canonical key for a calendar day. Raises ValueError for malformed strings."""
    return _as_date(value).isoformat()


def resolve_window(now: Optional[Union[date, datetime]] = None) -> List[date]:
    """Return the 7 dates starting one day before now, in display order."""
    today = _as_date(now) if now is not None else date.today()
    start = today - timedelta(days=1)
    return [start + timedelta(days=i) for i in range(WINDOW_DAYS)]


def window_keys(now: Optional[Union[date, datetime]] = None) -> List[str]:
    return [d.isoformat() for d in resolve_window(now)]


def month_label(dates: Sequence[date]) -> str:
    """Month and year of the middle date, e.g. 'March 2024'."""
    return dates[len(dates) // 2].strftime("%B %Y")


def weekday_label(d: date) -> str:
    return d.strftime("%a")


def day_label(d: date) -> str:
    return str(d.day)
