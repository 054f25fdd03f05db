"""
Hosted backend: a Supabase table accessed with the supabase client.
Reads filter on date with in_, writes upsert with on_conflict=date.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import ClientOptions, create_client

from weekboard.core.errors import BackendError, ConfigError
from .base import CONFLICT_KEY, DayStatus, DayStatusBackend

DEFAULT_TIMEOUT = 10


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        value = datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# PostgREST codes for a rejected JWT and for a permission denied by row-level security
AUTH_ERROR_CODES = {"PGRST301", "PGRST302", "42501"}


class SupabaseBackend(DayStatusBackend):
    """day_status rows on a Supabase project."""

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.url = (config.get("url") or "").rstrip("/")
        self.api_key = config.get("api_key") or ""
        if not self.url or not self.api_key:
            raise ConfigError("supabase backend requires url and api_key")
        self.table = config.get("table", self.table)
        self.timeout = float(config.get("timeout_seconds", DEFAULT_TIMEOUT))
        try:
            self.client = create_client(
                self.url,
                self.api_key,
                options=ClientOptions(postgrest_client_timeout=self.timeout),
            )
        except Exception as e:
            raise ConfigError(f"Could not create supabase client for {self.url}: {e}") from e

    def select(self, keys: Iterable[str]) -> List[DayStatus]:
        keys = list(keys)
        if not keys:
            return []
        self.logger.debug(f"Selecting {len(keys)} day statuses from {self.table}")
        try:
            response = self.client.table(self.table).select("*").in_("date", keys).execute()
        except APIError as e:
            raise self._api_error("select", e) from e
        except httpx.HTTPError as e:
            raise BackendError(f"Network error reading {self.table}: {e}") from e
        rows = response.data
        if not isinstance(rows, list):
            raise BackendError(f"Unexpected select response from {self.table}: {rows!r}")
        return [
            DayStatus(
                date=row.get("date"),
                is_holiday=bool(row.get("is_holiday", False)),
                updated_at=_parse_timestamp(row.get("updated_at")),
            )
            for row in rows
            if row.get("date")
        ]

    def upsert(self, status: DayStatus) -> None:
        payload = {
            "date": status.date,
            "is_holiday": bool(status.is_holiday),
            "updated_at": _format_timestamp(status.updated_at),
        }
        self.logger.debug(f"Upserting {payload} into {self.table}")
        try:
            self.client.table(self.table).upsert(payload, on_conflict=CONFLICT_KEY).execute()
        except APIError as e:
            raise self._api_error("upsert", e) from e
        except httpx.HTTPError as e:
            raise BackendError(f"Network error writing {self.table}: {e}") from e

    def _api_error(self, action: str, error: APIError) -> BackendError:
        if error.code in AUTH_ERROR_CODES:
            self.logger.error("Invalid API key or unauthorized access")
        return BackendError(f"{action} on {self.table} failed ({error.code}): {error.message}")
