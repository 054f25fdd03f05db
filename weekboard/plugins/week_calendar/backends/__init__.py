from .base import CONFLICT_KEY, DayStatus, DayStatusBackend
from .memory import MemoryBackend
from .sql import SqlBackend
from .supabase import SupabaseBackend

__all__ = ["CONFLICT_KEY", "DayStatus", "DayStatusBackend", "MemoryBackend", "SqlBackend", "SupabaseBackend"]

_BACKENDS = {
    "memory": MemoryBackend,
    "sql": SqlBackend,
    "supabase": SupabaseBackend,
}


def get_backend(backend_type: str, config: dict, logger=None):
    """Factory: return backend instance for given type."""
    cls = _BACKENDS.get((backend_type or "").lower())
    if not cls:
        return None
    return cls(config, logger=logger)
