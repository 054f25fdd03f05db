"""
Exceptions shared by the app shell and plugins.
"""


class WeekboardError(Exception):
    """Base class for weekboard errors."""


class BackendError(WeekboardError):
    """A remote or local day-status store rejected or failed a request."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(WeekboardError):
    """Component configuration is missing or invalid."""
