from concurrent.futures import Future
from datetime import datetime, timezone

import pytest

from weekboard.plugins.week_calendar.backends import MemoryBackend
from weekboard.plugins.week_calendar.reconciler import ToggleReconciler
from weekboard.plugins.week_calendar.store import DayStatusStore

FIXED_NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


class ManualSubmit:
    """Stands in for TaskManager.submit: records each call and leaves its future pending."""

    def __init__(self):
        self.calls = []

    def __call__(self, fn, *args):
        future = Future()
        self.calls.append((fn, args, future))
        return future

    def succeed(self, index=0):
        fn, args, future = self.calls[index]
        future.set_result(fn(*args))

    def fail(self, index=0, error=None):
        _, _, future = self.calls[index]
        future.set_exception(error or ConnectionError("network down"))


class Notices:
    def __init__(self):
        self.items = []

    def __call__(self, kind, message):
        self.items.append((kind, message))


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return DayStatusStore(backend)


@pytest.fixture
def submit():
    return ManualSubmit()


@pytest.fixture
def notices():
    return Notices()


@pytest.fixture
def make_reconciler(store, backend, submit, notices):
    def _make(**kwargs):
        kwargs.setdefault("is_admin", True)
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        return ToggleReconciler(store, backend, submit=submit, notify=notices, **kwargs)
    return _make
