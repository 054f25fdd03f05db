from unittest import mock

from weekboard.core.errors import BackendError
from weekboard.plugins.week_calendar.backends import DayStatus, MemoryBackend
from weekboard.plugins.week_calendar.store import DayStatusStore, LoadResult

KEYS = ["2024-03-14", "2024-03-15", "2024-03-16"]


def test_absent_keys_read_as_working_days(store):
    assert store.get("2024-03-15") is False
    assert store.snapshot() == {}


def test_load_folds_records_into_map():
    backend = MemoryBackend({"seed": {"2024-03-15": True, "2024-03-16": False}})
    store = DayStatusStore(backend)

    result = store.load(KEYS)

    assert result.ok
    assert result.statuses == {"2024-03-15": True, "2024-03-16": False}
    assert store.get("2024-03-14") is False
    assert store.get("2024-03-15") is True
    assert store.last_load is result


def test_load_issues_one_bulk_read():
    backend = mock.Mock()
    backend.select.return_value = [DayStatus("2024-03-15", True)]
    store = DayStatusStore(backend)

    store.load(KEYS)

    backend.select.assert_called_once_with(KEYS)


def test_load_ignores_records_outside_requested_keys():
    backend = mock.Mock()
    backend.select.return_value = [DayStatus("2024-03-15", True), DayStatus("2025-01-01", True)]
    store = DayStatusStore(backend)

    store.load(KEYS)

    assert store.snapshot() == {"2024-03-15": True}


def test_failed_first_load_leaves_map_empty():
    backend = mock.Mock()
    backend.select.side_effect = BackendError("boom", status_code=503)
    store = DayStatusStore(backend)

    result = store.load(KEYS)

    assert not result.ok
    assert isinstance(result.error, BackendError)
    assert result.statuses == {}
    assert store.snapshot() == {}
    assert all(store.get(k) is False for k in KEYS)


def test_failed_reload_keeps_previous_map():
    backend = mock.Mock()
    backend.select.return_value = [DayStatus("2024-03-15", True)]
    store = DayStatusStore(backend)
    store.load(KEYS)

    backend.select.side_effect = ConnectionError("offline")
    result = store.load(KEYS)

    assert not result.ok
    assert store.snapshot() == {"2024-03-15": True}


def test_successful_load_replaces_map_wholesale(store):
    store.set("2024-03-14", True)
    store.apply(LoadResult(statuses={"2024-03-15": True}))
    assert store.snapshot() == {"2024-03-15": True}


def test_snapshot_is_a_copy(store):
    store.set("2024-03-15", True)
    snap = store.snapshot()
    snap["2024-03-15"] = False
    assert store.get("2024-03-15") is True


def test_holiday_count(store):
    store.replace({"2024-03-14": True, "2024-03-15": False, "2024-03-16": True})
    assert store.holiday_count(KEYS) == 2
    assert store.holiday_count(["2024-03-20"]) == 0


def test_apply_keeps_held_value_and_records_remote_read(store):
    store.hold("2024-03-15", True)
    store.apply(LoadResult(statuses={"2024-03-14": True}))

    assert store.snapshot() == {"2024-03-14": True, "2024-03-15": True}
    assert store.revert("2024-03-15", True) is False
    assert store.get("2024-03-15") is False


def test_confirmed_write_survives_only_reads_dispatched_before_it(store):
    earlier = store.begin_load()
    store.hold("2024-03-15", True)
    store.confirm("2024-03-15")

    store.apply(LoadResult(statuses={}, generation=earlier))
    assert store.get("2024-03-15") is True

    later = store.begin_load()
    store.apply(LoadResult(statuses={}, generation=later))
    assert store.get("2024-03-15") is False


def test_retain_narrows_map_to_window(store):
    store.replace({"2024-03-14": True, "2024-03-15": True})
    store.retain(["2024-03-15", "2024-03-16"])

    assert store.snapshot() == {"2024-03-15": True}
    store.apply(LoadResult(statuses={"2024-03-14": True, "2024-03-16": True}))
    assert store.snapshot() == {"2024-03-16": True}


def test_revert_outside_window_is_skipped(store):
    store.retain(["2024-03-16"])
    assert store.revert("2024-03-15", True) is None
    assert store.snapshot() == {}
