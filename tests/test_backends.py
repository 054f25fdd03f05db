from datetime import datetime, timezone
from unittest import mock

import httpx
import pytest
from postgrest.exceptions import APIError
from sqlalchemy import select

from weekboard.core import db
from weekboard.core.errors import BackendError, ConfigError
from weekboard.plugins.week_calendar.backends import (
    DayStatus,
    MemoryBackend,
    SqlBackend,
    SupabaseBackend,
    get_backend,
)
from weekboard.plugins.week_calendar.models import DayStatusRecord

SUPABASE_CONFIG = {
    "url": "https://project.supabase.co/",
    "api_key": "anon-key",
    "timeout_seconds": 5,
}


@pytest.fixture
def create_client():
    with mock.patch("weekboard.plugins.week_calendar.backends.supabase.create_client") as patched:
        yield patched


@pytest.fixture
def supabase(create_client):
    return SupabaseBackend(SUPABASE_CONFIG)


@pytest.fixture
def table(create_client):
    return create_client.return_value.table.return_value


def test_supabase_requires_url_and_key(create_client):
    with pytest.raises(ConfigError):
        SupabaseBackend({"url": "https://project.supabase.co"})
    with pytest.raises(ConfigError):
        SupabaseBackend({"api_key": "k"})
    create_client.assert_not_called()


def test_supabase_client_gets_url_key_and_timeout(supabase, create_client):
    args, kwargs = create_client.call_args
    assert args == ("https://project.supabase.co", "anon-key")
    assert kwargs["options"].postgrest_client_timeout == 5.0
    assert supabase.client is create_client.return_value


def test_supabase_client_errors_become_config_errors(create_client):
    create_client.side_effect = ValueError("Invalid URL")
    with pytest.raises(ConfigError):
        SupabaseBackend(SUPABASE_CONFIG)


def test_supabase_select_filters_on_keys(supabase, create_client, table):
    query = table.select.return_value.in_.return_value
    query.execute.return_value = mock.Mock(data=[
        {"id": 1, "date": "2024-03-15", "is_holiday": True, "updated_at": "2024-03-15T08:00:00Z"},
        {"id": 2, "date": "2024-03-16", "is_holiday": False, "updated_at": None},
    ])

    rows = supabase.select(["2024-03-15", "2024-03-16"])

    create_client.return_value.table.assert_called_once_with("day_status")
    table.select.assert_called_once_with("*")
    table.select.return_value.in_.assert_called_once_with("date", ["2024-03-15", "2024-03-16"])
    assert rows == [
        DayStatus("2024-03-15", True, datetime(2024, 3, 15, 8, tzinfo=timezone.utc)),
        DayStatus("2024-03-16", False, None),
    ]


def test_supabase_select_without_keys_skips_request(supabase, create_client):
    assert supabase.select([]) == []
    create_client.return_value.table.assert_not_called()


def test_supabase_uses_configured_table(create_client):
    backend = SupabaseBackend(dict(SUPABASE_CONFIG, table="office_days"))
    backend.upsert(DayStatus("2024-03-15", True))
    create_client.return_value.table.assert_called_once_with("office_days")


def test_supabase_upsert_uses_date_as_conflict_key(supabase, table):
    stamp = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)

    supabase.upsert(DayStatus("2024-03-15", True, stamp))

    table.upsert.assert_called_once_with(
        {"date": "2024-03-15", "is_holiday": True, "updated_at": "2024-03-15T09:30:00+00:00"},
        on_conflict="date",
    )
    table.upsert.return_value.execute.assert_called_once_with()


def test_supabase_upsert_treats_naive_timestamp_as_utc(supabase, table):
    supabase.upsert(DayStatus("2024-03-15", False, datetime(2024, 3, 15, 9, 30)))
    payload = table.upsert.call_args.args[0]
    assert payload["updated_at"] == "2024-03-15T09:30:00+00:00"


def test_supabase_api_error_raises_backend_error(supabase, table):
    table.upsert.return_value.execute.side_effect = APIError(
        {"message": "JWT expired", "code": "PGRST301", "hint": None, "details": None}
    )
    with pytest.raises(BackendError, match="PGRST301"):
        supabase.upsert(DayStatus("2024-03-15", True))


def test_supabase_network_error_raises_backend_error(supabase, table):
    table.select.return_value.in_.return_value.execute.side_effect = httpx.ConnectTimeout("timed out")
    with pytest.raises(BackendError):
        supabase.select(["2024-03-15"])


def test_supabase_unexpected_payload_raises_backend_error(supabase, table):
    table.select.return_value.in_.return_value.execute.return_value = mock.Mock(data={"message": "nope"})
    with pytest.raises(BackendError):
        supabase.select(["2024-03-15"])


@pytest.fixture
def sql_backend(tmp_path):
    db.dispose_db()
    db.init_db(db_url=f"sqlite:///{tmp_path / 'weekboard.db'}")
    yield SqlBackend()
    db.dispose_db()


def test_sql_upsert_keeps_one_row_per_date(sql_backend):
    sql_backend.upsert(DayStatus("2024-03-15", True, datetime(2024, 3, 15, 9, tzinfo=timezone.utc)))
    sql_backend.upsert(DayStatus("2024-03-15", False, datetime(2024, 3, 15, 10, tzinfo=timezone.utc)))

    with db.session_scope() as session:
        rows = session.execute(select(DayStatusRecord)).scalars().all()
        assert len(rows) == 1
        assert rows[0].is_holiday is False
        assert rows[0].updated_at == datetime(2024, 3, 15, 10)
        assert rows[0].created_at == datetime(2024, 3, 15, 9)


def test_sql_select_returns_only_requested_dates(sql_backend):
    sql_backend.upsert(DayStatus("2024-03-15", True))
    sql_backend.upsert(DayStatus("2024-03-30", True))

    rows = sql_backend.select(["2024-03-14", "2024-03-15"])

    assert [(r.date, r.is_holiday) for r in rows] == [("2024-03-15", True)]


def test_sql_backend_without_database_raises():
    db.dispose_db()
    with pytest.raises(RuntimeError):
        SqlBackend().select(["2024-03-15"])


def test_memory_backend_seed_and_upsert():
    backend = MemoryBackend({"seed": {"2024-03-15": True}})
    backend.upsert(DayStatus("2024-03-16", True))
    backend.upsert(DayStatus("2024-03-15", False))
    assert sorted((r.date, r.is_holiday) for r in backend.select(["2024-03-15", "2024-03-16", "2024-03-17"])) == [
        ("2024-03-15", False),
        ("2024-03-16", True),
    ]


def test_get_backend_factory():
    assert isinstance(get_backend("memory", {}), MemoryBackend)
    assert isinstance(get_backend("SQL", {}), SqlBackend)
    with mock.patch("weekboard.plugins.week_calendar.backends.supabase.create_client"):
        assert isinstance(get_backend("supabase", SUPABASE_CONFIG), SupabaseBackend)
    assert get_backend("firebase", {}) is None
    assert get_backend(None, {}) is None
