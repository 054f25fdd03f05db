from datetime import date, datetime, timedelta, timezone

import pytest

from weekboard.plugins.week_calendar.window import (
    date_key,
    day_label,
    month_label,
    resolve_window,
    weekday_label,
    window_keys,
)


def test_window_starts_yesterday_and_spans_seven_days():
    dates = resolve_window(date(2024, 3, 15))
    assert [d.isoformat() for d in dates] == [
        "2024-03-14", "2024-03-15", "2024-03-16", "2024-03-17",
        "2024-03-18", "2024-03-19", "2024-03-20",
    ]


@pytest.mark.parametrize("reference", [date(2024, 1, 1), date(2024, 2, 28), date(2023, 12, 31), date(2024, 3, 10)])
def test_window_is_strictly_consecutive(reference):
    dates = resolve_window(reference)
    assert len(dates) == 7
    assert dates[0] == reference - timedelta(days=1)
    assert all(b - a == timedelta(days=1) for a, b in zip(dates, dates[1:]))


def test_window_accepts_datetime_and_ignores_time_of_day():
    late = datetime(2024, 3, 15, 23, 59, tzinfo=timezone(timedelta(hours=-8)))
    early = datetime(2024, 3, 15, 0, 1)
    assert resolve_window(late) == resolve_window(early) == resolve_window(date(2024, 3, 15))


def test_window_returns_fresh_list_each_call():
    first = resolve_window(date(2024, 3, 15))
    second = resolve_window(date(2024, 3, 15))
    assert first == second
    assert first is not second


def test_window_defaults_to_today():
    assert resolve_window()[1] == date.today()


def test_window_keys():
    assert window_keys(date(2024, 12, 30))[:3] == ["2024-12-29", "2024-12-30", "2024-12-31"]
    assert window_keys(date(2024, 12, 30))[-1] == "2025-01-04"


def test_date_key_normalizes_inputs():
    assert date_key(date(2024, 3, 5)) == "2024-03-05"
    assert date_key(datetime(2024, 3, 5, 18, 45, tzinfo=timezone.utc)) == "2024-03-05"
    assert date_key("2024-03-05") == "2024-03-05"
    assert date_key(" 2024-03-05T10:00:00Z") == "2024-03-05"


@pytest.mark.parametrize("bad", ["2024-3-5", "yesterday", "", "2024-03-15junk", "2024-03-15T", "20240315", "2024-02-30"])
def test_date_key_rejects_malformed_strings(bad):
    with pytest.raises(ValueError):
        date_key(bad)


def test_date_key_rejects_other_types():
    with pytest.raises(TypeError):
        date_key(20240305)


def test_labels():
    dates = resolve_window(date(2024, 3, 15))
    assert month_label(dates) == "March 2024"
    assert weekday_label(date(2024, 3, 15)) == "Fri"
    assert day_label(date(2024, 3, 5)) == "5"


def test_month_label_uses_middle_date_across_month_boundary():
    # window 2024-03-28 .. 2024-04-03, middle date is 2024-03-31
    assert month_label(resolve_window(date(2024, 3, 29))) == "March 2024"
    # window 2024-03-30 .. 2024-04-05, middle date is 2024-04-02
    assert month_label(resolve_window(date(2024, 3, 31))) == "April 2024"
