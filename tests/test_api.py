from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from weekboard.api import create_app


class FakeWeekCalendar:
    name = "Week Calendar"

    def get_api_data(self):
        return {
            "title": "March 2024",
            "dates": ["2024-03-14", "2024-03-15"],
            "statuses": {"2024-03-14": False, "2024-03-15": True},
            "pending": ["2024-03-15"],
            "holiday_count": 1,
            "loaded": True,
        }


def _fake_app(components):
    return SimpleNamespace(
        config=SimpleNamespace(data={
            "components": {
                "Week Calendar": {
                    "enable": True,
                    "is_admin": True,
                    "backend": {"type": "supabase", "url": "https://x.supabase.co", "api_key": "anon"},
                },
            }
        }),
        plugin_manager=SimpleNamespace(components={"Week Calendar": object, "System Logs": object}),
        task_manager=SimpleNamespace(get_active_timers=lambda: [
            {"name": "Week Calendar_rollover", "next_run_at": datetime(2024, 3, 16, 0, 0, 1, tzinfo=timezone.utc)},
        ]),
        components=components,
    )


@pytest.fixture
def client():
    return TestClient(create_app(_fake_app([FakeWeekCalendar()])))


def test_components_hide_secrets(client):
    response = client.get("/api/components")
    assert response.status_code == 200
    by_name = {c["name"]: c for c in response.json()}
    week = by_name["Week Calendar"]
    assert week["enabled"] is True
    assert week["config"]["backend"] == {"type": "supabase", "url": "https://x.supabase.co"}
    assert by_name["System Logs"]["config"] == {}


def test_tasks_lists_timers(client):
    response = client.get("/api/tasks")
    assert response.json() == {
        "active_timers": [{"name": "Week Calendar_rollover", "next_run_at": "2024-03-16T00:00:01+00:00"}]
    }


def test_week_calendar_data(client):
    response = client.get("/api/components/week_calendar/data")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "March 2024"
    assert body["statuses"]["2024-03-15"] is True
    assert body["pending"] == ["2024-03-15"]
    assert body["holiday_count"] == 1


def test_week_calendar_data_when_disabled():
    client = TestClient(create_app(_fake_app([])))
    response = client.get("/api/components/week_calendar/data")
    assert response.status_code == 404
