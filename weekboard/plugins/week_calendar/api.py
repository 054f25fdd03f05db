"""
Per-plugin API for Week Calendar. Mounted at /api/components/week_calendar/.
Serves the window as the running component currently shows it (optimistic values included).
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

COMPONENT_NAME = "Week Calendar"


class WeekCalendarResponse(BaseModel):
    """Response for GET /data."""

    title: str
    dates: List[str]
    statuses: Dict[str, bool]
    pending: List[str] = []
    holiday_count: int = 0
    loaded: bool = False


def _find_component(weekboard_app: Any):
    for component in getattr(weekboard_app, "components", []):
        if component.name == COMPONENT_NAME:
            return component
    return None


def get_router(weekboard_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/week_calendar."""
    router = APIRouter(tags=["Week Calendar"])

    @router.get("/data", response_model=WeekCalendarResponse)
    def get_data() -> WeekCalendarResponse:
        """Return dates, holiday flags and in-flight writes for the visible week."""
        component = _find_component(weekboard_app)
        if component is None:
            raise HTTPException(status_code=404, detail="Week Calendar is not enabled")
        return WeekCalendarResponse(**component.get_api_data())

    return router
