"""
Cell colors for the week calendar. Green = holiday, red = working day.
"""
from typing import Dict

HOLIDAY_STYLE = {"bg": "#1f3d2b", "border": "#22c55e", "fg": "#ffffff"}
WORKING_STYLE = {"bg": "#3d1f22", "border": "#ef4444", "fg": "#ffffff"}
PENDING_BORDER = "#facc15"
NOTICE_STYLE = {"bg": "#7f1d1d", "fg": "#ffffff"}
ADMIN_HINT = "Click to toggle: Green = Holiday, Red = Working Day"
LOAD_FAILED_HINT = "Could not load day statuses; showing working days."


def cell_style(is_holiday: bool, pending: bool = False, clickable: bool = False) -> Dict[str, str]:
    """Colors, relief and cursor for one day cell."""
    style = dict(HOLIDAY_STYLE if is_holiday else WORKING_STYLE)
    if pending:
        style["border"] = PENDING_BORDER
    style["relief"] = "sunken" if pending else "groove"
    style["cursor"] = "hand2" if clickable else ""
    return style
