def register_components(plugin_manager):
    """Register Week Calendar component."""
    from .week_calendar_component import WeekCalendarComponent
    plugin_manager.register_component(WeekCalendarComponent)
