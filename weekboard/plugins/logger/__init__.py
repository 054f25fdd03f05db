def register_components(plugin_manager):
    """Register System Logs component."""
    from .log_component import LogComponent
    plugin_manager.register_component(LogComponent)
