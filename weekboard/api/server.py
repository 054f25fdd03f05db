"""
FastAPI server for the weekboard API. Run with run_api_server(app) in a background thread.
Central endpoints: GET /api/components, GET /api/tasks. Per-plugin routes are mounted
from weekboard.plugins.<package>.api (get_router(weekboard_app)) under /api/components/<package>/.
"""
import importlib
import logging
import pkgutil
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Keys to exclude from component config in API (secrets)
_CONFIG_SECRET_KEYS = frozenset(
    {"api_key", "password", "token", "secret", "credentials", "client_secret"}
)


def _safe_component_config(config: Any) -> Any:
    """Return config with secret keys omitted, including nested sections such as backend."""
    if isinstance(config, dict):
        return {
            k: _safe_component_config(v)
            for k, v in config.items()
            if str(k).lower() not in _CONFIG_SECRET_KEYS
        }
    return config


def _serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Serialize datetime to ISO string (UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def create_app(weekboard_app: Any, plugin_package: str = "weekboard.plugins") -> FastAPI:
    """Create FastAPI app with routes that use the given WeekboardApp instance."""
    app = FastAPI(title="Weekboard API", description="Components, timers, and component data")

    @app.get("/api/components")
    def list_components() -> List[Dict[str, Any]]:
        """List registered components with enabled state and safe config."""
        comp_config = weekboard_app.config.data.get("components") or {}
        components_data = []
        for name in weekboard_app.plugin_manager.components:
            config = comp_config.get(name) or {}
            enabled = config.get("enable", True) if isinstance(config, dict) else True
            components_data.append({
                "name": name,
                "enabled": enabled,
                "config": _safe_component_config(config) if isinstance(config, dict) else {},
            })
        return components_data

    @app.get("/api/tasks")
    def list_tasks() -> Dict[str, Any]:
        """List active in-memory timers."""
        active = weekboard_app.task_manager.get_active_timers()
        return {
            "active_timers": [
                {"name": t["name"], "next_run_at": _serialize_datetime(t["next_run_at"])}
                for t in active
            ]
        }

    try:
        plugins_pkg = importlib.import_module(plugin_package)
        for _mod, name, is_pkg in pkgutil.iter_modules(plugins_pkg.__path__):
            if not is_pkg:
                continue
            try:
                api_module = importlib.import_module(f"{plugin_package}.{name}.api")
            except ImportError:
                continue
            if not callable(getattr(api_module, "get_router", None)):
                continue
            try:
                router = api_module.get_router(weekboard_app)
                if router is not None:
                    app.include_router(router, prefix=f"/api/components/{name}")
            except Exception as e:
                logger.warning(f"Failed to mount API router for plugin {name}: {e}", exc_info=True)
    except Exception as e:
        logger.warning(f"Plugin API discovery failed: {e}", exc_info=True)

    return app


def run_api_server(weekboard_app: Any) -> None:
    """
    Start the API server in a daemon thread if api.enabled is true.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    """
    api_config = weekboard_app.config.data.get("api") or {}
    if not api_config.get("enabled", False):
        logger.info("API server not started: set api.enabled to true in your config file to enable.")
        return
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(weekboard_app)

    def run_uvicorn():
        try:
            import uvicorn
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port)
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    thread = threading.Thread(target=run_uvicorn, daemon=True)
    thread.start()
    logger.info("API server thread started.")
