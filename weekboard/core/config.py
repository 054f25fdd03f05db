import yaml
from pathlib import Path
import os
from typing import Any, Dict, Optional, List, Callable
import logging
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileModifiedEvent
import time
import re

ENV_LINE_RE = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$')


def default_config(config_dir: Path) -> Dict[str, Any]:
    return {
        "window": {
            "fullscreen": False,
            "borderless": False,
            "width": 800,
            "height": 480,
            "auto_size": False,
            "margin_percent": 5,
        },
        "layout": {
            "columns": 1,
            "padding": 10
        },
        "components": {
            "Week Calendar": {
                "enable": True,
                "is_admin": False,
                "backend": {"type": "sql"},
                "timeout_seconds": 10,
                "in_flight_policy": "drop",
                "notice_ms": 4000,
            },
            "System Logs": {
                "enable": True,
                "level": "INFO"
            }
        },
        "database": {
            "path": str(config_dir / "weekboard.db")
        },
        "api": {
            "enabled": False,
            "host": "127.0.0.1",
            "port": 8765
        },
        "update_interval": 60000,  # milliseconds
        "logging": {
            "level": "INFO",
            "file": str(config_dir / "weekboard.log")
        }
    }


class ConfigChangeHandler(FileSystemEventHandler):
    def __init__(self, config, cooldown: float = 1.0):
        self.config = config
        self.last_modified = 0
        self.cooldown = cooldown

    def on_modified(self, event):
        if not isinstance(event, FileModifiedEvent):
            return
        current_time = time.time()
        if current_time - self.last_modified < self.cooldown:
            return
        if event.src_path == str(self.config.config_file):
            try:
                self.last_modified = current_time
                self.config.reload()
            except Exception as e:
                logging.error(f"Error handling config change: {e}")


class Config:
    """
    YAML config with .env loading, ${VAR} substitution and live reload.
    Change callbacks run on the Tk thread when a root window is given.
    """

    def __init__(self, root=None, config_path: Optional[str] = None, watch: bool = True):
        self.root = root
        self.change_callbacks: List[Callable] = []
        self._loading = False

        if config_path:
            self.config_file = Path(config_path).resolve()
            self.config_dir = self.config_file.parent
        else:
            self.config_dir = Path.cwd()
            self.config_file = self.config_dir / "config.yaml"
        logging.debug(f"Using config file: {self.config_file}")

        self._load_env_file()
        self._ensure_config_exists()
        self._load_config()

        self.observer = None
        if watch:
            self.observer = Observer()
            self.observer.schedule(ConfigChangeHandler(self), str(self.config_dir), recursive=False)
            self.observer.start()
            logging.info(f"Path monitored for reloading: {self.config_dir}")

    def register_change_callback(self, callback: Callable) -> None:
        """Register a callback to be called with the new data when config changes"""
        self.change_callbacks.append(callback)

    def reload(self) -> None:
        """Reload config and notify listeners"""
        if self._loading:
            return
        self._loading = True
        try:
            logging.info("Config file change detected - reloading configuration")
            time.sleep(0.1)  # let the writer finish
            old_config = dict(self.data)
            self._load_config()
            self._log_config_changes(old_config, self.data)
            for callback in self.change_callbacks:
                try:
                    if self.root:
                        self.root.after_idle(lambda cb=callback: cb(self.data))
                    else:
                        callback(self.data)
                except Exception as e:
                    logging.error(f"Error in config change callback: {e}")
        except Exception as e:
            logging.error(f"Error reloading config: {e}")
            logging.exception(e)
        finally:
            self._loading = False

    def _log_config_changes(self, old_config: Dict, new_config: Dict, path: str = "") -> None:
        for key in set(old_config) | set(new_config):
            current_path = f"{path}.{key}" if path else key
            if key not in new_config:
                logging.info(f"Config removed: {current_path}")
            elif key not in old_config:
                logging.info(f"Config added: {current_path}")
            elif isinstance(old_config[key], dict) and isinstance(new_config[key], dict):
                self._log_config_changes(old_config[key], new_config[key], current_path)
            elif old_config[key] != new_config[key]:
                logging.info(f"Config changed: {current_path}")

    def cleanup(self) -> None:
        """Stop the file observer"""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()

    def _ensure_config_exists(self) -> None:
        """Create default config if it doesn't exist"""
        if not self.config_dir.exists():
            logging.info(f"Creating config directory: {self.config_dir}")
            self.config_dir.mkdir(parents=True)
        if not self.config_file.exists():
            logging.info(f"Creating default config file: {self.config_file}")
            self.config_file.write_text(yaml.dump(default_config(self.config_dir)))

    def _load_env_file(self) -> None:
        """Load KEY=VALUE lines from the first .env found; existing env vars win"""
        candidates = [self.config_dir / ".env", self.config_dir.parent / ".env", Path.cwd() / ".env"]
        env_file = next((p for p in candidates if p.exists()), None)
        if not env_file:
            logging.debug("No .env file found, skipping environment variable loading")
            return

        logging.info(f"Loading environment variables from: {env_file}")
        try:
            for line in env_file.read_text().splitlines():
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                match = ENV_LINE_RE.match(line)
                if match:
                    key, value = match.groups()
                    os.environ.setdefault(key, value.strip('"').strip("'"))
        except Exception as e:
            logging.warning(f"Error loading .env file: {e}")

    def _substitute_env_vars(self, data: Any) -> Any:
        """Replace "${VAR}" / "$VAR" string values with the environment value (left as is when unset)"""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        if isinstance(data, str):
            if data.startswith('${') and data.endswith('}'):
                return os.environ.get(data[2:-1], data)
            if data.startswith('$') and len(data) > 1:
                return os.environ.get(data[1:], data)
        return data

    def _load_config(self) -> None:
        """Load configuration from file, keeping the previous data on error"""
        try:
            with open(self.config_file) as f:
                new_data = yaml.safe_load(f)
            if not isinstance(new_data, dict):
                raise ValueError("Invalid config format: root must be a dictionary")
            self.data = self._substitute_env_vars(new_data)
            if "file" in self.data.get("logging", {}):
                self.data["logging"]["file"] = os.path.expanduser(self.data["logging"]["file"])
        except Exception as e:
            logging.error(f"Error loading config: {e}")
            if hasattr(self, 'data'):
                logging.info("Keeping previous configuration")
            else:
                logging.info("Using default configuration")
                self.data = default_config(self.config_dir)

    def get_component_config(self, component_name: str) -> Optional[Dict[str, Any]]:
        """Get config for a specific component"""
        return (self.data.get("components") or {}).get(component_name)

    def save_component_config(self, component_name: str, config: Dict[str, Any]) -> None:
        """Save configuration for a specific component"""
        self.data.setdefault("components", {})[component_name] = config
        with open(self.config_file, "w") as f:
            yaml.dump(self.data, f)
