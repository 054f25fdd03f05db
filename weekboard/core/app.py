import tkinter as tk
import tkinter.messagebox as messagebox
from typing import Dict, Any, List, Optional
import logging
import sys
from .task_manager import TaskManager
from .component_base import DashboardComponent
from .plugin_manager import PluginManager
from .config import Config
from .layout_manager import LayoutManager
from .db import init_db

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


class WeekboardApp:
    def __init__(self, config_path: Optional[str] = None):
        self.root = tk.Tk()
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(root=self.root, config_path=config_path)
        self.config.register_change_callback(self.handle_config_change)

        self._setup_logging()
        self._configure_window()

        bg_color = self.config.data.get("window", {}).get("background_color")
        if bg_color:
            self.root.configure(bg=bg_color)
            self.root.option_add('*background', bg_color)
        self.main_container = tk.Frame(self.root, bg=bg_color)
        self.main_container.pack(fill=tk.BOTH, expand=True)

        # Tables must exist before components read from them
        init_db(self.config.data)

        self.plugin_manager = PluginManager()
        self.task_manager = TaskManager()

        layout = self.config.data.get("layout", {})
        self.layout_manager = LayoutManager(
            self.root,
            container=self.main_container,
            columns=layout.get("columns", 1),
            padding=layout.get("padding", 10),
            bg_color=bg_color,
        )

        self.components: List[DashboardComponent] = []
        self.initialize_components()

        try:
            from weekboard.api import run_api_server
            run_api_server(self)
        except Exception as e:
            self.logger.warning(f"API server not started: {e}")

    def _setup_logging(self) -> None:
        """Log to the configured file and stdout at the configured level"""
        log_config = self.config.data.get("logging", {})
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, log_config.get("level", "INFO")))

        formatter = logging.Formatter(LOG_FORMAT)
        if log_config.get("file"):
            file_handler = logging.FileHandler(log_config["file"])
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Weekboard starting...")

    def _configure_window(self) -> None:
        window_config = self.config.data.get("window", {})
        self.root.title("Weekboard")

        if window_config.get("borderless"):
            self.root.overrideredirect(True)
            self.root.attributes('-topmost', True)
            self.root.bind('<Escape>', lambda e: self.root.quit())

        if window_config.get("auto_size"):
            screen_width = self.root.winfo_screenwidth()
            screen_height = self.root.winfo_screenheight()
            margin = int(min(screen_width, screen_height) * window_config.get("margin_percent", 5) / 100)
            self.root.geometry(f"{screen_width - 2 * margin}x{screen_height - 2 * margin}+{margin}+{margin}")
        else:
            self.root.geometry(f"{window_config.get('width', 800)}x{window_config.get('height', 480)}")

        if window_config.get("fullscreen"):
            self.root.attributes('-fullscreen', True)

    def initialize_components(self) -> None:
        try:
            for component_name in self.plugin_manager.components:
                component_config = self.config.get_component_config(component_name)
                component = self.plugin_manager.create_component(self, component_name, component_config)
                if component:
                    self.layout_manager.add_component(component)
                    self.components.append(component)
                    logging.debug(f"Component {component_name} initialized successfully")
                else:
                    logging.debug(f"Skipping disabled component: {component_name}")
        except Exception as e:
            logging.error(f"Error initializing components: {e}")
            messagebox.showerror("Error", f"Failed to initialize components: {e}")
            logging.exception(e)

    def _schedule_update(self, component: DashboardComponent) -> None:
        """Redraw a component every update_interval ms (component config overrides the global one)"""
        interval = component.config.get("update_interval", self.config.data.get("update_interval", 60000))

        def _tick():
            try:
                component.update()
            except Exception as e:
                self.logger.error(f"Error updating {component.name}: {e}", exc_info=True)
            self.root.after(interval, _tick)

        self.root.after(interval, _tick)

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Push new layout and component settings to the live widgets"""
        self.logger.info("Handling config change")
        try:
            layout = new_config.get("layout", {})
            if (layout.get("columns") != self.layout_manager.columns or
                    layout.get("padding") != self.layout_manager.padding):
                self.layout_manager.update_layout(columns=layout.get("columns"), padding=layout.get("padding"))

            for component in self.components:
                component_config = (new_config.get('components') or {}).get(component.name)
                if component_config:
                    component.config.update(component_config)
                    component._handle_config_update()
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    def run(self) -> None:
        try:
            for component in self.components:
                self._schedule_update(component)
            self.root.mainloop()
        finally:
            for component in self.components:
                component.destroy()
            self.task_manager.stop()
            self.config.cleanup()
