from abc import ABC, abstractmethod
import tkinter as tk
from typing import Optional, Dict, Any
import logging

# Window size the font and padding defaults are designed for
BASE_WINDOW_WIDTH = 800
BASE_WINDOW_HEIGHT = 600

BASE_FONTS = {'title': 16, 'heading': 14, 'body': 12, 'small': 10, 'tiny': 8}
MIN_FONTS = {'title': 10, 'heading': 9, 'body': 8, 'small': 7, 'tiny': 6}
BASE_PADDING = {'small': 5, 'medium': 10, 'large': 15, 'xlarge': 20}
MIN_PADDING = {'small': 3, 'medium': 5, 'large': 8, 'xlarge': 10}


class DashboardComponent(ABC):
    """
    Base for widgets placed by the layout manager. Subclasses set `name`, build their
    widgets in initialize() and redraw in update(); both run on the Tk thread.
    """

    def __init__(self, app, config: Dict[str, Any]):
        self.frame: Optional[tk.Frame] = None
        self.config = config
        self.app = app
        self.logger = logging.getLogger(self.name)

    def _get_window_dimensions(self) -> tuple:
        """Current window size, falling back to the geometry string, then the screen."""
        root = getattr(self.app, 'root', None)
        if root is None or not root.winfo_exists():
            return BASE_WINDOW_WIDTH, BASE_WINDOW_HEIGHT
        root.update_idletasks()
        width, height = root.winfo_width(), root.winfo_height()
        if width > 1 and height > 1:
            return width, height
        try:
            width, height = map(int, root.geometry().split('+')[0].split('x'))
            return width, height
        except (ValueError, IndexError):
            return root.winfo_screenwidth(), root.winfo_screenheight()

    def _scale(self) -> float:
        """Average of width and height scaling, clamped to 0.5x .. 2x."""
        width, height = self._get_window_dimensions()
        scale = (width / BASE_WINDOW_WIDTH + height / BASE_WINDOW_HEIGHT) / 2
        return max(0.5, min(2.0, scale))

    def get_responsive_fonts(self) -> dict:
        """Font sizes for the current window size; config 'fonts' (numbers or '16px') override the base sizes."""
        scale = self._scale()
        fonts = {key: max(MIN_FONTS[key], int(size * scale)) for key, size in BASE_FONTS.items()}
        for key, value in (self.config.get('fonts') or {}).items():
            if key not in fonts:
                continue
            if isinstance(value, str) and value.endswith('px'):
                value = float(value[:-2])
            if isinstance(value, (int, float)):
                fonts[key] = max(6, int(value * scale))
        return fonts

    def get_font_colors(self) -> dict:
        """Font colors from config 'colors', white by default."""
        colors = {key: '#ffffff' for key in ('text', *BASE_FONTS)}
        colors.update(self.config.get('colors') or {})
        return colors

    def get_responsive_padding(self) -> dict:
        scale = self._scale()
        return {key: max(MIN_PADDING[key], int(size * scale)) for key, size in BASE_PADDING.items()}

    def scale_font(self, base_size: int) -> int:
        return max(6, int(base_size * self._scale()))

    def get_padding(self, size='medium') -> int:
        padding = self.get_responsive_padding()
        return padding.get(size, padding['medium'])

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the component"""
        pass

    @property
    def headline(self) -> str:
        """Return the display name for the component"""
        return self.config.get("headline", self.name)

    @abstractmethod
    def initialize(self, parent: tk.Frame) -> None:
        """Initialize the component with a parent frame"""
        self.frame = tk.Frame(parent)
        padding = self.get_responsive_padding()['medium']
        self.frame.pack(pady=padding, padx=padding, fill=tk.X)

    def create_label(self, parent, text="", font_size=None, bold=False, color=None, **kwargs) -> tk.Label:
        """Label with responsive font size; font_size is a named size ('heading') or a base point size."""
        fonts = self.get_responsive_fonts()
        colors = self.get_font_colors()

        size_key = None
        if font_size is None:
            size_key = 'body'
            font_size = fonts['body']
        elif isinstance(font_size, str):
            size_key = font_size
            font_size = fonts.get(font_size, fonts['body'])
        else:
            font_size = self.scale_font(font_size)

        font_family = kwargs.pop('font_family', self.config.get('font_family', 'Arial'))
        font_tuple = (font_family, font_size, "bold") if bold else (font_family, font_size)

        if color is None:
            if size_key in colors:
                color = colors[size_key]
            else:
                color = colors['heading'] if bold else colors['text']
        if 'fg' not in kwargs and 'foreground' not in kwargs:
            kwargs['fg'] = color

        return tk.Label(parent, text=text, font=font_tuple, **kwargs)

    @abstractmethod
    def update(self) -> None:
        """Redraw the component from its current state"""
        pass

    def destroy(self) -> None:
        """Clean up resources"""
        try:
            if self.frame is not None:
                if self.frame.winfo_exists():
                    self.frame.destroy()
                self.frame = None
            self.logger.debug(f"Component {self.name} destroyed")
        except Exception as e:
            self.logger.error(f"Error destroying component {self.name}: {e}")

    def update_config(self, new_config: Dict[str, Any]) -> None:
        """Update component configuration"""
        self.config = new_config
        self.logger.info(f"Updated config for {self.name}")
        self._handle_config_update()

    def _handle_config_update(self) -> None:
        """Apply config-dependent values without destroying widgets when the component supports it."""
        try:
            self.logger.debug(f"Handling config update for {self.name}")
            if hasattr(self, 'update_from_config'):
                self.update_from_config()
            else:
                self.update()
        except Exception as e:
            self.logger.error(f"Error handling config update for {self.name}: {e}", exc_info=True)
