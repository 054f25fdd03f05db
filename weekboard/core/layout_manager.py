import tkinter as tk
from typing import List, Dict, Optional
from .component_base import DashboardComponent
import logging

# Components that span the full width below the columns
FULL_WIDTH_COMPONENTS = {"System Logs"}


class LayoutManager:
    """Places components in N column frames; config 'column' pins a component, otherwise the emptiest column wins.

    Column components are created as children of columns_container and packed *into* a column
    frame, so the column frames can be rebuilt without destroying the widgets they hold.
    """

    def __init__(self, root: tk.Tk, container: tk.Frame = None, columns: int = 2, padding: int = 10, bg_color: Optional[str] = None):
        self.root = root
        self.container = container if container else root
        self.columns = max(1, columns)
        self.padding = padding
        self.bg_color = bg_color
        self.frames: List[tk.Frame] = []
        self.components: Dict[str, DashboardComponent] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

        self.columns_container = tk.Frame(self.container, bg=self.bg_color)
        self.columns_container.pack(expand=True, fill=tk.BOTH, padx=self.padding, pady=self.padding)
        self._setup_grid()

    def _setup_grid(self) -> None:
        """Create (or recreate) the column frames"""
        for frame in self.frames:
            if frame.winfo_exists():
                frame.destroy()
        self.frames = []
        self.columns_container.pack_configure(padx=self.padding, pady=self.padding)

        for _ in range(self.columns):
            frame = tk.Frame(self.columns_container, bg=self.bg_color)
            frame.pack(side=tk.LEFT, expand=True, fill=tk.BOTH, padx=self.padding)
            self.frames.append(frame)

    def _get_target_frame_index(self, component: DashboardComponent) -> int:
        column = component.config.get('column')
        if column is not None:
            return max(0, min(int(column), self.columns - 1))
        return min(range(len(self.frames)), key=lambda i: len(self.frames[i].pack_slaves()))

    def _place(self, component: DashboardComponent) -> None:
        component.frame.pack(
            in_=self.frames[self._get_target_frame_index(component)],
            fill=tk.BOTH,
            expand=True,
            pady=(0, self.padding),
        )

    def add_component(self, component: DashboardComponent) -> None:
        """Initialize component and pack it into its target column"""
        try:
            self.components[component.name] = component
            if component.name in FULL_WIDTH_COMPONENTS:
                component.initialize(self.container)
                component.frame.pack(fill=tk.BOTH, expand=True, pady=(self.padding, 0), after=self.columns_container)
            else:
                component.initialize(self.columns_container)
                self._place(component)
        except Exception as e:
            self.logger.error(f"Error adding component {component.name}: {e}", exc_info=True)

    def remove_component(self, component_name: str) -> None:
        component = self.components.pop(component_name, None)
        if component is not None:
            component.destroy()

    def update_layout(self, columns: int = None, padding: int = None) -> None:
        """Rebuild the columns and re-place every column component"""
        if columns is not None:
            self.columns = max(1, columns)
        if padding is not None:
            self.padding = padding
        try:
            placed = [
                c for c in self.components.values()
                if c.name not in FULL_WIDTH_COMPONENTS and c.frame and c.frame.winfo_exists()
            ]
            for component in placed:
                component.frame.pack_forget()
            self._setup_grid()
            for component in placed:
                self._place(component)
        except Exception as e:
            self.logger.error(f"Error updating layout: {e}", exc_info=True)
