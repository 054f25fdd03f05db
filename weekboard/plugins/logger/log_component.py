import tkinter as tk
from tkinter import ttk
import logging
import queue
from typing import Dict, Any
from weekboard.core.component_base import DashboardComponent

LEVEL_TAGS = ("ERROR", "WARNING", "INFO", "DEBUG")
LEVEL_COLORS = {"ERROR": "red", "WARNING": "orange", "INFO": "black", "DEBUG": "gray"}


class QueueHandler(logging.Handler):
    """Handler that puts (levelname, formatted message) pairs into a queue for the UI"""

    def __init__(self, log_queue: queue.Queue):
        super().__init__()
        self.log_queue = log_queue
        self.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        ))

    def emit(self, record):
        try:
            self.log_queue.put((record.levelname, self.format(record)))
        except Exception:
            self.handleError(record)


class LogComponent(DashboardComponent):
    name = "System Logs"

    def __init__(self, app, config: Dict[str, Any]):
        super().__init__(app, config)
        self.log_queue = queue.Queue()
        self.queue_handler = QueueHandler(self.log_queue)
        self.current_level = config.get("level", "INFO")
        self.max_lines = int(config.get("max_lines", 500))
        self.queue_handler.setLevel(getattr(logging, self.current_level))
        logging.getLogger().addHandler(self.queue_handler)

    def initialize(self, parent: tk.Frame) -> None:
        fonts = self.get_responsive_fonts()
        padding = self.get_responsive_padding()

        self.frame = tk.Frame(parent)
        self.frame.pack(side=tk.BOTTOM, fill=tk.X, expand=True, padx=padding['medium'], pady=padding['medium'])

        self.create_label(self.frame, text=self.headline, font_size='heading', bold=True).pack(
            pady=(padding['medium'], padding['small'])
        )

        log_frame = tk.Frame(self.frame)
        log_frame.pack(fill=tk.BOTH, expand=True, padx=padding['medium'], pady=padding['small'])
        self.log_text = tk.Text(
            log_frame,
            height=int(self.config.get("height", 6)),
            wrap=tk.WORD,
            font=("Courier", fonts['tiny']),
            background="#f0f0f0"
        )
        scrollbar = ttk.Scrollbar(log_frame, orient="vertical", command=self.log_text.yview)
        self.log_text.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self.log_text.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        for level, color in LEVEL_COLORS.items():
            self.log_text.tag_configure(level, foreground=color)
        self.log_text.configure(state='disabled')

        tk.Button(self.frame, text="Clear Logs", command=self.clear_logs).pack(pady=(0, padding['medium']))
        self._poll()

    def _poll(self) -> None:
        """Drain the queue every 500 ms"""
        if self.frame is None or not self.frame.winfo_exists():
            return
        self.update()
        self.frame.after(500, self._poll)

    def update(self) -> None:
        """Append queued log lines, trimming to max_lines"""
        if self.frame is None:
            return
        lines = []
        while True:
            try:
                lines.append(self.log_queue.get_nowait())
            except queue.Empty:
                break
        if not lines:
            return
        self.log_text.configure(state='normal')
        for level, message in lines:
            tag = level if level in LEVEL_TAGS else "INFO"
            self.log_text.insert(tk.END, message + "\n", tag)
        excess = int(self.log_text.index('end-1c').split('.')[0]) - self.max_lines
        if excess > 0:
            self.log_text.delete('1.0', f'{excess + 1}.0')
        self.log_text.configure(state='disabled')
        self.log_text.see(tk.END)

    def clear_logs(self):
        self.log_text.configure(state='normal')
        self.log_text.delete('1.0', tk.END)
        self.log_text.configure(state='disabled')

    def update_from_config(self) -> None:
        new_level = self.config.get('level', 'INFO')
        if new_level != self.current_level:
            self.current_level = new_level
            self.queue_handler.setLevel(getattr(logging, new_level))

    def destroy(self) -> None:
        logging.getLogger().removeHandler(self.queue_handler)
        super().destroy()
