"""
Week calendar component: seven day cells (yesterday .. yesterday + 6) colored by the
holiday flag. Admins click a cell to toggle it; the change shows immediately and is
rolled back with an error notice if the store rejects it.
"""
import functools
import tkinter as tk
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from weekboard.core.component_base import DashboardComponent
from weekboard.core.errors import ConfigError
from .backends import DayStatusBackend, get_backend
from .reconciler import InFlightPolicy, ToggleReconciler
from .store import DayStatusStore, LoadResult
from .style import ADMIN_HINT, LOAD_FAILED_HINT, NOTICE_STYLE, cell_style
from .window import day_label, month_label, resolve_window, weekday_label

DEFAULT_TIMEOUT = 10
DEFAULT_NOTICE_MS = 4000


class WeekCalendarComponent(DashboardComponent):
    name = "Week Calendar"

    def __init__(self, app, config: Dict[str, Any]):
        super().__init__(app, config)
        self.timeout = float(config.get("timeout_seconds", DEFAULT_TIMEOUT))
        self.notice_ms = int(config.get("notice_ms", DEFAULT_NOTICE_MS))
        self.dates: List[date] = resolve_window()
        self.cells: Dict[str, Dict[str, tk.Widget]] = {}
        self._notice_after_id = None
        self._rollover_task = f"{self.name}_rollover"

        self.backend = self._create_backend()
        self.store = DayStatusStore(self.backend) if self.backend is not None else None
        if self.store is not None:
            self.store.retain(self.keys)
        self.reconciler = None
        policy = config.get("in_flight_policy", InFlightPolicy.DROP)
        try:
            policy = InFlightPolicy.parse(policy)
        except ValueError as e:
            self.logger.warning(f"{e}, using {InFlightPolicy.DROP}")
            policy = InFlightPolicy.DROP
        if self.store is not None:
            self.reconciler = ToggleReconciler(
                self.store,
                self.backend,
                submit=functools.partial(self.app.task_manager.submit, timeout=self.timeout),
                notify=self.show_notice,
                is_admin=self.is_admin,
                call_soon=self._call_soon,
                in_flight_policy=policy,
                on_change=self._render_cell,
            )

    @property
    def is_admin(self) -> bool:
        return bool(self.config.get("is_admin", False))

    @property
    def keys(self) -> List[str]:
        return [d.isoformat() for d in self.dates]

    def _create_backend(self) -> Optional[DayStatusBackend]:
        """Create day-status backend from config['backend'] (default: local sql)."""
        backend_config = dict(self.config.get("backend") or {})
        backend_type = backend_config.get("type", "sql")
        backend_config.setdefault("timeout_seconds", self.config.get("timeout_seconds", DEFAULT_TIMEOUT))
        try:
            backend = get_backend(backend_type, backend_config, logger=self.logger)
        except ConfigError as e:
            self.logger.error(f"Invalid {backend_type} backend config: {e}")
            return None
        if backend is None:
            self.logger.error(f"Unknown backend type: {backend_type}")
        return backend

    def _call_soon(self, callback: Callable[[], None]) -> None:
        """Run callback on the Tk thread; dropped once the component is destroyed."""
        if self.frame is not None and self.frame.winfo_exists():
            self.frame.after(0, callback)

    def initialize(self, parent: tk.Frame) -> None:
        super().initialize(parent)
        padding = self.get_responsive_padding()

        self.main_container = tk.Frame(self.frame, relief=tk.GROOVE, borderwidth=1)
        self.main_container.pack(padx=padding['small'], pady=padding['small'], fill=tk.BOTH, expand=True)

        header_frame = tk.Frame(self.main_container)
        header_frame.pack(fill=tk.X, padx=padding['medium'], pady=(padding['small'], 0))
        self.title_label = self.create_label(
            header_frame,
            text=month_label(self.dates),
            font_size='heading',
            bold=True
        )
        self.title_label.pack()

        self.grid_frame = tk.Frame(self.main_container)
        self.grid_frame.pack(fill=tk.X, padx=padding['medium'], pady=padding['small'])

        self.hint_label = self.create_label(self.main_container, text="", font_size='tiny')
        self.hint_label.pack(pady=(0, padding['small']))

        self.notice_label = self.create_label(self.main_container, text="", font_size='small', wraplength=300)
        self.notice_label.pack(pady=(0, padding['small']))

        self._build_cells()
        self._update_hint()
        self._load()
        self._schedule_rollover()

    def _build_cells(self) -> None:
        for widget in self.grid_frame.winfo_children():
            widget.destroy()
        self.cells = {}
        padding = self.get_padding('small')
        for col, d in enumerate(self.dates):
            key = d.isoformat()
            cell = tk.Frame(self.grid_frame, borderwidth=2, highlightthickness=2)
            cell.grid(row=0, column=col, padx=2, pady=2, sticky="nsew")
            self.grid_frame.grid_columnconfigure(col, weight=1)
            weekday = self.create_label(cell, text=weekday_label(d), font_size='tiny')
            weekday.pack(pady=(padding, 0))
            day = self.create_label(cell, text=day_label(d), font_size='heading', bold=True)
            day.pack(pady=(0, padding))
            for widget in (cell, weekday, day):
                widget.bind('<Button-1>', lambda e, k=key: self.on_cell_click(k))
            self.cells[key] = {"frame": cell, "weekday": weekday, "day": day}
            self._render_cell(key)

    def _render_cell(self, key: str) -> None:
        widgets = self.cells.get(key)
        if not widgets:
            return
        is_holiday = self.store.is_holiday(key) if self.store else False
        pending = self.reconciler.is_pending(key) if self.reconciler else False
        clickable = bool(self.reconciler and self.is_admin) and (
            not pending or self.reconciler.in_flight_policy == InFlightPolicy.QUEUE
        )
        style = cell_style(is_holiday, pending=pending, clickable=clickable)
        widgets["frame"].configure(
            bg=style["bg"],
            relief=style["relief"],
            highlightbackground=style["border"],
            highlightcolor=style["border"],
            cursor=style["cursor"],
        )
        for name in ("weekday", "day"):
            widgets[name].configure(bg=style["bg"], fg=style["fg"], cursor=style["cursor"])

    def _update_hint(self) -> None:
        if self.backend is None:
            self.hint_label.config(text="Day status backend not configured", fg="red")
        elif self.store.last_load is not None and not self.store.last_load.ok:
            self.hint_label.config(text=LOAD_FAILED_HINT, fg="orange")
        elif self.is_admin:
            self.hint_label.config(text=ADMIN_HINT, fg=self.get_font_colors()['tiny'])
        else:
            self.hint_label.config(text="")

    def on_cell_click(self, key: str) -> None:
        if self.reconciler is None:
            return
        self.reconciler.toggle(key)
        self._render_cell(key)

    def _load(self) -> None:
        """One bulk read for the current window, applied on the Tk thread."""
        if self.store is None:
            return
        keys = self.keys
        generation = self.store.begin_load()
        future = self.app.task_manager.submit(self.store.fetch, keys, generation, timeout=self.timeout)

        def _done(f):
            try:
                result = f.result()
            except Exception as e:
                self.logger.warning(f"Loading day statuses failed: {e}")
                result = LoadResult(error=e, generation=generation)
            self._call_soon(lambda: self._apply_load(keys, result))

        future.add_done_callback(_done)

    def _apply_load(self, keys: List[str], result: LoadResult) -> None:
        if keys != self.keys:
            self.logger.debug("Discarding load for a stale window")
            return
        self.store.apply(result)
        self.update()

    def update(self) -> None:
        """Redraw every cell; rebuild the window first if the day has changed."""
        if self.frame is None:
            return
        if resolve_window()[0] != self.dates[0]:
            self._roll_window()
            return
        self.title_label.config(text=month_label(self.dates))
        for key in self.keys:
            self._render_cell(key)
        self._update_hint()

    def _roll_window(self) -> None:
        self.dates = resolve_window()
        self.logger.info(f"Window moved to {self.keys[0]} .. {self.keys[-1]}")
        if self.store is not None:
            self.store.retain(self.keys)
        self.title_label.config(text=month_label(self.dates))
        self._build_cells()
        self._update_hint()
        self._load()

    def _schedule_rollover(self) -> None:
        """Re-resolve the window just after local midnight."""
        now = datetime.now()
        midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
        delay = (midnight - now).total_seconds() + 1

        def _on_timer():
            self._call_soon(self._on_rollover)

        self.app.task_manager.schedule_task(self._rollover_task, _on_timer, delay, one_time=True)

    def _on_rollover(self) -> None:
        self.update()
        self._schedule_rollover()

    def show_notice(self, kind: str, message: str) -> None:
        """Non-blocking notice below the grid; cleared after notice_ms."""
        if self.frame is None or not self.frame.winfo_exists():
            self.logger.warning(f"Notice dropped ({kind}): {message}")
            return
        title = "Error" if kind == "error" else kind.capitalize()
        self.notice_label.config(text=f"{title}: {message}", bg=NOTICE_STYLE["bg"], fg=NOTICE_STYLE["fg"])
        if self._notice_after_id is not None:
            self.frame.after_cancel(self._notice_after_id)
        self._notice_after_id = self.frame.after(self.notice_ms, self._clear_notice)

    def _clear_notice(self) -> None:
        self._notice_after_id = None
        self.notice_label.config(text="", bg=self.main_container.cget("bg"))

    def get_api_data(self) -> Dict[str, Any]:
        """Current window for the API."""
        keys = self.keys
        statuses = {k: self.store.is_holiday(k) for k in keys} if self.store else {k: False for k in keys}
        return {
            "title": month_label(self.dates),
            "dates": keys,
            "statuses": statuses,
            "pending": self.reconciler.pending_keys() if self.reconciler else [],
            "holiday_count": sum(1 for v in statuses.values() if v),
            "loaded": bool(self.store and self.store.last_load and self.store.last_load.ok),
        }

    def update_from_config(self) -> None:
        """Apply is_admin changes without rebuilding the grid."""
        if self.reconciler is not None:
            self.reconciler.is_admin = self.is_admin
        if self.frame is None:
            return
        for key in self.keys:
            self._render_cell(key)
        self._update_hint()

    def destroy(self) -> None:
        self.app.task_manager.cancel_task(self._rollover_task)
        self.cells = {}
        super().destroy()
