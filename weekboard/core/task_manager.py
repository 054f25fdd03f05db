"""
Background work for components: in-memory timers and a worker asyncio loop.
Blocking calls (network, DB) are submitted to the loop so the Tk thread never waits on them.
"""
import asyncio
import logging
import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from threading import Timer
from typing import Any, Callable, Dict, List, Optional


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Any] = {}
        self.logger = logging.getLogger("TaskManager")
        self._setup_async_loop()

    def _setup_async_loop(self) -> None:
        """Setup async event loop in background thread."""
        self.async_loop = asyncio.new_event_loop()

        def run_async_loop():
            asyncio.set_event_loop(self.async_loop)
            self.async_loop.run_forever()

        self.async_thread = threading.Thread(target=run_async_loop, daemon=True)
        self.async_thread.start()

    def submit(self, fn: Callable[..., Any], *args: Any, timeout: Optional[float] = None) -> Future:
        """
        Run a blocking callable on the worker loop and return a concurrent Future.
        With timeout, the future fails with TimeoutError once the call takes longer.
        """
        async def _call():
            work = asyncio.to_thread(fn, *args)
            if timeout is not None:
                return await asyncio.wait_for(work, timeout)
            return await work

        name = getattr(fn, "__qualname__", repr(fn))
        self.logger.debug(f"Submitting {name} (timeout={timeout})")
        return asyncio.run_coroutine_threadsafe(_call(), self.async_loop)

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a task to run after delay seconds."""
        try:
            self.logger.info(f"Scheduling task {name} with delay {delay} seconds")
            if name in self.tasks:
                self.logger.info(f"Cancelling existing task {name}")
                self.tasks[name].cancel()

            scheduled_time = datetime.now().timestamp() + delay
            timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
            timer.daemon = True
            timer.scheduled_time = scheduled_time

            self.tasks[name] = timer
            timer.start()
            self.logger.info(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")
        except Exception as e:
            self.logger.error(f"Error scheduling task {name}: {e}")

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        """Run the task and reschedule if needed."""
        try:
            callback()
            if name in self.tasks:
                self.tasks[name].last_run = datetime.now().timestamp()
            if not one_time:
                self.schedule_task(name, callback, delay, one_time)
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")

    def cancel_task(self, name: str) -> None:
        timer = self.tasks.pop(name, None)
        if timer is not None:
            timer.cancel()

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        for name, timer in self.tasks.items():
            if getattr(timer, "scheduled_time", None) is not None and timer.is_alive():
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks and the worker loop."""
        for task in self.tasks.values():
            task.cancel()
        self.tasks.clear()
        if hasattr(self, "async_loop"):
            self.async_loop.call_soon_threadsafe(self.async_loop.stop)
