"""
Optimistic toggling of the per-date holiday flag.

toggle(key) flips the flag in the store immediately, hands the upsert to a background
worker, and settles the operation when the worker finishes: a success leaves the store
as is, a failure (including a timeout) restores the value captured before the flip (or
the remote value a load read while the write was pending) and raises one error notice.
Dates that left the window in the meantime are not written back.

Only one write per date is ever in flight. A toggle on a date whose write has not
settled is dropped (InFlightPolicy.DROP) or replayed after settlement against the
confirmed value (InFlightPolicy.QUEUE), so a rollback never overwrites a newer
optimistic value.
"""
import logging
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .backends.base import DayStatus, DayStatusBackend
from .store import DayStatusStore
from .window import date_key

NOTICE_KIND = "error"
NOTICE_MESSAGE = "Failed to update day status."


class ToggleStatus:
    """Lifecycle of one toggle operation."""
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class InFlightPolicy:
    """What to do with a toggle on a date whose previous write has not settled."""
    DROP = "drop"
    QUEUE = "queue"

    @classmethod
    def parse(cls, value: Optional[str]) -> str:
        value = (value or cls.DROP).lower()
        if value not in (cls.DROP, cls.QUEUE):
            raise ValueError(f"Unknown in-flight policy: {value}")
        return value


class ToggleOperation:
    def __init__(self, key: str, previous: bool, next_value: bool):
        self.key = key
        self.previous = previous
        self.next = next_value
        self.status = ToggleStatus.PENDING
        self.error: Optional[BaseException] = None

    @property
    def settled(self) -> bool:
        return self.status != ToggleStatus.PENDING

    def __repr__(self) -> str:
        return (
            f"ToggleOperation(key={self.key!r}, previous={self.previous}, "
            f"next={self.next}, status={self.status})"
        )


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class ToggleReconciler:
    def __init__(
        self,
        store: DayStatusStore,
        backend: DayStatusBackend,
        submit: Callable[..., Future],
        notify: Callable[[str, str], None],
        is_admin: bool = False,
        call_soon: Optional[Callable[[Callable[[], None]], Any]] = None,
        in_flight_policy: str = InFlightPolicy.DROP,
        clock: Optional[Callable[[], datetime]] = None,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            submit: submit(fn, *args) -> concurrent Future running fn off the UI thread
            notify: notification sink, notify(kind, message); fire-and-forget
            call_soon: runs a settlement callback on the UI thread (default: inline)
            on_change: called with the date key after an operation settles
        """
        self.store = store
        self.backend = backend
        self.submit = submit
        self.notify = notify
        self.is_admin = bool(is_admin)
        self.call_soon = call_soon or _call_now
        self.in_flight_policy = InFlightPolicy.parse(in_flight_policy)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.on_change = on_change
        self.logger = logging.getLogger(self.__class__.__name__)
        self._in_flight: Dict[str, ToggleOperation] = {}
        self._queued: Dict[str, int] = {}

    def is_pending(self, key: str) -> bool:
        return date_key(key) in self._in_flight

    def pending_keys(self) -> List[str]:
        return sorted(self._in_flight)

    def queued_count(self, key: str) -> int:
        return self._queued.get(date_key(key), 0)

    def toggle(self, key) -> Optional[ToggleOperation]:
        """Flip the holiday flag for key. Returns the started operation, or None when nothing started."""
        key = date_key(key)
        if not self.is_admin:
            self.logger.debug(f"Ignoring toggle on {key}: not an admin")
            return None
        if key in self._in_flight:
            if self.in_flight_policy == InFlightPolicy.QUEUE:
                self._queued[key] = self._queued.get(key, 0) + 1
                self.logger.debug(f"Queued toggle on {key} behind in-flight write ({self._queued[key]} waiting)")
            else:
                self.logger.debug(f"Dropped toggle on {key}: write in flight")
            return None
        return self._start(key)

    def _start(self, key: str) -> ToggleOperation:
        previous = self.store.get(key)
        op = ToggleOperation(key, previous, not previous)
        self.store.hold(key, op.next)
        self._in_flight[key] = op
        self.logger.info(f"Toggling {key}: {op.previous} -> {op.next}")

        status = DayStatus(date=key, is_holiday=op.next, updated_at=self.clock())
        try:
            future = self.submit(self.backend.upsert, status)
        except Exception as e:
            self._settle(op, e)
            return op
        future.add_done_callback(lambda f: self.call_soon(lambda: self._on_done(op, f)))
        return op

    def _on_done(self, op: ToggleOperation, future: Future) -> None:
        error = None
        try:
            future.result()
        except Exception as e:
            error = e
        self._settle(op, error)

    def _settle(self, op: ToggleOperation, error: Optional[BaseException]) -> None:
        if op.settled:
            return
        if self._in_flight.get(op.key) is op:
            del self._in_flight[op.key]

        if error is None:
            op.status = ToggleStatus.COMMITTED
            self.store.confirm(op.key)
            self.logger.debug(f"Confirmed {op.key} = {op.next}")
        else:
            op.status = ToggleStatus.ROLLED_BACK
            op.error = error
            restored = self.store.revert(op.key, op.previous)
            reason = "timed out" if isinstance(error, TimeoutError) else str(error) or type(error).__name__
            self.logger.error(f"Failed to persist {op.key} = {op.next}, reverted to {restored}: {reason}")
            self._send_notice()

        if self.on_change:
            self.on_change(op.key)

        self._replay_queued(op.key)

    def _replay_queued(self, key: str) -> None:
        waiting = self._queued.pop(key, 0)
        if not waiting:
            return
        if waiting > 1:
            self._queued[key] = waiting - 1
        if not self.is_admin or not self.store.in_window(key):
            self._queued.pop(key, None)
            return
        self._start(key)

    def _send_notice(self) -> None:
        try:
            self.notify(NOTICE_KIND, NOTICE_MESSAGE)
        except Exception as e:
            self.logger.error(f"Notification sink failed: {e}", exc_info=True)
