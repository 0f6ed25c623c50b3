import itertools
import logging
import threading
import time
from typing import Callable, Dict, Optional


class TaskScheduler:
    """One-shot timers keyed by token, run as Socket.IO background tasks.

    Scheduling a token again supersedes the earlier timer for that token;
    cancelled or superseded timers wake up, see they are stale and return.
    """

    def __init__(self, socketio, logger: Optional[logging.Logger] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._handles: Dict[str, int] = {}
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def schedule_once(self, delay_sec: float, token: str, action: Callable[[], None]) -> int:
        handle = next(self._seq)
        with self._lock:
            self._handles[token] = handle
        self.logger.debug(f"[timer-set] token={token} handle={handle} delay={delay_sec:.3f}s")
        self.socketio.start_background_task(self._worker, delay_sec, token, handle, action)
        return handle

    def cancel(self, token: str) -> None:
        with self._lock:
            self._handles.pop(token, None)

    def cancel_all(self) -> None:
        with self._lock:
            self._handles.clear()

    def pending(self, token: str) -> bool:
        with self._lock:
            return token in self._handles

    def _worker(self, delay_sec: float, token: str, handle: int, action: Callable[[], None]) -> None:
        self.socketio.sleep(delay_sec)
        with self._lock:
            if self._handles.get(token) != handle:
                self.logger.debug(f"[timer-abort] token={token} handle={handle} superseded or cancelled")
                return
            del self._handles[token]
        try:
            action()
        except Exception:
            self.logger.exception(f"[timer-error] token={token} handle={handle}")
