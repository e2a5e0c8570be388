"""
Round Timer

Cancellable periodic ticker driving a round's countdown.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RoundTimer:
    """
    Calls a tick callback every interval seconds on a daemon thread
    until cancelled.

    Each timer owns its stop event, so a replaced timer can never tick
    against the round that replaced it. cancel() may be called any number
    of times.
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> "RoundTimer":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name="round-timer", daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stop_event.set()

    def _run(self) -> None:
        # wait() returns True once cancelled
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Round timer tick failed")


def start_round_timer(callback: Callable[[], None], interval: float = 1.0) -> RoundTimer:
    """Default ticker factory used by game sessions."""
    return RoundTimer(callback, interval).start()
