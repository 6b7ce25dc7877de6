"""Production scheduler backed by threading.Timer."""

import threading
from collections.abc import Callable

from beads_board.gateway.scheduler.abc import ScheduledCall, Scheduler


class _TimerCall(ScheduledCall):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Runs callbacks on daemon timer threads so they never block interpreter exit."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledCall:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return _TimerCall(timer)
