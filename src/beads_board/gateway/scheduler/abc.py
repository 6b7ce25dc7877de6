"""Abstract interface for scheduling delayed callbacks."""

from abc import ABC, abstractmethod
from collections.abc import Callable


class ScheduledCall(ABC):
    """Handle to a pending callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. No-op if it already ran."""
        ...


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledCall:
        """Run callback once after delay_seconds.

        The callback may run on another thread.
        """
        ...
