"""Abstract interface for time operations."""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Wall-clock and monotonic time, plus sleeping."""

    @abstractmethod
    def now(self) -> datetime:
        """Current wall-clock time (timezone-aware, UTC)."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds from an arbitrary fixed point; never goes backwards."""
        ...

    @abstractmethod
    def sleep(self, seconds: float) -> None: ...
