"""Abstract interface for board notifications."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

VIEW_LOGS = "View Logs"
RELOAD_NOW = "Reload Now"


@dataclass(frozen=True)
class BreakerAlert:
    """Operator-facing circuit breaker notice.

    automatic is False when automatic recovery is exhausted and only a manual
    reset (the "Reload Now" action) will close the circuit.
    """

    message: str
    retry_in_seconds: float | None
    automatic: bool
    actions: tuple[str, ...] = (VIEW_LOGS, RELOAD_NOW)


class BoardEvents(ABC):
    @abstractmethod
    def breaker_alert(self, alert: BreakerAlert) -> None:
        """Show the alert. The UI maps its actions to circuit_diagnostics() and
        force_reset_circuit() on the adapter."""
        ...

    @abstractmethod
    def refresh_requested(self) -> None:
        """Ask the UI to reload the board."""
        ...

    @abstractmethod
    def load_truncated(self, max_issues: int) -> None:
        """The board had more issues than the configured maximum."""
        ...
