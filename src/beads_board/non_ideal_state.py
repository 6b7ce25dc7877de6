"""Non-ideal states returned by board operations.

Every failure the board layer can report is a frozen dataclass implementing
the NonIdealState protocol (a `message` attribute plus an `error_type` tag).
Operations return `T | NonIdealState` unions instead of raising, so the UI
can narrow with isinstance() and always has a human-readable message.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class NonIdealState(Protocol):
    """Protocol for error results carried in discriminated unions."""

    @property
    def message(self) -> str: ...

    @property
    def error_type(self) -> str: ...


@dataclass(frozen=True)
class InvalidInput:
    """Input rejected before any process was spawned. Implements NonIdealState."""

    field: str
    message: str

    @property
    def error_type(self) -> str:
        return "invalid-input"

    @property
    def remedy(self) -> str | None:
        return f"Correct the {self.field} value and try again."


@dataclass(frozen=True)
class SpawnFailed:
    """The bd executable could not be started. Implements NonIdealState."""

    command: str
    cwd: str
    search_path: str
    message: str

    @property
    def error_type(self) -> str:
        return "spawn-failed"

    @property
    def remedy(self) -> str | None:
        return "Install bd or make sure it is on PATH, then reload the board."


@dataclass(frozen=True)
class CommandTimedOut:
    """The command exceeded its wall-clock timeout. Implements NonIdealState."""

    command: str
    timeout_seconds: float
    message: str

    @property
    def error_type(self) -> str:
        return "timeout"

    @property
    def remedy(self) -> str | None:
        return "Check that the beads daemon is responsive (bd daemons health)."


@dataclass(frozen=True)
class OutputTooLarge:
    """The command produced more output than allowed. Implements NonIdealState."""

    command: str
    limit_bytes: int
    message: str

    @property
    def error_type(self) -> str:
        return "output-too-large"

    @property
    def remedy(self) -> str | None:
        return "Lower the maximum number of issues to load."


@dataclass(frozen=True)
class CommandFailed:
    """The command exited with a non-zero status. Implements NonIdealState."""

    command: str
    exit_code: int
    output: str
    message: str

    @property
    def error_type(self) -> str:
        return "command-failed"

    @property
    def remedy(self) -> str | None:
        return None


@dataclass(frozen=True)
class CircuitOpen:
    """The circuit breaker rejected the call. Implements NonIdealState.

    `retry_in_seconds` is None once automatic recovery has given up, in which
    case only a manual reset closes the circuit again.
    """

    retry_in_seconds: float | None
    message: str

    @property
    def error_type(self) -> str:
        return "circuit-open"

    @property
    def requires_manual_reset(self) -> bool:
        return self.retry_in_seconds is None

    @property
    def remedy(self) -> str | None:
        if self.retry_in_seconds is None:
            return "Automatic recovery gave up. Check the logs, then use Reload Now."
        if self.retry_in_seconds < 1:
            return "A recovery check is running. Try again in a moment."
        return f"Retrying automatically in {int(self.retry_in_seconds)} seconds."


@dataclass(frozen=True)
class MalformedResponse:
    """bd succeeded but its payload had an unexpected shape. Implements NonIdealState."""

    command: str
    message: str

    @property
    def error_type(self) -> str:
        return "malformed-response"

    @property
    def remedy(self) -> str | None:
        return "Check that the installed bd version is supported."


@dataclass(frozen=True)
class IssueNotFound:
    """The requested issue does not exist. Implements NonIdealState."""

    issue_id: str
    message: str

    @property
    def error_type(self) -> str:
        return "issue-not-found"

    @property
    def remedy(self) -> str | None:
        return "Refresh the board; the issue may have been deleted."


@dataclass(frozen=True)
class ReadOnlyMode:
    """A write was attempted while the board is read-only. Implements NonIdealState."""

    operation: str
    message: str

    @property
    def error_type(self) -> str:
        return "read-only"

    @property
    def remedy(self) -> str | None:
        return "Disable read-only mode to make changes."


@dataclass(frozen=True)
class DaemonNotRunning:
    """`bd info` reports no connected daemon. Implements NonIdealState."""

    workspace: str
    message: str

    @property
    def error_type(self) -> str:
        return "daemon-not-running"

    @property
    def remedy(self) -> str | None:
        return "Start the daemon with: bd daemons start"


ExecError = SpawnFailed | CommandTimedOut | OutputTooLarge | CommandFailed

BoardError = (
    InvalidInput
    | SpawnFailed
    | CommandTimedOut
    | OutputTooLarge
    | CommandFailed
    | CircuitOpen
    | MalformedResponse
    | IssueNotFound
    | ReadOnlyMode
    | DaemonNotRunning
)
