"""Circuit breaker for batched bd reads.

Three states:
- CLOSED: batches run; consecutive failures are counted and reset on success.
  Reaching the failure threshold opens the circuit.
- OPEN: batches are rejected with CircuitOpen without spawning bd, until the
  reset timeout has elapsed since the circuit opened. The next request after
  that moves the circuit to HALF_OPEN and is let through as the probe.
- HALF_OPEN: only the probe runs; other requests are rejected until its
  outcome is recorded. Success closes the circuit, failure reopens it.
  Outcomes reported while OPEN (by requests admitted before it opened) leave
  the counters alone.

While OPEN, a recovery probe is scheduled after the reset timeout so the
circuit can recover without caller traffic. After max_auto_retries scheduled
probes, automatic recovery stops and the operator must reset manually.

All state lives on the instance and is guarded by one lock; the breaker is
shared by concurrent column loads and by the recovery timer thread.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from beads_board.gateway.board_events.abc import BoardEvents, BreakerAlert
from beads_board.gateway.scheduler.abc import ScheduledCall, Scheduler
from beads_board.gateway.time.abc import Time
from beads_board.non_ideal_state import CircuitOpen

logger = logging.getLogger(__name__)

CIRCUIT_FAILURE_THRESHOLD = 5
CIRCUIT_RESET_TIMEOUT_SECONDS = 60.0
MAX_AUTO_RETRIES = 3


class CircuitState(Enum):
    """Breaker state; see the module docstring for the transitions."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitDiagnostics:
    """Snapshot of breaker state for the "View Logs" action."""

    state: CircuitState
    consecutive_failures: int
    auto_retry_count: int
    seconds_since_opened: float | None
    recovery_scheduled: bool


class CircuitBreaker:
    """Gates batched bd reads and schedules automatic recovery probes.

    Thread-safe. Callers ask `allow_request()` before each batch and report
    the outcome with `record_success()`, `record_failure()` or
    `record_batch_outcome()`.
    """

    def __init__(
        self,
        *,
        time: Time,
        scheduler: Scheduler,
        events: BoardEvents,
        on_recovery_probe: Callable[[], None],
        failure_threshold: int = CIRCUIT_FAILURE_THRESHOLD,
        reset_timeout_seconds: float = CIRCUIT_RESET_TIMEOUT_SECONDS,
        max_auto_retries: int = MAX_AUTO_RETRIES,
    ) -> None:
        """Create a CLOSED breaker.

        Args:
            time: Monotonic clock for open/reset timing
            scheduler: Runs recovery probes after the reset timeout
            events: Receives operator alerts
            on_recovery_probe: Called (outside the lock) when a scheduled
                probe fires while the circuit is still OPEN
            failure_threshold: Consecutive failures that open the circuit
            reset_timeout_seconds: Time OPEN before a probe is allowed
            max_auto_retries: Scheduled probes before giving up
        """
        self._time = time
        self._scheduler = scheduler
        self._events = events
        self._on_recovery_probe = on_recovery_probe
        self._failure_threshold = failure_threshold
        self._reset_timeout_seconds = reset_timeout_seconds
        self._max_auto_retries = max_auto_retries

        self._lock = threading.RLock()
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._auto_retry_count = 0
        self._opened_at: float | None = None
        self._recovery_call: ScheduledCall | None = None

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._consecutive_failures

    @property
    def auto_retry_count(self) -> int:
        with self._lock:
            return self._auto_retry_count

    def allow_request(self) -> CircuitOpen | None:
        """Gate a batch attempt. Returns CircuitOpen when it must not run."""
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return None
            if self._state is CircuitState.HALF_OPEN:
                return CircuitOpen(
                    retry_in_seconds=0.0,
                    message="Circuit breaker is testing recovery; try again shortly.",
                )

            assert self._opened_at is not None
            elapsed = self._time.monotonic() - self._opened_at
            if elapsed >= self._reset_timeout_seconds:
                self._state = CircuitState.HALF_OPEN
                logger.warning("Circuit breaker: Transitioning to HALF_OPEN (testing recovery)")
                return None

            if self._recovery_call is None:
                return CircuitOpen(
                    retry_in_seconds=None,
                    message=(
                        "Circuit breaker is open - too many consecutive failures. "
                        "Automatic recovery has stopped; reload manually."
                    ),
                )
            remaining = self._reset_timeout_seconds - elapsed
            return CircuitOpen(
                retry_in_seconds=remaining,
                message=(
                    "Circuit breaker is open - too many consecutive failures. "
                    f"System will retry automatically in {int(remaining) + 1} seconds."
                ),
            )

    def record_success(self) -> None:
        with self._lock:
            if self._state is CircuitState.OPEN:
                return
            if self._state is CircuitState.HALF_OPEN:
                logger.warning("Circuit breaker: Recovery successful, closing circuit")
                self._close()
            self._consecutive_failures = 0
            self._auto_retry_count = 0

    def record_failure(self) -> None:
        alerts: list[BreakerAlert] = []
        with self._lock:
            self._consecutive_failures += 1

            if self._state is CircuitState.HALF_OPEN:
                self._open()
                logger.warning("Circuit breaker: Recovery test failed, reopening circuit")
                alerts.extend(self._schedule_recovery())
            elif (
                self._state is CircuitState.CLOSED
                and self._consecutive_failures >= self._failure_threshold
            ):
                self._open()
                logger.warning(
                    "Circuit breaker: OPENED after %d consecutive failures",
                    self._consecutive_failures,
                )
                alerts.extend(self._schedule_recovery())
                alerts.append(
                    BreakerAlert(
                        message=(
                            "Beads: Unable to load issues due to repeated errors. "
                            "The system will retry automatically in "
                            f"{int(self._reset_timeout_seconds)} seconds."
                        ),
                        retry_in_seconds=self._reset_timeout_seconds,
                        automatic=True,
                    )
                )
        for alert in alerts:
            self._events.breaker_alert(alert)

    def record_partial_failure(self) -> None:
        """Some sub-units of a batch failed and some succeeded.

        Not scored as a failure: one unit of failure is forgiven. A probe that
        partially succeeds shows bd is answering, so it closes the circuit.
        """
        with self._lock:
            if self._state is CircuitState.OPEN:
                return
            if self._state is CircuitState.HALF_OPEN:
                logger.warning("Circuit breaker: Recovery partially successful, closing circuit")
                self._close()
                self._auto_retry_count = 0
            self._consecutive_failures = max(0, self._consecutive_failures - 1)

    def record_batch_outcome(self, *, attempted: int, failed: int) -> None:
        """Score a batch that was split into sub-units."""
        if failed == 0:
            self.record_success()
        elif failed >= attempted:
            self.record_failure()
        else:
            self.record_partial_failure()

    def reset(self) -> None:
        """Return to CLOSED with zeroed counters and no pending probe.

        Used for manual "Reload Now" and when the workspace changes.
        """
        with self._lock:
            self._close()
            self._consecutive_failures = 0
            self._auto_retry_count = 0

    def diagnostics(self) -> CircuitDiagnostics:
        with self._lock:
            since = None
            if self._opened_at is not None:
                since = self._time.monotonic() - self._opened_at
            return CircuitDiagnostics(
                state=self._state,
                consecutive_failures=self._consecutive_failures,
                auto_retry_count=self._auto_retry_count,
                seconds_since_opened=since,
                recovery_scheduled=self._recovery_call is not None,
            )

    def dispose(self) -> None:
        with self._lock:
            self._cancel_recovery()

    # Lock must be held by callers of the helpers below.

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._time.monotonic()

    def _close(self) -> None:
        self._state = CircuitState.CLOSED
        self._opened_at = None
        self._cancel_recovery()

    def _schedule_recovery(self) -> list[BreakerAlert]:
        self._cancel_recovery()
        if self._auto_retry_count >= self._max_auto_retries:
            logger.warning(
                "Circuit breaker: Max auto-retries (%d) reached, giving up automatic recovery",
                self._max_auto_retries,
            )
            return [
                BreakerAlert(
                    message=(
                        "Beads: Unable to auto-recover from errors. "
                        "Please check the logs and manually reload when ready."
                    ),
                    retry_in_seconds=None,
                    automatic=False,
                )
            ]

        self._auto_retry_count += 1
        self._recovery_call = self._scheduler.call_later(
            self._reset_timeout_seconds, self._recovery_timer_fired
        )
        logger.info(
            "Circuit breaker: Scheduled automatic recovery %d/%d in %ss",
            self._auto_retry_count,
            self._max_auto_retries,
            self._reset_timeout_seconds,
        )
        return []

    def _cancel_recovery(self) -> None:
        if self._recovery_call is not None:
            self._recovery_call.cancel()
            self._recovery_call = None

    def _recovery_timer_fired(self) -> None:
        with self._lock:
            self._recovery_call = None
            if self._state is not CircuitState.OPEN:
                return
            logger.warning(
                "Circuit breaker: Automatic recovery attempt %d/%d triggered",
                self._auto_retry_count,
                self._max_auto_retries,
            )
        self._on_recovery_probe()
