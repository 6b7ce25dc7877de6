"""Controllable Time for tests."""

from datetime import UTC, datetime, timedelta

from beads_board.gateway.time.abc import Time


class FakeTime(Time):
    """Time that only moves when told to.

    sleep() advances the clock instead of blocking and records the duration.
    """

    def __init__(self, current_time: datetime | None = None) -> None:
        self._current_time = (
            current_time if current_time is not None else datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
        )
        self._monotonic = 1000.0
        self.sleep_calls: list[float] = []

    def now(self) -> datetime:
        return self._current_time

    def monotonic(self) -> float:
        return self._monotonic

    def sleep(self, seconds: float) -> None:
        self.sleep_calls.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self._current_time = self._current_time + timedelta(seconds=seconds)
        self._monotonic += seconds
