"""Scheduler fake that runs callbacks only when a test fires them."""

from collections.abc import Callable
from dataclasses import dataclass, field

from beads_board.gateway.scheduler.abc import ScheduledCall, Scheduler


@dataclass
class FakeScheduledCall(ScheduledCall):
    delay_seconds: float
    callback: Callable[[], None]
    cancelled: bool = field(default=False)
    fired: bool = field(default=False)

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    def __init__(self) -> None:
        self.calls: list[FakeScheduledCall] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledCall:
        call = FakeScheduledCall(delay_seconds=delay_seconds, callback=callback)
        self.calls.append(call)
        return call

    @property
    def pending(self) -> list[FakeScheduledCall]:
        return [call for call in self.calls if not call.cancelled and not call.fired]

    def fire_pending(self) -> int:
        """Run every pending callback once. Returns how many ran."""
        to_fire = self.pending
        for call in to_fire:
            call.fired = True
            call.callback()
        return len(to_fire)
