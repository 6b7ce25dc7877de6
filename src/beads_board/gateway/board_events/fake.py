"""Recording BoardEvents for tests."""

from beads_board.gateway.board_events.abc import BoardEvents, BreakerAlert


class FakeBoardEvents(BoardEvents):
    def __init__(self) -> None:
        self.alerts: list[BreakerAlert] = []
        self.refresh_count = 0
        self.truncations: list[int] = []

    def breaker_alert(self, alert: BreakerAlert) -> None:
        self.alerts.append(alert)

    def refresh_requested(self) -> None:
        self.refresh_count += 1

    def load_truncated(self, max_issues: int) -> None:
        self.truncations.append(max_issues)
