"""BoardEvents that only writes to the diagnostics log."""

import logging

from beads_board.gateway.board_events.abc import BoardEvents, BreakerAlert

logger = logging.getLogger(__name__)


class LoggingBoardEvents(BoardEvents):
    """Default implementation for hosts without an interactive UI."""

    def breaker_alert(self, alert: BreakerAlert) -> None:
        logger.warning("%s (actions: %s)", alert.message, ", ".join(alert.actions))

    def refresh_requested(self) -> None:
        logger.info("Board refresh requested")

    def load_truncated(self, max_issues: int) -> None:
        logger.info(
            "Showing %d most recent issues. Increase max_issues to show more.", max_issues
        )
