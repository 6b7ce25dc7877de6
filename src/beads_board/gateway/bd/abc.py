"""Abstract interface for running bd."""

from abc import ABC, abstractmethod
from pathlib import Path

from beads_board.gateway.bd.types import BdOutput
from beads_board.non_ideal_state import ExecError

DEFAULT_TIMEOUT_SECONDS = 30.0


class BdExecutor(ABC):
    """Runs one bd process per call.

    Implementations never validate arguments; callers build argv through
    beads_board.bd_commands, which is the only place validation happens.
    """

    @abstractmethod
    def execute(
        self,
        args: list[str],
        *,
        cwd: Path,
        timeout_seconds: float,
    ) -> BdOutput | ExecError:
        """Run `bd <args>` in cwd.

        Args:
            args: Argument vector, excluding the executable itself
            cwd: Workspace directory containing .beads/
            timeout_seconds: Wall-clock limit; the process is terminated on expiry

        Returns:
            BdOutput on exit code 0, otherwise the failure
        """
        ...
