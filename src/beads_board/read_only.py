"""Read-only wrapper for board backends."""

from collections.abc import Sequence
from pathlib import Path

from beads_board.backend import BoardBackend
from beads_board.circuit_breaker import CircuitDiagnostics
from beads_board.non_ideal_state import BoardError, ReadOnlyMode
from beads_board.types import (
    BoardCard,
    BoardData,
    CardPage,
    Comment,
    CreatedIssue,
    DaemonInfo,
    IssueDetail,
    IssueFields,
    SortSpec,
    TableFilters,
    TablePage,
)


def _refuse(operation: str) -> ReadOnlyMode:
    return ReadOnlyMode(
        operation=operation,
        message=f"Cannot {operation}: the board is in read-only mode",
    )


class ReadOnlyBoardBackend(BoardBackend):
    """Delegates reads to the wrapped backend and refuses every write.

    Refused writes never reach bd.
    """

    def __init__(self, wrapped: BoardBackend) -> None:
        """Initialize read-only wrapper.

        Args:
            wrapped: The backend that serves reads
        """
        self._wrapped = wrapped

    @property
    def wrapped(self) -> BoardBackend:
        return self._wrapped

    def ensure_connected(self) -> DaemonInfo | BoardError:
        return self._wrapped.ensure_connected()

    def is_recent_self_save(self) -> bool:
        return self._wrapped.is_recent_self_save()

    def set_workspace_root(self, workspace_root: Path) -> None:
        self._wrapped.set_workspace_root(workspace_root)

    def force_reset_circuit(self) -> None:
        self._wrapped.force_reset_circuit()

    def circuit_diagnostics(self) -> CircuitDiagnostics:
        return self._wrapped.circuit_diagnostics()

    def dispose(self) -> None:
        self._wrapped.dispose()

    def load_board(self) -> BoardData | BoardError:
        return self._wrapped.load_board()

    def load_board_minimal(self, limit: int) -> list[BoardCard] | BoardError:
        return self._wrapped.load_board_minimal(limit)

    def get_board_metadata(self) -> BoardData:
        return self._wrapped.get_board_metadata()

    def get_column_page(self, column_key: str, offset: int, limit: int) -> CardPage | BoardError:
        return self._wrapped.get_column_page(column_key, offset, limit)

    def get_column_count(self, column_key: str) -> int | BoardError:
        return self._wrapped.get_column_count(column_key)

    def get_issue_detail(self, issue_id: str) -> IssueDetail | BoardError:
        return self._wrapped.get_issue_detail(issue_id)

    def get_issue_comments(self, issue_id: str) -> list[Comment] | BoardError:
        return self._wrapped.get_issue_comments(issue_id)

    def get_table_data(
        self,
        filters: TableFilters,
        sorting: Sequence[SortSpec],
        offset: int,
        limit: int,
    ) -> TablePage | BoardError:
        return self._wrapped.get_table_data(filters, sorting, offset, limit)

    def create_issue(self, fields: IssueFields) -> CreatedIssue | BoardError:
        return _refuse("create issue")

    def update_issue(self, issue_id: str, fields: IssueFields) -> BoardError | None:
        return _refuse("update issue")

    def set_status(self, issue_id: str, status: str) -> BoardError | None:
        return _refuse("change status")

    def add_label(self, issue_id: str, label: str) -> BoardError | None:
        return _refuse("add label")

    def remove_label(self, issue_id: str, label: str) -> BoardError | None:
        return _refuse("remove label")

    def add_dependency(
        self, issue_id: str, depends_on_id: str, dependency_type: str
    ) -> BoardError | None:
        return _refuse("add dependency")

    def remove_dependency(self, issue_id: str, depends_on_id: str) -> BoardError | None:
        return _refuse("remove dependency")

    def add_comment(self, issue_id: str, text: str, author: str) -> BoardError | None:
        return _refuse("add comment")
