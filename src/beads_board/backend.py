"""Abstract read/write contract consumed by the board UI."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from beads_board.circuit_breaker import CircuitDiagnostics
from beads_board.non_ideal_state import BoardError
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


class BoardBackend(ABC):
    """Board operations over a beads workspace.

    Reads return typed data or a BoardError; writes return None on success or
    a BoardError. No operation raises for a bd failure.
    """

    # Connection and lifecycle

    @abstractmethod
    def ensure_connected(self) -> DaemonInfo | BoardError: ...

    @abstractmethod
    def is_recent_self_save(self) -> bool:
        """True shortly after this backend touched the workspace.

        File watchers use this to ignore changes the board made itself.
        """
        ...

    @abstractmethod
    def set_workspace_root(self, workspace_root: Path) -> None: ...

    @abstractmethod
    def force_reset_circuit(self) -> None: ...

    @abstractmethod
    def circuit_diagnostics(self) -> CircuitDiagnostics: ...

    @abstractmethod
    def dispose(self) -> None: ...

    # Reads

    @abstractmethod
    def load_board(self) -> BoardData | BoardError: ...

    @abstractmethod
    def load_board_minimal(self, limit: int) -> list[BoardCard] | BoardError: ...

    @abstractmethod
    def get_board_metadata(self) -> BoardData: ...

    @abstractmethod
    def get_column_page(
        self, column_key: str, offset: int, limit: int
    ) -> CardPage | BoardError: ...

    @abstractmethod
    def get_column_count(self, column_key: str) -> int | BoardError: ...

    @abstractmethod
    def get_issue_detail(self, issue_id: str) -> IssueDetail | BoardError: ...

    @abstractmethod
    def get_issue_comments(self, issue_id: str) -> list[Comment] | BoardError: ...

    @abstractmethod
    def get_table_data(
        self,
        filters: TableFilters,
        sorting: Sequence[SortSpec],
        offset: int,
        limit: int,
    ) -> TablePage | BoardError: ...

    # Writes

    @abstractmethod
    def create_issue(self, fields: IssueFields) -> CreatedIssue | BoardError: ...

    @abstractmethod
    def update_issue(self, issue_id: str, fields: IssueFields) -> BoardError | None: ...

    @abstractmethod
    def set_status(self, issue_id: str, status: str) -> BoardError | None: ...

    @abstractmethod
    def add_label(self, issue_id: str, label: str) -> BoardError | None: ...

    @abstractmethod
    def remove_label(self, issue_id: str, label: str) -> BoardError | None: ...

    @abstractmethod
    def add_dependency(
        self, issue_id: str, depends_on_id: str, dependency_type: str
    ) -> BoardError | None:
        """issue_id depends on depends_on_id.

        For "blocks", depends_on_id blocks issue_id. For "parent-child",
        depends_on_id is the parent of issue_id.
        """
        ...

    @abstractmethod
    def remove_dependency(self, issue_id: str, depends_on_id: str) -> BoardError | None: ...

    @abstractmethod
    def add_comment(self, issue_id: str, text: str, author: str) -> BoardError | None: ...
