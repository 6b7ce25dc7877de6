"""Data types for board operations.

IssueRecord and RelationshipRecord map to `bd show --json` output.
BoardCard is the read-only projection handed to the UI, with relationship
collections derived by dependency_graph.assemble_cards().
"""

from dataclasses import dataclass
from typing import Literal

IssueStatus = Literal["open", "in_progress", "blocked", "closed"]
RelationshipType = Literal["parent-child", "blocks"]
ColumnKey = Literal["ready", "in_progress", "blocked", "closed", "open"]

ISSUE_STATUSES: tuple[IssueStatus, ...] = ("open", "in_progress", "blocked", "closed")
RELATIONSHIP_TYPES: tuple[RelationshipType, ...] = ("parent-child", "blocks")
COLUMN_KEYS: tuple[ColumnKey, ...] = ("ready", "in_progress", "blocked", "closed", "open")


@dataclass(frozen=True)
class RelationshipRecord:
    """Directed edge stored on its source issue.

    A parent-child record on A pointing to B means A is the parent of B.
    A blocks record on A pointing to B means A blocks B.
    """

    other_issue_id: str
    other_issue_title: str
    relationship_type: str
    created_at: str
    created_by: str


@dataclass(frozen=True)
class IssueRecord:
    """Issue as reported by bd.

    relationships are the outgoing records (bd `dependents`). dependencies are
    the incoming records (bd `dependencies`, issues this one depends on); the
    board graph is built from outgoing records only, and incoming records are
    used when a single issue is shown on its own.
    """

    id: str
    title: str
    description: str
    status: str
    priority: int
    issue_type: str
    assignee: str | None
    created_at: str
    created_by: str
    updated_at: str
    closed_at: str | None
    acceptance_criteria: str
    design: str
    notes: str
    labels: tuple[str, ...]
    estimated_minutes: int | None
    external_ref: str | None
    due_at: str | None
    defer_until: str | None
    pinned: bool
    is_template: bool
    ephemeral: bool
    relationships: tuple[RelationshipRecord, ...]
    dependencies: tuple[RelationshipRecord, ...]
    blocked_by_count: int


@dataclass(frozen=True)
class DependencyInfo:
    """The other end of a relationship, as shown on a card."""

    id: str
    title: str
    created_at: str
    created_by: str


@dataclass(frozen=True)
class Comment:
    id: int
    issue_id: str
    author: str
    text: str
    created_at: str


@dataclass(frozen=True)
class BoardCard:
    """IssueRecord plus derived readiness and relationship collections."""

    issue: IssueRecord
    is_ready: bool
    parent: DependencyInfo | None
    children: tuple[DependencyInfo, ...]
    blocks: tuple[DependencyInfo, ...]
    blocked_by: tuple[DependencyInfo, ...]

    @property
    def id(self) -> str:
        return self.issue.id

    @property
    def status(self) -> str:
        return self.issue.status

    @property
    def column_key(self) -> str:
        """Board column: open issues are "ready" unless something blocks them."""
        if self.issue.status == "open":
            return "ready" if self.is_ready else "blocked"
        return self.issue.status


@dataclass(frozen=True)
class IssueDetail:
    """A single card with its comments, loaded on demand."""

    card: BoardCard
    comments: tuple[Comment, ...]


@dataclass(frozen=True)
class BoardColumn:
    key: str
    title: str


BOARD_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn(key="ready", title="Ready"),
    BoardColumn(key="in_progress", title="In Progress"),
    BoardColumn(key="blocked", title="Blocked"),
    BoardColumn(key="closed", title="Closed"),
)


@dataclass(frozen=True)
class BoardData:
    """Full board: the fixed columns and every loaded card.

    has_more is True when the issue count exceeded the configured maximum
    and the card list was truncated.
    """

    columns: tuple[BoardColumn, ...]
    cards: tuple[BoardCard, ...]
    has_more: bool


@dataclass(frozen=True)
class CardPage:
    column_key: str
    offset: int
    limit: int
    cards: tuple[BoardCard, ...]


@dataclass(frozen=True)
class TablePage:
    cards: tuple[BoardCard, ...]
    total_count: int


@dataclass(frozen=True)
class IssueFields:
    """Fields accepted by create and update.

    None means "not provided". For update, an empty string clears the field
    where bd supports clearing it.
    """

    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: int | None = None
    issue_type: str | None = None
    assignee: str | None = None
    estimated_minutes: int | None = None
    acceptance_criteria: str | None = None
    design: str | None = None
    notes: str | None = None
    external_ref: str | None = None
    due_at: str | None = None
    defer_until: str | None = None
    labels: tuple[str, ...] = ()
    pinned: bool = False
    is_template: bool = False
    ephemeral: bool = False
    parent_id: str | None = None
    blocked_by_ids: tuple[str, ...] = ()
    children_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class CreatedIssue:
    id: str


@dataclass(frozen=True)
class DaemonInfo:
    """Result of `bd info --json` for a connected daemon."""

    daemon_connected: bool
    daemon_status: str | None
    workspace: str


@dataclass(frozen=True)
class DaemonStatus:
    running: bool
    healthy: bool
    pid: int | None
    workspace: str
    error: str | None


@dataclass(frozen=True)
class RunningDaemon:
    """One entry of `bd daemons list --json`."""

    workspace: str
    pid: int | None
    version: str
    socket: str


@dataclass(frozen=True)
class DaemonHealth:
    healthy: bool
    issues: tuple[str, ...]


@dataclass(frozen=True)
class TableFilters:
    search: str | None = None
    priority: str | None = None
    issue_type: str | None = None
    status: str | None = None
    assignee: str | None = None
    labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class SortSpec:
    key: str
    descending: bool
