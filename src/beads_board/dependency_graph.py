"""Bidirectional dependency graph assembly for board cards.

bd reports relationships on their source issue (the `dependents` of an
issue). assemble_cards() turns that flat list into per-card parent,
children, blocks and blocked_by collections in two passes, so the two
directions of every edge are always derived from the same record.

When only part of the board is loaded (a column page, a single issue), the
incoming records (`dependencies`) can be indexed as well so edges to issues
outside the loaded set are not lost. An edge seen from both ends is indexed
once.

Known data-quality gap: if two parent-child records name the same child
from different parents, the last one processed wins for that child's
parent. Self-referential records are passed through unchanged.
"""

from dataclasses import dataclass, field

from beads_board.types import BoardCard, DependencyInfo, IssueRecord, RelationshipRecord


@dataclass
class RelationshipIndex:
    """Lookup maps built by the first pass, keyed by issue id."""

    parent_of: dict[str, DependencyInfo] = field(default_factory=dict)
    children_of: dict[str, list[DependencyInfo]] = field(default_factory=dict)
    blocks: dict[str, list[DependencyInfo]] = field(default_factory=dict)
    blocked_by: dict[str, list[DependencyInfo]] = field(default_factory=dict)
    _seen: set[tuple[str, str, str]] = field(default_factory=set, init=False, repr=False)

    def add_edge(
        self, source: DependencyInfo, target: DependencyInfo, relationship_type: str
    ) -> None:
        """Record `source -> target`: source is the parent of, or blocks, target."""
        key = (source.id, target.id, relationship_type)
        if key in self._seen:
            return
        self._seen.add(key)
        if relationship_type == "parent-child":
            self.parent_of[target.id] = source
            self.children_of.setdefault(source.id, []).append(target)
        elif relationship_type == "blocks":
            self.blocked_by.setdefault(target.id, []).append(source)
            self.blocks.setdefault(source.id, []).append(target)


def _issue_info(issue: IssueRecord) -> DependencyInfo:
    return DependencyInfo(
        id=issue.id,
        title=issue.title,
        created_at=issue.created_at,
        created_by=issue.created_by,
    )


def _record_info(record: RelationshipRecord) -> DependencyInfo:
    return DependencyInfo(
        id=record.other_issue_id,
        title=record.other_issue_title,
        created_at=record.created_at,
        created_by=record.created_by,
    )


def index_relationships(
    issues: list[IssueRecord], *, include_incoming: bool = False
) -> RelationshipIndex:
    """Pass 1: record both directions of every parent-child and blocks edge.

    Args:
        issues: Issues in processing order
        include_incoming: Also index each issue's incoming records
    """
    index = RelationshipIndex()
    for issue in issues:
        this_issue = _issue_info(issue)
        for record in issue.relationships:
            index.add_edge(this_issue, _record_info(record), record.relationship_type)
        if include_incoming:
            for record in issue.dependencies:
                index.add_edge(_record_info(record), this_issue, record.relationship_type)
    return index


def build_card(issue: IssueRecord, index: RelationshipIndex) -> BoardCard:
    """Pass 2 for a single issue."""
    blocked_by = tuple(index.blocked_by.get(issue.id, ()))
    return BoardCard(
        issue=issue,
        is_ready=issue.status == "open" and not blocked_by,
        parent=index.parent_of.get(issue.id),
        children=tuple(index.children_of.get(issue.id, ())),
        blocks=tuple(index.blocks.get(issue.id, ())),
        blocked_by=blocked_by,
    )


def assemble_cards(
    issues: list[IssueRecord], *, include_incoming: bool = False
) -> list[BoardCard]:
    """Build board cards, preserving input order."""
    index = index_relationships(issues, include_incoming=include_incoming)
    return [build_card(issue, index) for issue in issues]


def assemble_detail_card(issue: IssueRecord) -> BoardCard:
    """Card for an issue shown on its own."""
    return assemble_cards([issue], include_incoming=True)[0]


def minimal_card(issue: IssueRecord) -> BoardCard:
    """Card from list output alone, without relationship collections.

    Readiness comes from bd's blocked_by_count.
    """
    return BoardCard(
        issue=issue,
        is_ready=issue.status == "open" and issue.blocked_by_count == 0,
        parent=None,
        children=(),
        blocks=(),
        blocked_by=(),
    )
