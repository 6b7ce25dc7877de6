"""In-memory filtering and sorting for the table view."""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from beads_board.types import BoardCard, SortSpec, TableFilters


def _timestamp(value: str | None) -> float:
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return 0.0


def _matches_status(card: BoardCard, wanted: str) -> bool:
    if wanted == "all":
        return True
    if wanted == "not_closed":
        return card.status != "closed"
    if wanted == "active":
        return card.status in ("open", "in_progress")
    return card.status == wanted


def matches_filters(card: BoardCard, filters: TableFilters) -> bool:
    issue = card.issue
    if filters.search:
        needle = filters.search.lower()
        if not (
            needle in issue.title.lower()
            or needle in issue.id.lower()
            or needle in issue.description.lower()
        ):
            return False
    if filters.priority and str(issue.priority) != filters.priority:
        return False
    if filters.issue_type and issue.issue_type != filters.issue_type:
        return False
    if filters.status and not _matches_status(card, filters.status):
        return False
    if filters.assignee:
        if filters.assignee == "unassigned":
            if issue.assignee:
                return False
        elif issue.assignee != filters.assignee:
            return False
    if filters.labels and not all(label in issue.labels for label in filters.labels):
        return False
    return True


_SORT_KEYS: dict[str, Callable[[BoardCard], Any]] = {
    "id": lambda card: card.issue.id.casefold(),
    "title": lambda card: card.issue.title.casefold(),
    "status": lambda card: card.issue.status,
    "priority": lambda card: card.issue.priority,
    "type": lambda card: card.issue.issue_type,
    "assignee": lambda card: (card.issue.assignee or "").casefold(),
    "created": lambda card: _timestamp(card.issue.created_at),
    "updated": lambda card: _timestamp(card.issue.updated_at),
    "closed": lambda card: _timestamp(card.issue.closed_at),
}


def sort_cards(cards: Sequence[BoardCard], sorting: Sequence[SortSpec]) -> list[BoardCard]:
    """Multi-key sort. Ties fall back to most recently updated first.

    Unknown sort keys sort by updated time.
    """
    result = sorted(cards, key=_SORT_KEYS["updated"], reverse=True)
    for spec in reversed(sorting):
        key = _SORT_KEYS.get(spec.key, _SORT_KEYS["updated"])
        result.sort(key=key, reverse=spec.descending)
    return result


def filter_and_sort(
    cards: Sequence[BoardCard],
    filters: TableFilters,
    sorting: Sequence[SortSpec],
) -> list[BoardCard]:
    return sort_cards([card for card in cards if matches_filters(card, filters)], sorting)
