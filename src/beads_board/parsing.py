"""Parsing of bd JSON payloads into typed records."""

from typing import Any

from beads_board.types import Comment, DaemonInfo, IssueRecord, RelationshipRecord


class MalformedPayloadError(ValueError):
    """bd returned JSON that does not have the expected shape."""


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _flag(value: Any) -> bool:
    return value is True or value == 1


def _labels(raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    labels: list[str] = []
    for item in raw:
        if isinstance(item, str):
            labels.append(item)
        elif isinstance(item, dict) and isinstance(item.get("label"), str):
            labels.append(item["label"])
    return tuple(labels)


def parse_relationship(raw: Any) -> RelationshipRecord:
    if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
        raise MalformedPayloadError(f"Relationship entry without id: {raw!r}")
    return RelationshipRecord(
        other_issue_id=raw["id"],
        other_issue_title=str(raw.get("title") or ""),
        relationship_type=str(raw.get("dependency_type") or ""),
        created_at=str(raw.get("created_at") or ""),
        created_by=str(raw.get("created_by") or "unknown"),
    )


def parse_issue(raw: Any) -> IssueRecord:
    """Map one issue object from `bd list --json` or `bd show --json`.

    `dependents` (present only in show output) lists the issues that depend
    on this one; they become this issue's outgoing relationship records.
    """
    if not isinstance(raw, dict):
        raise MalformedPayloadError(f"Expected issue object, got {type(raw).__name__}")
    issue_id = raw.get("id")
    if not isinstance(issue_id, str) or not issue_id:
        raise MalformedPayloadError("Issue object without id")

    created_at = str(raw.get("created_at") or "")
    priority = raw.get("priority")
    estimated = raw.get("estimated_minutes")
    blocked_by_count = raw.get("blocked_by_count")
    dependents = raw.get("dependents")
    relationships = (
        tuple(parse_relationship(item) for item in dependents)
        if isinstance(dependents, list)
        else ()
    )
    depends_on = raw.get("dependencies")
    dependencies = (
        tuple(parse_relationship(item) for item in depends_on)
        if isinstance(depends_on, list)
        else ()
    )

    return IssueRecord(
        id=issue_id,
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        status=str(raw.get("status") or "open"),
        priority=priority if isinstance(priority, int) and not isinstance(priority, bool) else 2,
        issue_type=str(raw.get("issue_type") or "task"),
        assignee=_optional_str(raw.get("assignee")),
        created_at=created_at,
        created_by=str(raw.get("created_by") or "unknown"),
        updated_at=str(raw.get("updated_at") or created_at),
        closed_at=_optional_str(raw.get("closed_at")),
        acceptance_criteria=str(raw.get("acceptance_criteria") or ""),
        design=str(raw.get("design") or ""),
        notes=str(raw.get("notes") or ""),
        labels=_labels(raw.get("labels")),
        estimated_minutes=estimated if isinstance(estimated, int) and estimated else None,
        external_ref=_optional_str(raw.get("external_ref")),
        due_at=_optional_str(raw.get("due_at")),
        defer_until=_optional_str(raw.get("defer_until")),
        pinned=_flag(raw.get("pinned")),
        is_template=_flag(raw.get("is_template")),
        ephemeral=_flag(raw.get("ephemeral")),
        relationships=relationships,
        dependencies=dependencies,
        blocked_by_count=(
            blocked_by_count
            if isinstance(blocked_by_count, int) and not isinstance(blocked_by_count, bool)
            else 0
        ),
    )


def parse_issue_list(payload: Any, *, command: str) -> list[IssueRecord]:
    """Parse a JSON array of issues. None (no output) is an empty list."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise MalformedPayloadError(f"Expected array from {command}")
    return [parse_issue(item) for item in payload]


def parse_comments(raw: Any, issue_id: str) -> tuple[Comment, ...]:
    if not isinstance(raw, list):
        return ()
    comments: list[Comment] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        comment_id = item.get("id")
        try:
            numeric_id = int(comment_id) if comment_id is not None else 0
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(f"Comment id is not numeric: {comment_id!r}") from e
        comments.append(
            Comment(
                id=numeric_id,
                issue_id=issue_id,
                author=str(item.get("author") or "unknown"),
                text=str(item.get("text") or ""),
                created_at=str(item.get("created_at") or ""),
            )
        )
    return tuple(comments)


def parse_created_id(payload: Any) -> str:
    """Extract the new issue id from `bd create --json` (object or one-element array)."""
    if isinstance(payload, dict) and isinstance(payload.get("id"), str):
        return payload["id"]
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        first_id = payload[0].get("id")
        if isinstance(first_id, str):
            return first_id
    raise MalformedPayloadError("bd create did not return issue id")


def parse_daemon_info(payload: Any, workspace: str) -> DaemonInfo:
    if not isinstance(payload, dict):
        return DaemonInfo(daemon_connected=False, daemon_status=None, workspace=workspace)
    status = payload.get("daemon_status")
    return DaemonInfo(
        daemon_connected=payload.get("daemon_connected") is True,
        daemon_status=str(status) if status is not None else None,
        workspace=workspace,
    )
