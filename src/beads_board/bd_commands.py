"""Argument vectors for every bd verb the board uses.

This module is the only place argv is built. Each builder validates the
identifiers and free-text values it embeds, raising InvalidInputError, and
returns NUL-stripped arguments ready for BdExecutor.execute(). User-controlled
positional values always follow a `--` separator.
"""

from collections.abc import Sequence

from beads_board.types import RELATIONSHIP_TYPES, IssueFields
from beads_board.validation import (
    InvalidInputError,
    sanitize_arg,
    validate_flag_value,
    validate_issue_id,
)

# Keeps a batched `bd show` well under the Windows command-line limit (~8191 chars)
SHOW_BATCH_SIZE = 50

_COLUMN_STATUS = {
    "in_progress": "in_progress",
    "blocked": "blocked",
    "closed": "closed",
    "open": "open",
}

_TEXT_FLAGS = (
    ("title", "--title"),
    ("description", "--description"),
    ("acceptance_criteria", "--acceptance"),
    ("design", "--design"),
    ("notes", "--notes"),
)


def _finish(args: Sequence[object]) -> list[str]:
    return [sanitize_arg(arg) for arg in args]


def _validate_fields(fields: IssueFields) -> None:
    for name in (
        "title",
        "description",
        "status",
        "issue_type",
        "assignee",
        "acceptance_criteria",
        "design",
        "notes",
        "external_ref",
        "due_at",
        "defer_until",
    ):
        validate_flag_value(getattr(fields, name), name)
    for label in fields.labels:
        validate_flag_value(label, "label")
    if fields.parent_id is not None:
        validate_issue_id(fields.parent_id)
    for issue_id in (*fields.blocked_by_ids, *fields.children_ids):
        validate_issue_id(issue_id)
    if fields.priority is not None and not 0 <= fields.priority <= 4:
        raise InvalidInputError("priority", "priority must be between 0 and 4")


def info() -> list[str]:
    return ["info", "--json"]


def stats() -> list[str]:
    return ["stats", "--json"]


def list_all(limit: int) -> list[str]:
    return _finish(["list", "--json", "--all", "--limit", limit])


def list_column(column_key: str, limit: int) -> list[str]:
    """List issues for a board column. limit 0 means no limit."""
    if column_key == "ready":
        return _finish(["ready", "--json", "--limit", limit])
    status = _COLUMN_STATUS.get(column_key)
    if status is None:
        raise InvalidInputError("column", f"Unknown column: {column_key}")
    return _finish(["list", f"--status={status}", "--json", "--limit", limit])


def show(issue_ids: Sequence[str]) -> list[str]:
    if not issue_ids:
        raise InvalidInputError("issue_id", "show requires at least one issue ID")
    for issue_id in issue_ids:
        validate_issue_id(issue_id)
    return _finish(["show", "--json", "--", *issue_ids])


def create(fields: IssueFields) -> list[str]:
    """Build `bd create`.

    bd create always creates issues as open and has no pinned/template flags;
    those are applied afterwards with update().
    """
    title = (fields.title or "").strip()
    if not title:
        raise InvalidInputError("title", "Title is required")
    _validate_fields(fields)

    args: list[object] = ["create", "--title", title]
    if fields.description:
        args += ["--description", fields.description]
    if fields.priority is not None:
        args += ["--priority", fields.priority]
    if fields.issue_type:
        args += ["--type", fields.issue_type]
    if fields.assignee:
        args += ["--assignee", fields.assignee]
    if fields.estimated_minutes is not None:
        args += ["--estimate", fields.estimated_minutes]
    if fields.acceptance_criteria:
        args += ["--acceptance", fields.acceptance_criteria]
    if fields.design:
        args += ["--design", fields.design]
    if fields.notes:
        args += ["--notes", fields.notes]
    if fields.external_ref:
        args += ["--external-ref", fields.external_ref]
    if fields.due_at:
        args += ["--due", fields.due_at]
    if fields.defer_until:
        args += ["--defer", fields.defer_until]
    if fields.labels:
        args += ["--labels", ",".join(fields.labels)]
    if fields.ephemeral:
        args.append("--ephemeral")

    deps: list[str] = []
    if fields.parent_id is not None:
        deps.append(f"parent-child:{fields.parent_id}")
    deps.extend(f"blocks:{blocker_id}" for blocker_id in fields.blocked_by_ids)
    if deps:
        args += ["--deps", ",".join(deps)]

    args.append("--json")
    return _finish(args)


def update(issue_id: str, fields: IssueFields) -> list[str]:
    """Build `bd update` for every provided field.

    --no-daemon works around a daemon bug with --due. Empty assignee clears
    it; empty external_ref/due/defer are skipped because bd rejects them.
    """
    validate_issue_id(issue_id)
    _validate_fields(fields)

    args: list[object] = ["update", "--no-daemon"]
    for name, flag in _TEXT_FLAGS:
        value = getattr(fields, name)
        if value is not None:
            args += [flag, value]
    if fields.priority is not None:
        args += ["--priority", fields.priority]
    if fields.issue_type is not None:
        args += ["--type", fields.issue_type]
    if fields.assignee is not None:
        args += ["--assignee", fields.assignee]
    if fields.estimated_minutes is not None:
        args += ["--estimate", fields.estimated_minutes]
    if fields.external_ref:
        args += ["--external-ref", fields.external_ref]
    if fields.due_at:
        args += ["--due", fields.due_at]
    if fields.defer_until:
        args += ["--defer", fields.defer_until]
    if fields.status is not None:
        args += ["--status", fields.status]
    if fields.pinned:
        args += ["--pinned", "true"]
    if fields.is_template:
        args += ["--template", "true"]
    args += ["--", issue_id]
    return _finish(args)


def set_status(issue_id: str, status: str) -> list[str]:
    validate_issue_id(issue_id)
    validate_flag_value(status, "status")
    return _finish(["update", "--status", status, "--", issue_id])


def label(action: str, issue_id: str, label_name: str) -> list[str]:
    validate_issue_id(issue_id)
    if not label_name:
        raise InvalidInputError("label", "Label must be a non-empty string")
    return _finish(["label", action, "--", issue_id, label_name])


def add_dependency(issue_id: str, depends_on_id: str, dependency_type: str) -> list[str]:
    """`issue_id` depends on `depends_on_id`.

    For blocks, depends_on_id blocks issue_id. For parent-child,
    depends_on_id is the parent of issue_id.
    """
    validate_issue_id(issue_id)
    validate_issue_id(depends_on_id)
    if dependency_type not in RELATIONSHIP_TYPES:
        raise InvalidInputError("dependency_type", "Invalid dependency type")
    return _finish(["dep", "add", "--type", dependency_type, "--", issue_id, depends_on_id])


def remove_dependency(issue_id: str, depends_on_id: str) -> list[str]:
    validate_issue_id(issue_id)
    validate_issue_id(depends_on_id)
    return _finish(["dep", "remove", "--", issue_id, depends_on_id])


def add_comment(issue_id: str, text: str, author: str) -> list[str]:
    validate_issue_id(issue_id)
    validate_flag_value(author, "author")
    return _finish(["comments", "add", "--author", author, "--", issue_id, text])


def daemons(action: str) -> list[str]:
    if action in ("list", "health"):
        return ["daemons", action, "--json"]
    return ["daemons", action, "."]


def daemon_logs(lines: int) -> list[str]:
    safe_lines = max(1, min(1000, int(lines)))
    return _finish(["daemons", "logs", ".", "-n", safe_lines])
