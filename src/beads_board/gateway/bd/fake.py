"""In-memory fake of the bd CLI for testing.

FakeBdExecutor interprets the argv vocabulary produced by
beads_board.bd_commands against an in-memory issue store and returns the
same JSON shapes bd does. Every call is recorded, and failures can be
injected per command.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from beads_board.gateway.bd.abc import BdExecutor
from beads_board.gateway.bd.types import BdOutput
from beads_board.gateway.time.abc import Time
from beads_board.non_ideal_state import CommandFailed, ExecError

_BOOLEAN_FLAGS = frozenset({"--json", "--all", "--no-daemon", "--ephemeral"})

ArgvPredicate = Callable[[list[str]], bool]


@dataclass(frozen=True)
class _ParsedArgs:
    positional: list[str]
    flags: dict[str, list[str]]

    def flag(self, name: str) -> str | None:
        values = self.flags.get(name)
        if not values:
            return None
        return values[-1]

    def has(self, name: str) -> bool:
        return name in self.flags


@dataclass
class _Dependency:
    issue_id: str
    depends_on_id: str
    dependency_type: str
    created_at: str
    created_by: str


def _parse(args: list[str]) -> _ParsedArgs:
    positional: list[str] = []
    flags: dict[str, list[str]] = {}
    index = 0
    after_separator = False
    while index < len(args):
        token = args[index]
        index += 1
        if after_separator or not token.startswith("--"):
            positional.append(token)
            continue
        if token == "--":
            after_separator = True
            continue
        if "=" in token:
            name, value = token.split("=", 1)
            flags.setdefault(name, []).append(value)
        elif token in _BOOLEAN_FLAGS:
            flags.setdefault(token, []).append("true")
        else:
            value = args[index] if index < len(args) else ""
            index += 1
            flags.setdefault(token, []).append(value)
    return _ParsedArgs(positional=positional, flags=flags)


def _failure(args: list[str], message: str) -> CommandFailed:
    return CommandFailed(
        command=" ".join(["bd", *args]),
        exit_code=1,
        output=message,
        message=f"bd command failed with exit code 1: {message}",
    )


class FakeBdExecutor(BdExecutor):
    """In-memory bd.

    Args:
        time: Source of created_at/updated_at/closed_at timestamps
        id_prefix: Prefix for generated issue ids (ids look like "<prefix>-<n>")
        daemon_connected: Value reported by `bd info --json`
        stats_available: When False, `bd stats` fails (exercises list fallbacks)
    """

    def __init__(
        self,
        *,
        time: Time,
        id_prefix: str = "bd",
        daemon_connected: bool = True,
        stats_available: bool = True,
    ) -> None:
        self._time = time
        self._id_prefix = id_prefix
        self._daemon_connected = daemon_connected
        self._stats_available = stats_available
        self._issues: dict[str, dict[str, Any]] = {}
        self._dependencies: list[_Dependency] = []
        self._comments: dict[str, list[dict[str, Any]]] = {}
        self._next_id = 1
        self._next_comment_id = 1
        self._failure_rules: list[tuple[ArgvPredicate, ExecError]] = []
        self.calls: list[list[str]] = []
        self.cwds: list[Path] = []
        self.daemon_pid = 4242
        self.health_report: dict[str, list[Any]] = {
            "dead_processes": [],
            "version_mismatches": [],
            "unresponsive": [],
        }
        self.log_lines: list[str] = []

    # ------------------------------------------------------------------
    # Test configuration
    # ------------------------------------------------------------------

    def fail_when(self, predicate: ArgvPredicate, error: ExecError) -> None:
        """Return error for every call whose argv matches predicate."""
        self._failure_rules.append((predicate, error))

    def clear_failures(self) -> None:
        self._failure_rules.clear()

    def calls_for(self, verb: str) -> list[list[str]]:
        return [call for call in self.calls if call and call[0] == verb]

    def add_issue(
        self,
        *,
        title: str,
        status: str = "open",
        priority: int = 2,
        issue_type: str = "task",
        labels: tuple[str, ...] = (),
        issue_id: str | None = None,
    ) -> str:
        """Seed an issue directly. Returns its id.

        `issue_id` overrides the generated id, which lets tests seed ids that
        a real database might hold but the client rejects.
        """
        issue = self._new_issue(
            title=title, priority=priority, issue_type=issue_type, issue_id=issue_id
        )
        issue["labels"] = list(labels)
        self._set_status(issue, status)
        return issue["id"]

    def add_relationship(self, issue_id: str, depends_on_id: str, dependency_type: str) -> None:
        """Seed `issue_id depends on depends_on_id` directly."""
        self._dependencies.append(
            _Dependency(
                issue_id=issue_id,
                depends_on_id=depends_on_id,
                dependency_type=dependency_type,
                created_at=self._timestamp(),
                created_by="tester",
            )
        )

    def issue(self, issue_id: str) -> dict[str, Any]:
        return self._issues[issue_id]

    # ------------------------------------------------------------------
    # BdExecutor
    # ------------------------------------------------------------------

    def execute(
        self,
        args: list[str],
        *,
        cwd: Path,
        timeout_seconds: float,
    ) -> BdOutput | ExecError:
        self.calls.append(list(args))
        self.cwds.append(cwd)

        for predicate, error in self._failure_rules:
            if predicate(args):
                return error

        if not args:
            return _failure(args, "Error: no command given")

        handlers: dict[str, Callable[[list[str], _ParsedArgs], BdOutput | ExecError]] = {
            "info": self._info,
            "list": self._list,
            "ready": self._ready,
            "show": self._show,
            "stats": self._stats,
            "create": self._create,
            "update": self._update,
            "label": self._label,
            "dep": self._dep,
            "comments": self._comments_cmd,
            "daemons": self._daemons,
        }
        handler = handlers.get(args[0])
        if handler is None:
            return _failure(args, f"Error: unknown command {args[0]!r}")
        return handler(args, _parse(args[1:]))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _info(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        return BdOutput(
            payload={
                "daemon_connected": self._daemon_connected,
                "daemon_status": "healthy" if self._daemon_connected else "stopped",
                "workspace": "fake",
                "daemon_pid": self.daemon_pid if self._daemon_connected else None,
            }
        )

    def _list(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        status = parsed.flag("--status")
        issues = list(self._issues.values())
        if status is not None:
            issues = [issue for issue in issues if issue["status"] == status]
        elif not parsed.has("--all"):
            issues = [issue for issue in issues if issue["status"] != "closed"]
        issues = self._apply_limit(issues, parsed)
        return BdOutput(payload=[self._list_shape(issue) for issue in issues])

    def _ready(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        issues = [
            issue
            for issue in self._issues.values()
            if issue["status"] == "open" and self._open_blocker_count(issue["id"]) == 0
        ]
        issues = self._apply_limit(issues, parsed)
        return BdOutput(payload=[self._list_shape(issue) for issue in issues])

    def _show(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        for issue_id in parsed.positional:
            if issue_id not in self._issues:
                return _failure(args, f"Error: no issue found matching {issue_id!r}")
        return BdOutput(payload=[self._show_shape(self._issues[i]) for i in parsed.positional])

    def _stats(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        if not self._stats_available:
            return _failure(args, "Error: unknown command 'stats'")
        issues = list(self._issues.values())

        def count(status: str) -> int:
            return sum(1 for issue in issues if issue["status"] == status)

        ready = sum(
            1
            for issue in issues
            if issue["status"] == "open" and self._open_blocker_count(issue["id"]) == 0
        )
        return BdOutput(
            payload={
                "summary": {
                    "total_issues": len(issues),
                    "open_issues": count("open"),
                    "in_progress_issues": count("in_progress"),
                    "blocked_issues": count("blocked"),
                    "closed_issues": count("closed"),
                    "ready_issues": ready,
                }
            }
        )

    def _create(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        title = parsed.flag("--title")
        if not title:
            return _failure(args, "Error: title required")
        priority = parsed.flag("--priority")
        issue = self._new_issue(
            title=title,
            priority=int(priority) if priority is not None else 2,
            issue_type=parsed.flag("--type") or "task",
        )
        self._apply_fields(issue, parsed)
        labels = parsed.flag("--labels")
        if labels:
            issue["labels"] = [label for label in labels.split(",") if label]
        if parsed.has("--ephemeral"):
            issue["ephemeral"] = True
        deps = parsed.flag("--deps")
        if deps:
            for spec in deps.split(","):
                dependency_type, depends_on_id = spec.split(":", 1)
                self.add_relationship(issue["id"], depends_on_id, dependency_type)
        return BdOutput(payload=self._show_shape(issue))

    def _update(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        if not parsed.positional:
            return _failure(args, "Error: issue id required")
        issue_id = parsed.positional[0]
        issue = self._issues.get(issue_id)
        if issue is None:
            return _failure(args, f"Error: no issue found matching {issue_id!r}")
        self._apply_fields(issue, parsed)
        if parsed.flag("--priority") is not None:
            issue["priority"] = int(parsed.flag("--priority") or 2)
        if parsed.flag("--type") is not None:
            issue["issue_type"] = parsed.flag("--type")
        status = parsed.flag("--status")
        if status is not None:
            self._set_status(issue, status)
        if parsed.flag("--pinned") is not None:
            issue["pinned"] = parsed.flag("--pinned") == "true"
        if parsed.flag("--template") is not None:
            issue["is_template"] = parsed.flag("--template") == "true"
        issue["updated_at"] = self._timestamp()
        return BdOutput(payload=None)

    def _label(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        if len(parsed.positional) != 3:
            return _failure(args, "Error: usage: bd label add|remove <id> <label>")
        action, issue_id, label = parsed.positional
        issue = self._issues.get(issue_id)
        if issue is None:
            return _failure(args, f"Error: no issue found matching {issue_id!r}")
        if action == "add" and label not in issue["labels"]:
            issue["labels"].append(label)
        elif action == "remove" and label in issue["labels"]:
            issue["labels"].remove(label)
        return BdOutput(payload=None)

    def _dep(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        if len(parsed.positional) != 3:
            return _failure(args, "Error: usage: bd dep add|remove <id> <depends-on-id>")
        action, issue_id, depends_on_id = parsed.positional
        for candidate in (issue_id, depends_on_id):
            if candidate not in self._issues:
                return _failure(args, f"Error: no issue found matching {candidate!r}")
        if action == "add":
            self.add_relationship(issue_id, depends_on_id, parsed.flag("--type") or "blocks")
        else:
            self._dependencies = [
                dep
                for dep in self._dependencies
                if not (dep.issue_id == issue_id and dep.depends_on_id == depends_on_id)
            ]
        return BdOutput(payload=None)

    def _comments_cmd(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        if len(parsed.positional) != 3 or parsed.positional[0] != "add":
            return _failure(args, "Error: usage: bd comments add <id> <text>")
        _, issue_id, text = parsed.positional
        if issue_id not in self._issues:
            return _failure(args, f"Error: no issue found matching {issue_id!r}")
        self._comments.setdefault(issue_id, []).append(
            {
                "id": self._next_comment_id,
                "issue_id": issue_id,
                "author": parsed.flag("--author") or "unknown",
                "text": text,
                "created_at": self._timestamp(),
            }
        )
        self._next_comment_id += 1
        return BdOutput(payload=None)

    def _daemons(self, args: list[str], parsed: _ParsedArgs) -> BdOutput | ExecError:
        action = parsed.positional[0] if parsed.positional else ""
        if action == "list":
            if not self._daemon_connected:
                return BdOutput(payload=[])
            return BdOutput(
                payload=[
                    {
                        "workspace": "fake",
                        "pid": self.daemon_pid,
                        "version": "0.0.0",
                        "socket": "bd.sock",
                    }
                ]
            )
        if action == "health":
            return BdOutput(payload=dict(self.health_report))
        if action == "restart":
            self._daemon_connected = True
            return BdOutput(payload=None, text="Daemon restarted")
        if action == "stop":
            self._daemon_connected = False
            return BdOutput(payload=None, text="Daemon stopped")
        if action == "logs":
            count = int(parsed.positional[-1]) if len(parsed.positional) >= 4 else 50
            text = "\n".join(self.log_lines[-count:])
            return BdOutput(payload=None, text=text)
        return _failure(args, f"Error: unknown daemons action {action!r}")

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    def _timestamp(self) -> str:
        return self._time.now().isoformat()

    def _new_issue(
        self, *, title: str, priority: int, issue_type: str, issue_id: str | None = None
    ) -> dict[str, Any]:
        if issue_id is None:
            issue_id = f"{self._id_prefix}-{self._next_id}"
        self._next_id += 1
        timestamp = self._timestamp()
        issue: dict[str, Any] = {
            "id": issue_id,
            "title": title,
            "description": "",
            "status": "open",
            "priority": priority,
            "issue_type": issue_type,
            "assignee": None,
            "created_at": timestamp,
            "created_by": "tester",
            "updated_at": timestamp,
            "closed_at": None,
            "acceptance_criteria": "",
            "design": "",
            "notes": "",
            "labels": [],
            "estimated_minutes": None,
            "external_ref": None,
            "due_at": None,
            "defer_until": None,
            "pinned": False,
            "is_template": False,
            "ephemeral": False,
        }
        self._issues[issue_id] = issue
        return issue

    def _apply_fields(self, issue: dict[str, Any], parsed: _ParsedArgs) -> None:
        text_fields = {
            "--title": "title",
            "--description": "description",
            "--acceptance": "acceptance_criteria",
            "--design": "design",
            "--notes": "notes",
        }
        for flag, key in text_fields.items():
            value = parsed.flag(flag)
            if value is not None:
                issue[key] = value
        nullable_fields = {
            "--assignee": "assignee",
            "--external-ref": "external_ref",
            "--due": "due_at",
            "--defer": "defer_until",
        }
        for flag, key in nullable_fields.items():
            value = parsed.flag(flag)
            if value is not None:
                issue[key] = value or None
        estimate = parsed.flag("--estimate")
        if estimate is not None:
            issue["estimated_minutes"] = int(estimate) or None

    def _set_status(self, issue: dict[str, Any], status: str) -> None:
        if status == "closed":
            if issue["closed_at"] is None:
                issue["closed_at"] = self._timestamp()
        else:
            issue["closed_at"] = None
        issue["status"] = status

    def _apply_limit(
        self, issues: list[dict[str, Any]], parsed: _ParsedArgs
    ) -> list[dict[str, Any]]:
        limit = parsed.flag("--limit")
        if limit is None or int(limit) == 0:
            return issues
        return issues[: int(limit)]

    def _open_blocker_count(self, issue_id: str) -> int:
        return sum(
            1
            for dep in self._dependencies
            if dep.issue_id == issue_id
            and dep.dependency_type == "blocks"
            and self._issues.get(dep.depends_on_id, {}).get("status") != "closed"
        )

    def _list_shape(self, issue: dict[str, Any]) -> dict[str, Any]:
        issue_id = issue["id"]
        return {
            **issue,
            "labels": list(issue["labels"]),
            "dependency_count": sum(1 for d in self._dependencies if d.issue_id == issue_id),
            "dependent_count": sum(1 for d in self._dependencies if d.depends_on_id == issue_id),
            "blocked_by_count": self._open_blocker_count(issue_id),
        }

    def _show_shape(self, issue: dict[str, Any]) -> dict[str, Any]:
        issue_id = issue["id"]
        dependents = []
        for dep in self._dependencies:
            if dep.depends_on_id != issue_id:
                continue
            other = self._issues.get(dep.issue_id)
            dependents.append(
                {
                    "id": dep.issue_id,
                    "title": other["title"] if other is not None else "",
                    "status": other["status"] if other is not None else "",
                    "dependency_type": dep.dependency_type,
                    "created_at": dep.created_at,
                    "created_by": dep.created_by,
                }
            )
        dependencies = []
        for dep in self._dependencies:
            if dep.issue_id != issue_id:
                continue
            other = self._issues.get(dep.depends_on_id)
            dependencies.append(
                {
                    "id": dep.depends_on_id,
                    "title": other["title"] if other is not None else "",
                    "status": other["status"] if other is not None else "",
                    "dependency_type": dep.dependency_type,
                    "created_at": dep.created_at,
                    "created_by": dep.created_by,
                }
            )
        return {
            **self._list_shape(issue),
            "dependents": dependents,
            "dependencies": dependencies,
            "comments": list(self._comments.get(issue_id, [])),
        }
