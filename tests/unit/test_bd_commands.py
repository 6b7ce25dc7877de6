"""Tests for bd argument vector construction."""

import pytest

from beads_board import bd_commands
from beads_board.types import IssueFields
from beads_board.validation import InvalidInputError


def test_list_all_passes_limit_as_string() -> None:
    assert bd_commands.list_all(1001) == ["list", "--json", "--all", "--limit", "1001"]


class TestListColumn:
    def test_ready_uses_bd_ready(self) -> None:
        assert bd_commands.list_column("ready", 200) == ["ready", "--json", "--limit", "200"]

    @pytest.mark.parametrize("column_key", ["in_progress", "blocked", "closed", "open"])
    def test_status_columns_filter_list(self, column_key: str) -> None:
        assert bd_commands.list_column(column_key, 0) == [
            "list",
            f"--status={column_key}",
            "--json",
            "--limit",
            "0",
        ]

    def test_unknown_column_is_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="Unknown column"):
            bd_commands.list_column("backlog", 10)


class TestShow:
    def test_ids_follow_separator(self) -> None:
        assert bd_commands.show(["bd-1", "bd-2"]) == ["show", "--json", "--", "bd-1", "bd-2"]

    def test_every_id_is_validated(self) -> None:
        with pytest.raises(InvalidInputError):
            bd_commands.show(["bd-1", "--all"])

    def test_empty_batch_is_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            bd_commands.show([])


class TestCreate:
    def test_minimal(self) -> None:
        assert bd_commands.create(IssueFields(title="  Fix login  ")) == [
            "create",
            "--title",
            "Fix login",
            "--json",
        ]

    def test_all_fields(self) -> None:
        fields = IssueFields(
            title="Fix login",
            description="Steps:\n1. open",
            priority=1,
            issue_type="bug",
            assignee="ana",
            estimated_minutes=30,
            acceptance_criteria="works",
            design="simple",
            notes="n",
            external_ref="gh-12",
            due_at="2024-02-01",
            defer_until="2024-01-20",
            labels=("ui", "auth"),
            ephemeral=True,
            parent_id="bd-1",
            blocked_by_ids=("bd-2", "bd-3"),
        )

        args = bd_commands.create(fields)

        assert args == [
            "create",
            "--title",
            "Fix login",
            "--description",
            "Steps:\n1. open",
            "--priority",
            "1",
            "--type",
            "bug",
            "--assignee",
            "ana",
            "--estimate",
            "30",
            "--acceptance",
            "works",
            "--design",
            "simple",
            "--notes",
            "n",
            "--external-ref",
            "gh-12",
            "--due",
            "2024-02-01",
            "--defer",
            "2024-01-20",
            "--labels",
            "ui,auth",
            "--ephemeral",
            "--deps",
            "parent-child:bd-1,blocks:bd-2,blocks:bd-3",
            "--json",
        ]

    def test_title_required(self) -> None:
        with pytest.raises(InvalidInputError, match="Title is required"):
            bd_commands.create(IssueFields(title="   "))

    def test_flag_like_description_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            bd_commands.create(IssueFields(title="ok", description="--status=closed"))

        assert exc_info.value.field == "description"

    @pytest.mark.parametrize("priority", [-1, 5])
    def test_priority_range(self, priority: int) -> None:
        with pytest.raises(InvalidInputError, match="priority"):
            bd_commands.create(IssueFields(title="ok", priority=priority))

    def test_parent_id_validated(self) -> None:
        with pytest.raises(InvalidInputError):
            bd_commands.create(IssueFields(title="ok", parent_id="bd-1;rm"))

    def test_nul_bytes_stripped(self) -> None:
        args = bd_commands.create(IssueFields(title="a\0b"))

        assert args[2] == "ab"


class TestUpdate:
    def test_only_provided_fields(self) -> None:
        args = bd_commands.update("bd-7", IssueFields(title="New", priority=0))

        assert args == ["update", "--no-daemon", "--title", "New", "--priority", "0", "--", "bd-7"]

    def test_empty_assignee_clears(self) -> None:
        args = bd_commands.update("bd-7", IssueFields(assignee=""))

        assert args == ["update", "--no-daemon", "--assignee", "", "--", "bd-7"]

    def test_empty_due_is_skipped(self) -> None:
        args = bd_commands.update("bd-7", IssueFields(due_at=""))

        assert "--due" not in args

    def test_pinned_and_template(self) -> None:
        args = bd_commands.update("bd-7", IssueFields(pinned=True, is_template=True))

        assert args == [
            "update",
            "--no-daemon",
            "--pinned",
            "true",
            "--template",
            "true",
            "--",
            "bd-7",
        ]

    def test_invalid_id(self) -> None:
        with pytest.raises(InvalidInputError):
            bd_commands.update("bd 7", IssueFields(title="x"))


def test_set_status() -> None:
    args = bd_commands.set_status("bd-3", "closed")

    assert args == ["update", "--status", "closed", "--", "bd-3"]


def test_label_values_follow_separator() -> None:
    """A label that looks like a flag is still a positional value."""
    assert bd_commands.label("add", "bd-3", "-urgent") == ["label", "add", "--", "bd-3", "-urgent"]


def test_empty_label_rejected() -> None:
    with pytest.raises(InvalidInputError):
        bd_commands.label("remove", "bd-3", "")


class TestDependencies:
    def test_add(self) -> None:
        assert bd_commands.add_dependency("bd-2", "bd-1", "blocks") == [
            "dep",
            "add",
            "--type",
            "blocks",
            "--",
            "bd-2",
            "bd-1",
        ]

    def test_add_rejects_unknown_type(self) -> None:
        with pytest.raises(InvalidInputError, match="Invalid dependency type"):
            bd_commands.add_dependency("bd-2", "bd-1", "related")

    def test_remove(self) -> None:
        args = bd_commands.remove_dependency("bd-2", "bd-1")

        assert args == ["dep", "remove", "--", "bd-2", "bd-1"]


class TestAddComment:
    def test_text_is_positional(self) -> None:
        args = bd_commands.add_comment("bd-2", "-- looks like a flag\nsecond line", "ana")

        assert args == [
            "comments",
            "add",
            "--author",
            "ana",
            "--",
            "bd-2",
            "-- looks like a flag\nsecond line",
        ]

    def test_flag_like_author_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            bd_commands.add_comment("bd-2", "hi", "--json")

        assert exc_info.value.field == "author"


@pytest.mark.parametrize(("requested", "expected"), [(0, "1"), (50, "50"), (5000, "1000")])
def test_daemon_logs_clamps_lines(requested: int, expected: str) -> None:
    assert bd_commands.daemon_logs(requested) == ["daemons", "logs", ".", "-n", expected]
