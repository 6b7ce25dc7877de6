"""Tests for DaemonBeadsAdapter mutations against FakeBdExecutor."""

from beads_board.non_ideal_state import CommandFailed, InvalidInput, IssueNotFound
from beads_board.testing import adapter_for_test
from beads_board.types import CardPage, CreatedIssue, IssueDetail, IssueFields


def _ids(items: object) -> list[str]:
    return [item.id for item in items]  # type: ignore[attr-defined]


class TestCreateIssue:
    def test_returns_new_id(self) -> None:
        t = adapter_for_test()

        result = t.adapter.create_issue(IssueFields(title="Fix login", priority=1, labels=("ui",)))

        assert result == CreatedIssue(id="bd-1")
        issue = t.bd.issue("bd-1")
        assert issue["title"] == "Fix login"
        assert issue["priority"] == 1
        assert issue["labels"] == ["ui"]

    def test_non_open_status_needs_follow_up_update(self) -> None:
        t = adapter_for_test()

        result = t.adapter.create_issue(IssueFields(title="Started", status="in_progress"))

        assert isinstance(result, CreatedIssue)
        assert t.bd.issue(result.id)["status"] == "in_progress"
        assert t.bd.calls_for("update") == [["update", "--status", "in_progress", "--", "bd-1"]]

    def test_open_status_needs_no_update(self) -> None:
        t = adapter_for_test()

        t.adapter.create_issue(IssueFields(title="New", status="open"))

        assert t.bd.calls_for("update") == []

    def test_pinned_and_template(self) -> None:
        t = adapter_for_test()

        result = t.adapter.create_issue(IssueFields(title="Pinned", pinned=True, is_template=True))

        assert isinstance(result, CreatedIssue)
        assert t.bd.issue(result.id)["pinned"] is True
        assert t.bd.issue(result.id)["is_template"] is True

    def test_parent_and_blockers(self) -> None:
        t = adapter_for_test()
        epic = t.bd.add_issue(title="Epic")
        blocker = t.bd.add_issue(title="Blocker")

        result = t.adapter.create_issue(
            IssueFields(title="Task", parent_id=epic, blocked_by_ids=(blocker,))
        )

        assert isinstance(result, CreatedIssue)
        detail = t.adapter.get_issue_detail(result.id)
        assert isinstance(detail, IssueDetail)
        assert detail.card.parent is not None
        assert detail.card.parent.id == epic
        assert _ids(detail.card.blocked_by) == [blocker]

    def test_children_are_linked(self) -> None:
        t = adapter_for_test()
        child = t.bd.add_issue(title="Child")

        result = t.adapter.create_issue(IssueFields(title="Epic", children_ids=(child,)))

        assert isinstance(result, CreatedIssue)
        assert t.bd.calls_for("dep") == [
            ["dep", "add", "--type", "parent-child", "--", child, result.id]
        ]
        detail = t.adapter.get_issue_detail(child)
        assert isinstance(detail, IssueDetail)
        assert detail.card.parent is not None
        assert detail.card.parent.id == result.id

    def test_failed_child_link_does_not_fail_create(self) -> None:
        t = adapter_for_test()

        result = t.adapter.create_issue(IssueFields(title="Epic", children_ids=("bd-99",)))

        assert result == CreatedIssue(id="bd-1")

    def test_invalid_status_never_spawns(self) -> None:
        t = adapter_for_test()

        result = t.adapter.create_issue(IssueFields(title="x", status="done"))

        assert isinstance(result, InvalidInput)
        assert result.field == "status"
        assert t.bd.calls == []

    def test_flag_like_title_never_spawns(self) -> None:
        t = adapter_for_test()

        result = t.adapter.create_issue(IssueFields(title="--help"))

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []


class TestUpdateIssue:
    def test_updates_only_given_fields(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="Old", priority=3)

        result = t.adapter.update_issue(issue_id, IssueFields(title="New"))

        assert result is None
        assert t.bd.issue(issue_id)["title"] == "New"
        assert t.bd.issue(issue_id)["priority"] == 3

    def test_clear_assignee(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")
        t.adapter.update_issue(issue_id, IssueFields(assignee="ana"))

        t.adapter.update_issue(issue_id, IssueFields(assignee=""))

        assert t.bd.issue(issue_id)["assignee"] is None

    def test_not_found(self) -> None:
        t = adapter_for_test()

        result = t.adapter.update_issue("bd-42", IssueFields(title="x"))

        assert isinstance(result, IssueNotFound)
        assert result.issue_id == "bd-42"


class TestSetStatus:
    def test_close_is_idempotent(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")

        assert t.adapter.set_status(issue_id, "closed") is None
        closed_at = t.bd.issue(issue_id)["closed_at"]
        t.time.advance(10)
        assert t.adapter.set_status(issue_id, "closed") is None

        assert t.bd.issue(issue_id)["status"] == "closed"
        assert t.bd.issue(issue_id)["closed_at"] == closed_at

    def test_reopen_clears_closed_at(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A", status="closed")

        t.adapter.set_status(issue_id, "open")

        assert t.bd.issue(issue_id)["closed_at"] is None

    def test_unknown_status(self) -> None:
        t = adapter_for_test()

        result = t.adapter.set_status("bd-1", "archived")

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []


class TestLabels:
    def test_add_and_remove(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")

        assert t.adapter.add_label(issue_id, "ui") is None
        assert t.adapter.add_label(issue_id, "auth") is None
        assert t.adapter.remove_label(issue_id, "ui") is None

        assert t.bd.issue(issue_id)["labels"] == ["auth"]

    def test_missing_issue(self) -> None:
        t = adapter_for_test()

        result = t.adapter.add_label("bd-7", "ui")

        assert isinstance(result, IssueNotFound)
        assert result.issue_id == "bd-7"


class TestDependencies:
    def test_add_then_remove(self) -> None:
        t = adapter_for_test()
        a = t.bd.add_issue(title="A")
        b = t.bd.add_issue(title="B")

        assert t.adapter.add_dependency(b, a, "blocks") is None
        detail = t.adapter.get_issue_detail(a)
        assert isinstance(detail, IssueDetail)
        assert _ids(detail.card.blocks) == [b]

        assert t.adapter.remove_dependency(b, a) is None
        detail = t.adapter.get_issue_detail(a)
        assert isinstance(detail, IssueDetail)
        assert detail.card.blocks == ()

    def test_unknown_type(self) -> None:
        t = adapter_for_test()

        result = t.adapter.add_dependency("bd-2", "bd-1", "duplicates")

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []


class TestComments:
    def test_multiline_text_is_kept(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")

        assert t.adapter.add_comment(issue_id, "line one\n-- line two", "ana") is None

        comments = t.adapter.get_issue_comments(issue_id)
        assert isinstance(comments, list)
        assert comments[0].text == "line one\n-- line two"

    def test_blank_text(self) -> None:
        t = adapter_for_test()

        result = t.adapter.add_comment("bd-1", "   ", "ana")

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []


class TestCacheInvalidation:
    def test_successful_mutation_clears_cache(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")
        t.adapter.get_column_page("ready", 0, 50)
        assert len(t.adapter.cache) == 1

        t.adapter.set_status(issue_id, "in_progress")

        assert len(t.adapter.cache) == 0
        page = t.adapter.get_column_page("ready", 0, 50)
        assert isinstance(page, CardPage)
        assert page.cards == ()

    def test_failed_mutation_keeps_cache(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")
        t.adapter.get_column_page("ready", 0, 50)
        t.bd.fail_when(
            lambda args: args[0] == "update",
            CommandFailed(command="bd update", exit_code=1, output="locked", message="failed"),
        )

        result = t.adapter.set_status(issue_id, "closed")

        assert isinstance(result, CommandFailed)
        assert len(t.adapter.cache) == 1


class TestRecentSelfSave:
    def test_false_before_any_activity(self) -> None:
        t = adapter_for_test()

        assert t.adapter.is_recent_self_save() is False

    def test_true_within_window_after_mutation(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")

        t.adapter.add_label(issue_id, "ui")
        t.time.advance(4.9)

        assert t.adapter.is_recent_self_save() is True

    def test_false_once_window_has_passed(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")

        t.adapter.add_label(issue_id, "ui")
        t.time.advance(5)

        assert t.adapter.is_recent_self_save() is False
