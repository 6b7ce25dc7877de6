"""Tests for DaemonBeadsAdapter read operations against FakeBdExecutor."""

from pathlib import Path

from beads_board.gateway.bd.fake import FakeBdExecutor
from beads_board.gateway.time.fake import FakeTime
from beads_board.non_ideal_state import (
    CommandFailed,
    DaemonNotRunning,
    InvalidInput,
    IssueNotFound,
)
from beads_board.testing import adapter_for_test
from beads_board.types import (
    BOARD_COLUMNS,
    BoardData,
    CardPage,
    DaemonInfo,
    IssueDetail,
    SortSpec,
    TableFilters,
    TablePage,
)


def _ids(items: object) -> list[str]:
    return [item.id for item in items]  # type: ignore[attr-defined]


class TestEnsureConnected:
    def test_connected(self) -> None:
        t = adapter_for_test()

        result = t.adapter.ensure_connected()

        assert isinstance(result, DaemonInfo)
        assert result.daemon_status == "healthy"
        assert t.bd.calls == [["info", "--json"]]

    def test_daemon_not_running(self) -> None:
        time = FakeTime()
        t = adapter_for_test(bd=FakeBdExecutor(time=time, daemon_connected=False), time=time)

        result = t.adapter.ensure_connected()

        assert isinstance(result, DaemonNotRunning)
        assert "bd daemons start" in result.message
        assert result.remedy == "Start the daemon with: bd daemons start"

    def test_uses_workspace_as_cwd(self) -> None:
        t = adapter_for_test(Path("/repo/one"))

        t.adapter.ensure_connected()

        assert t.bd.cwds == [Path("/repo/one")]


class TestLoadBoard:
    def test_empty_board(self) -> None:
        t = adapter_for_test()

        board = t.adapter.load_board()

        assert board == BoardData(columns=BOARD_COLUMNS, cards=(), has_more=False)
        assert t.bd.calls_for("show") == []

    def test_blocks_relationship(self) -> None:
        t = adapter_for_test()
        a = t.bd.add_issue(title="A")
        b = t.bd.add_issue(title="B")
        t.bd.add_relationship(b, a, "blocks")

        board = t.adapter.load_board()

        assert isinstance(board, BoardData)
        cards = {card.id: card for card in board.cards}
        assert _ids(cards[a].blocks) == [b]
        assert _ids(cards[b].blocked_by) == [a]
        assert cards[a].is_ready is True
        assert cards[b].is_ready is False
        assert cards[b].column_key == "blocked"

    def test_parent_child(self) -> None:
        t = adapter_for_test()
        epic = t.bd.add_issue(title="Epic", issue_type="epic")
        child = t.bd.add_issue(title="Child")
        t.bd.add_relationship(child, epic, "parent-child")

        board = t.adapter.load_board()

        assert isinstance(board, BoardData)
        cards = {card.id: card for card in board.cards}
        assert _ids(cards[epic].children) == [child]
        assert cards[child].parent is not None
        assert cards[child].parent.id == epic
        assert cards[child].parent.title == "Epic"

    def test_includes_closed_issues(self) -> None:
        t = adapter_for_test()
        t.bd.add_issue(title="Done", status="closed")

        board = t.adapter.load_board()

        assert isinstance(board, BoardData)
        assert [card.status for card in board.cards] == ["closed"]
        assert t.bd.calls[0] == ["list", "--json", "--all", "--limit", "1001"]

    def test_truncates_at_max_issues(self) -> None:
        t = adapter_for_test(max_issues=2)
        for n in range(3):
            t.bd.add_issue(title=f"Issue {n}")

        board = t.adapter.load_board()

        assert isinstance(board, BoardData)
        assert len(board.cards) == 2
        assert board.has_more is True
        assert t.events.truncations == [2]

    def test_shows_in_batches_of_fifty(self) -> None:
        t = adapter_for_test()
        for n in range(120):
            t.bd.add_issue(title=f"Issue {n}")

        board = t.adapter.load_board()

        assert isinstance(board, BoardData)
        assert len(board.cards) == 120
        batch_sizes = [len(call) - 3 for call in t.bd.calls_for("show")]
        assert batch_sizes == [50, 50, 20]

    def test_list_failure_is_returned(self) -> None:
        t = adapter_for_test()
        error = CommandFailed(command="bd list", exit_code=1, output="db locked", message="failed")
        t.bd.fail_when(lambda args: args[0] == "list", error)

        assert t.adapter.load_board() is error


class TestLoadBoardMinimal:
    def test_readiness_from_list_counts(self) -> None:
        t = adapter_for_test()
        a = t.bd.add_issue(title="A")
        b = t.bd.add_issue(title="B")
        t.bd.add_relationship(b, a, "blocks")

        cards = t.adapter.load_board_minimal(limit=10)

        assert isinstance(cards, list)
        assert [card.is_ready for card in cards] == [True, False]
        assert cards[1].blocked_by == ()
        assert t.bd.calls_for("show") == []

    def test_limit_must_be_positive(self) -> None:
        t = adapter_for_test()

        result = t.adapter.load_board_minimal(limit=0)

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []


def test_board_metadata_has_fixed_columns() -> None:
    t = adapter_for_test()

    metadata = t.adapter.get_board_metadata()

    assert [column.key for column in metadata.columns] == [
        "ready",
        "in_progress",
        "blocked",
        "closed",
    ]
    assert t.bd.calls == []


class TestColumnPages:
    def test_pages_share_one_list_call(self) -> None:
        t = adapter_for_test()
        for n in range(5):
            t.bd.add_issue(title=f"Issue {n}")

        first = t.adapter.get_column_page("ready", 0, 2)
        second = t.adapter.get_column_page("ready", 2, 2)

        assert isinstance(first, CardPage)
        assert isinstance(second, CardPage)
        assert _ids(first.cards) == ["bd-1", "bd-2"]
        assert _ids(second.cards) == ["bd-3", "bd-4"]
        assert t.bd.calls_for("ready") == [["ready", "--json", "--limit", "200"]]

    def test_status_column_uses_list_filter(self) -> None:
        t = adapter_for_test()
        t.bd.add_issue(title="Working", status="in_progress")
        t.bd.add_issue(title="Idle")

        page = t.adapter.get_column_page("in_progress", 0, 50)

        assert isinstance(page, CardPage)
        assert _ids(page.cards) == ["bd-1"]
        assert t.bd.calls_for("list")[0][1] == "--status=in_progress"

    def test_blocker_outside_page_is_kept(self) -> None:
        t = adapter_for_test()
        blocker = t.bd.add_issue(title="Blocker")
        working = t.bd.add_issue(title="Working", status="in_progress")
        t.bd.add_relationship(working, blocker, "blocks")

        page = t.adapter.get_column_page("in_progress", 0, 50)

        assert isinstance(page, CardPage)
        assert _ids(page.cards[0].blocked_by) == [blocker]

    def test_empty_page_skips_show(self) -> None:
        t = adapter_for_test()

        page = t.adapter.get_column_page("closed", 0, 50)

        assert page == CardPage(column_key="closed", offset=0, limit=50, cards=())
        assert t.bd.calls_for("show") == []

    def test_unknown_column(self) -> None:
        t = adapter_for_test()

        result = t.adapter.get_column_page("backlog", 0, 50)

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []

    def test_negative_offset(self) -> None:
        t = adapter_for_test()

        assert isinstance(t.adapter.get_column_page("ready", -1, 50), InvalidInput)


class TestColumnCount:
    def test_from_stats(self) -> None:
        t = adapter_for_test()
        t.bd.add_issue(title="A", status="closed")
        t.bd.add_issue(title="B", status="closed")
        t.bd.add_issue(title="C")

        assert t.adapter.get_column_count("closed") == 2
        assert t.adapter.get_column_count("ready") == 1
        assert t.bd.calls_for("list") == []

    def test_falls_back_to_list_without_stats(self) -> None:
        time = FakeTime()
        bd = FakeBdExecutor(time=time, stats_available=False)
        t = adapter_for_test(bd=bd, time=time)
        t.bd.add_issue(title="A", status="in_progress")
        t.bd.add_issue(title="B", status="in_progress")

        assert t.adapter.get_column_count("in_progress") == 2
        assert t.bd.calls_for("list") == [
            ["list", "--status=in_progress", "--json", "--limit", "0"]
        ]


class TestIssueDetail:
    def test_relationships_from_both_sides(self) -> None:
        t = adapter_for_test()
        a = t.bd.add_issue(title="A")
        b = t.bd.add_issue(title="B")
        t.bd.add_relationship(b, a, "blocks")

        detail_a = t.adapter.get_issue_detail(a)
        detail_b = t.adapter.get_issue_detail(b)

        assert isinstance(detail_a, IssueDetail)
        assert isinstance(detail_b, IssueDetail)
        assert _ids(detail_a.card.blocks) == [b]
        assert _ids(detail_b.card.blocked_by) == [a]
        assert detail_b.card.is_ready is False

    def test_comments(self) -> None:
        t = adapter_for_test()
        issue_id = t.bd.add_issue(title="A")
        t.adapter.add_comment(issue_id, "First look", "ana")

        detail = t.adapter.get_issue_detail(issue_id)
        comments = t.adapter.get_issue_comments(issue_id)

        assert isinstance(detail, IssueDetail)
        assert [(c.author, c.text) for c in detail.comments] == [("ana", "First look")]
        assert isinstance(comments, list)
        assert comments[0].issue_id == issue_id

    def test_not_found(self) -> None:
        t = adapter_for_test()

        result = t.adapter.get_issue_detail("bd-99")

        assert isinstance(result, IssueNotFound)
        assert result.issue_id == "bd-99"

    def test_invalid_id_never_spawns(self) -> None:
        t = adapter_for_test()

        result = t.adapter.get_issue_detail("bd-1; rm -rf /")

        assert isinstance(result, InvalidInput)
        assert t.bd.calls == []


class TestTableData:
    def test_filter_sort_and_page(self) -> None:
        t = adapter_for_test()
        t.bd.add_issue(title="Low", priority=3)
        t.bd.add_issue(title="High", priority=0)
        t.bd.add_issue(title="Done", priority=1, status="closed")
        t.bd.add_issue(title="Mid", priority=2)

        page = t.adapter.get_table_data(
            TableFilters(status="not_closed"),
            [SortSpec(key="priority", descending=False)],
            offset=1,
            limit=1,
        )

        assert isinstance(page, TablePage)
        assert page.total_count == 3
        assert [card.issue.title for card in page.cards] == ["Mid"]

    def test_negative_limit(self) -> None:
        t = adapter_for_test()

        result = t.adapter.get_table_data(TableFilters(), [], offset=0, limit=-1)

        assert isinstance(result, InvalidInput)
