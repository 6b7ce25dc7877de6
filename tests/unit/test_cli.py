"""Tests for the beads-board CLI using CliRunner and fakes."""

from pathlib import Path

from click.testing import CliRunner

from beads_board.cli.cli import cli
from beads_board.cli.context import BoardContext
from beads_board.daemon_manager import DaemonManager
from beads_board.gateway.bd.fake import FakeBdExecutor
from beads_board.gateway.time.fake import FakeTime
from beads_board.read_only import ReadOnlyBoardBackend
from beads_board.testing import AdapterForTest, adapter_for_test


def _context(t: AdapterForTest, *, read_only: bool = False) -> BoardContext:
    backend = ReadOnlyBoardBackend(t.adapter) if read_only else t.adapter
    return BoardContext(
        workspace_root=t.workspace,
        backend=backend,
        daemon_manager=DaemonManager(executor=t.bd, workspace_root=t.workspace),
    )


def _seeded() -> AdapterForTest:
    t = adapter_for_test()
    a = t.bd.add_issue(title="Design schema", priority=1)
    b = t.bd.add_issue(title="Write migration")
    t.bd.add_relationship(b, a, "blocks")
    t.bd.add_issue(title="Ship it", status="closed")
    return t


class TestBoardCommand:
    def test_lists_cards_by_column(self) -> None:
        t = _seeded()
        runner = CliRunner()

        result = runner.invoke(cli, ["board"], obj=_context(t))

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        ready = next(i for i, line in enumerate(lines) if "Design schema" in line)
        blocked = next(i for i, line in enumerate(lines) if "Write migration" in line)
        closed = next(i for i, line in enumerate(lines) if "Ship it" in line)
        assert ready < blocked < closed
        assert "bd-1" in lines[blocked]

    def test_truncation_note(self) -> None:
        t = adapter_for_test(max_issues=1)
        t.bd.add_issue(title="One")
        t.bd.add_issue(title="Two")

        result = CliRunner().invoke(cli, ["board"], obj=_context(t))

        assert result.exit_code == 0
        assert "Showing the first 1 issues; more are available." in result.output


class TestColumnCommand:
    def test_page(self) -> None:
        t = _seeded()

        result = CliRunner().invoke(cli, ["column", "ready"], obj=_context(t))

        assert result.exit_code == 0
        assert "Design schema" in result.output
        assert "Write migration" not in result.output

    def test_empty_page(self) -> None:
        t = _seeded()

        result = CliRunner().invoke(
            cli, ["column", "in_progress", "--offset", "10"], obj=_context(t)
        )

        assert result.exit_code == 0
        assert "No issues in in_progress at offset 10." in result.output

    def test_unknown_column_is_a_usage_error(self) -> None:
        result = CliRunner().invoke(cli, ["column", "backlog"], obj=_context(_seeded()))

        assert result.exit_code == 2


def test_count_command() -> None:
    result = CliRunner().invoke(cli, ["count", "closed"], obj=_context(_seeded()))

    assert result.exit_code == 0
    assert result.output.strip() == "1"


class TestShowCommand:
    def test_relationships_and_comments(self) -> None:
        t = _seeded()
        t.adapter.add_comment("bd-2", "Waiting on the schema", "ana")

        result = CliRunner().invoke(cli, ["show", "bd-2"], obj=_context(t))

        assert result.exit_code == 0
        assert "bd-2: Write migration" in result.output
        assert "Ready: no" in result.output
        assert "Blocked by: bd-1" in result.output
        assert "Waiting on the schema" in result.output

    def test_not_found(self) -> None:
        result = CliRunner().invoke(cli, ["show", "bd-99"], obj=_context(_seeded()))

        assert result.exit_code == 1
        assert "Error: Issue not found: bd-99" in result.output

    def test_invalid_id(self) -> None:
        t = _seeded()

        result = CliRunner().invoke(cli, ["show", "--", "-rf"], obj=_context(t))

        assert result.exit_code == 1
        assert "cannot start with hyphen" in result.output
        assert t.bd.calls == []


class TestStatusCommand:
    def test_moves_issue(self) -> None:
        t = _seeded()

        result = CliRunner().invoke(cli, ["status", "bd-1", "closed"], obj=_context(t))

        assert result.exit_code == 0
        assert "bd-1 is now closed" in result.output
        assert t.bd.issue("bd-1")["status"] == "closed"

    def test_read_only(self) -> None:
        t = _seeded()

        result = CliRunner().invoke(
            cli, ["status", "bd-1", "closed"], obj=_context(t, read_only=True)
        )

        assert result.exit_code == 1
        assert "read-only mode" in result.output
        assert "Disable read-only mode to make changes." in result.output
        assert t.bd.issue("bd-1")["status"] == "open"


class TestHealthCommand:
    def test_healthy(self) -> None:
        result = CliRunner().invoke(cli, ["health"], obj=_context(_seeded()))

        assert result.exit_code == 0
        assert "running (pid 4242)" in result.output
        assert "closed (0 consecutive failures)" in result.output

    def test_daemon_down(self) -> None:
        time = FakeTime()
        t = adapter_for_test(
            Path("/fake/workspace"), bd=FakeBdExecutor(time=time, daemon_connected=False), time=time
        )

        result = CliRunner().invoke(cli, ["health"], obj=_context(t))

        assert result.exit_code == 1
        assert "not running" in result.output
