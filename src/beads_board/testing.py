"""Test factories for building board backends on fakes.

Used by the unit tests and by hosts that want an in-memory board for demos.
"""

from dataclasses import dataclass
from pathlib import Path

from beads_board.adapter import DaemonBeadsAdapter
from beads_board.gateway.bd.fake import FakeBdExecutor
from beads_board.gateway.board_events.fake import FakeBoardEvents
from beads_board.gateway.scheduler.fake import FakeScheduler
from beads_board.gateway.time.fake import FakeTime


@dataclass(frozen=True)
class AdapterForTest:
    """A DaemonBeadsAdapter together with the fakes it was built on."""

    adapter: DaemonBeadsAdapter
    bd: FakeBdExecutor
    time: FakeTime
    scheduler: FakeScheduler
    events: FakeBoardEvents
    workspace: Path


def adapter_for_test(
    workspace: Path | None = None,
    *,
    bd: FakeBdExecutor | None = None,
    time: FakeTime | None = None,
    max_issues: int = 1000,
) -> AdapterForTest:
    """Create an adapter with fake bd, clock, scheduler and events.

    Args:
        workspace: Workspace root passed as bd's cwd (defaults to Path("/fake/workspace"))
        bd: Pre-configured FakeBdExecutor. If None, creates one on the same FakeTime.
        time: FakeTime shared by the adapter and the default FakeBdExecutor
        max_issues: Upper bound for load_board()
    """
    if workspace is None:
        workspace = Path("/fake/workspace")
    if time is None:
        time = FakeTime()
    if bd is None:
        bd = FakeBdExecutor(time=time)
    scheduler = FakeScheduler()
    events = FakeBoardEvents()
    adapter = DaemonBeadsAdapter(
        executor=bd,
        workspace_root=workspace,
        time=time,
        scheduler=scheduler,
        events=events,
        max_issues=max_issues,
    )
    return AdapterForTest(
        adapter=adapter,
        bd=bd,
        time=time,
        scheduler=scheduler,
        events=events,
        workspace=workspace,
    )
