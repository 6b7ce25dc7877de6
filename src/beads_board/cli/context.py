"""Dependencies shared by CLI commands."""

from dataclasses import dataclass
from pathlib import Path

from beads_board.backend import BoardBackend
from beads_board.config import create_board_backend, load_board_config
from beads_board.daemon_manager import DaemonManager
from beads_board.gateway.bd.real import RealBdExecutor


@dataclass(frozen=True)
class BoardContext:
    """Everything a command needs. Tests build one from fakes and pass it as obj."""

    workspace_root: Path
    backend: BoardBackend
    daemon_manager: DaemonManager


def create_board_context(workspace_root: Path) -> BoardContext:
    """Production context for a workspace.

    Raises:
        ValueError: If the workspace's board configuration is invalid
    """
    config = load_board_config(workspace_root)
    executor = RealBdExecutor(bd_path=config.bd_path, max_output_bytes=config.max_output_bytes)
    return BoardContext(
        workspace_root=workspace_root,
        backend=create_board_backend(config, workspace_root, executor=executor),
        daemon_manager=DaemonManager(
            executor=executor,
            workspace_root=workspace_root,
            timeout_seconds=config.command_timeout_seconds,
        ),
    )
