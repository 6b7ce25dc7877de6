"""Board configuration loaded from a TOML file with environment overrides."""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from beads_board.adapter import DEFAULT_MAX_ISSUES, DaemonBeadsAdapter
from beads_board.backend import BoardBackend
from beads_board.gateway.bd.abc import DEFAULT_TIMEOUT_SECONDS, BdExecutor
from beads_board.gateway.bd.real import MAX_OUTPUT_BYTES, RealBdExecutor
from beads_board.gateway.board_events.abc import BoardEvents
from beads_board.gateway.board_events.real import LoggingBoardEvents
from beads_board.gateway.scheduler.abc import Scheduler
from beads_board.gateway.scheduler.real import ThreadingScheduler
from beads_board.gateway.time.abc import Time
from beads_board.gateway.time.real import RealTime
from beads_board.read_only import ReadOnlyBoardBackend

BACKENDS = ("daemon", "sqlite")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class BoardConfig:
    """In-memory representation of `.beads/board.toml`.

    Example board.toml:
      [board]
      max_issues = 500
      read_only = false
      # Only "daemon" is served by this package
      backend = "daemon"
      bd_path = "/usr/local/bin/bd"
      command_timeout_seconds = 30
      max_output_bytes = 52428800
    """

    max_issues: int = DEFAULT_MAX_ISSUES
    read_only: bool = False
    backend: str = "daemon"
    bd_path: str = "bd"
    command_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_output_bytes: int = MAX_OUTPUT_BYTES


def _positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key} must be a positive integer, got {value!r}") from e
    if number < 1:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    return number


def _positive_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a positive number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key} must be a positive number, got {value!r}") from e
    if number <= 0:
        raise ValueError(f"{key} must be a positive number, got {value!r}")
    return number


def _bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def _backend(key: str, value: Any) -> str:
    text = str(value).strip().lower()
    if text not in BACKENDS:
        raise ValueError(f"{key} must be one of {', '.join(BACKENDS)}, got {value!r}")
    return text


def load_board_config(workspace_root: Path, env: Mapping[str, str] | None = None) -> BoardConfig:
    """Load board settings for a workspace.

    Reads the [board] table of `.beads/board.toml` if present, then applies
    BEADS_BOARD_MAX_ISSUES, BEADS_BOARD_READ_ONLY and BEADS_BOARD_BACKEND
    from the environment.

    Args:
        workspace_root: Directory containing .beads/
        env: Environment to read overrides from (defaults to os.environ)

    Returns:
        BoardConfig with defaults for anything not set

    Raises:
        ValueError: If a setting has an invalid value
    """
    environ = os.environ if env is None else env
    config = BoardConfig()

    cfg_path = workspace_root / ".beads" / "board.toml"
    if cfg_path.exists():
        data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
        board = data.get("board", {})
        if "max_issues" in board:
            config = replace(config, max_issues=_positive_int("max_issues", board["max_issues"]))
        if "read_only" in board:
            config = replace(config, read_only=_bool("read_only", board["read_only"]))
        if "backend" in board:
            config = replace(config, backend=_backend("backend", board["backend"]))
        if "bd_path" in board:
            config = replace(config, bd_path=str(board["bd_path"]))
        if "command_timeout_seconds" in board:
            timeout = _positive_float("command_timeout_seconds", board["command_timeout_seconds"])
            config = replace(config, command_timeout_seconds=timeout)
        if "max_output_bytes" in board:
            limit = _positive_int("max_output_bytes", board["max_output_bytes"])
            config = replace(config, max_output_bytes=limit)

    if "BEADS_BOARD_MAX_ISSUES" in environ:
        value = environ["BEADS_BOARD_MAX_ISSUES"]
        config = replace(config, max_issues=_positive_int("BEADS_BOARD_MAX_ISSUES", value))
    if "BEADS_BOARD_READ_ONLY" in environ:
        value = environ["BEADS_BOARD_READ_ONLY"]
        config = replace(config, read_only=_bool("BEADS_BOARD_READ_ONLY", value))
    if "BEADS_BOARD_BACKEND" in environ:
        value = environ["BEADS_BOARD_BACKEND"]
        config = replace(config, backend=_backend("BEADS_BOARD_BACKEND", value))

    return config


def create_board_backend(
    config: BoardConfig,
    workspace_root: Path,
    *,
    executor: BdExecutor | None = None,
    time: Time | None = None,
    scheduler: Scheduler | None = None,
    events: BoardEvents | None = None,
) -> BoardBackend:
    """Build the backend selected by config.

    Gateways default to the production implementations.

    Raises:
        ValueError: If config selects a backend this package does not provide
    """
    if config.backend != "daemon":
        raise ValueError(
            f"Backend {config.backend!r} is not available in beads-board; "
            "set backend = \"daemon\" or BEADS_BOARD_BACKEND=daemon"
        )

    adapter = DaemonBeadsAdapter(
        executor=(
            executor
            if executor is not None
            else RealBdExecutor(bd_path=config.bd_path, max_output_bytes=config.max_output_bytes)
        ),
        workspace_root=workspace_root,
        time=time if time is not None else RealTime(),
        scheduler=scheduler if scheduler is not None else ThreadingScheduler(),
        events=events if events is not None else LoggingBoardEvents(),
        max_issues=config.max_issues,
        command_timeout_seconds=config.command_timeout_seconds,
    )
    if config.read_only:
        return ReadOnlyBoardBackend(adapter)
    return adapter
