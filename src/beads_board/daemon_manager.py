"""Lifecycle operations for the beads daemon of one workspace."""

import logging
from pathlib import Path
from typing import Any

from beads_board import bd_commands
from beads_board.gateway.bd.abc import DEFAULT_TIMEOUT_SECONDS, BdExecutor
from beads_board.gateway.bd.types import BdOutput
from beads_board.non_ideal_state import ExecError, MalformedResponse
from beads_board.types import DaemonHealth, DaemonStatus, RunningDaemon

logger = logging.getLogger(__name__)

DEFAULT_LOG_LINES = 50


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _count(report: dict[str, Any], key: str) -> int:
    entries = report.get(key)
    return len(entries) if isinstance(entries, list) else 0


class DaemonManager:
    def __init__(
        self,
        *,
        executor: BdExecutor,
        workspace_root: Path,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._executor = executor
        self._workspace_root = workspace_root
        self._timeout_seconds = timeout_seconds

    def get_status(self) -> DaemonStatus:
        """Status of this workspace's daemon. Failures are reported in `error`."""
        workspace = str(self._workspace_root)
        result = self._run(bd_commands.info())
        if not isinstance(result, BdOutput):
            return DaemonStatus(
                running=False, healthy=False, pid=None, workspace=workspace, error=result.message
            )
        payload = result.payload if isinstance(result.payload, dict) else {}
        running = payload.get("daemon_connected") is True
        pid = _int_or_none(payload.get("daemon_pid", payload.get("pid")))
        return DaemonStatus(
            running=running,
            healthy=running and payload.get("daemon_status", "healthy") == "healthy",
            pid=pid,
            workspace=workspace,
            error=None,
        )

    def list_all_daemons(self) -> list[RunningDaemon] | ExecError | MalformedResponse:
        """Every running daemon across workspaces."""
        args = bd_commands.daemons("list")
        result = self._run(args)
        if not isinstance(result, BdOutput):
            return result
        payload = result.payload
        if payload is None:
            return []
        if isinstance(payload, dict):
            payload = payload.get("daemons")
        if not isinstance(payload, list):
            return MalformedResponse(
                command=" ".join(["bd", *args]), message="Expected a list of daemons"
            )
        return [
            RunningDaemon(
                workspace=str(entry.get("workspace") or ""),
                pid=_int_or_none(entry.get("pid")),
                version=str(entry.get("version") or ""),
                socket=str(entry.get("socket") or ""),
            )
            for entry in payload
            if isinstance(entry, dict)
        ]

    def check_health(self) -> DaemonHealth:
        result = self._run(bd_commands.daemons("health"))
        if not isinstance(result, BdOutput):
            return DaemonHealth(healthy=False, issues=(result.message,))
        report = result.payload
        if not isinstance(report, dict):
            return DaemonHealth(healthy=True, issues=())

        issues: list[str] = []
        dead = _count(report, "dead_processes")
        if dead:
            issues.append(f"{dead} dead process(es) with remaining sockets")
        mismatched = _count(report, "version_mismatches")
        if mismatched:
            issues.append(f"{mismatched} version mismatch(es)")
        unresponsive = _count(report, "unresponsive")
        if unresponsive:
            issues.append(f"{unresponsive} unresponsive daemon(s)")
        return DaemonHealth(healthy=not issues, issues=tuple(issues))

    def restart(self) -> ExecError | None:
        result = self._run(bd_commands.daemons("restart"))
        if not isinstance(result, BdOutput):
            return result
        logger.info("Restarted beads daemon for %s", self._workspace_root)
        return None

    def stop(self) -> ExecError | None:
        result = self._run(bd_commands.daemons("stop"))
        if not isinstance(result, BdOutput):
            return result
        logger.info("Stopped beads daemon for %s", self._workspace_root)
        return None

    def get_logs(self, lines: int = DEFAULT_LOG_LINES) -> str | ExecError:
        """Last `lines` lines of the daemon log. lines is clamped to 1..1000."""
        result = self._run(bd_commands.daemon_logs(lines))
        if not isinstance(result, BdOutput):
            return result
        return result.text

    def _run(self, args: list[str]) -> BdOutput | ExecError:
        return self._executor.execute(
            args, cwd=self._workspace_root, timeout_seconds=self._timeout_seconds
        )
