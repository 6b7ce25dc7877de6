"""Production implementation of BdExecutor using subprocess."""

import json
import logging
import os
import queue
import shlex
import subprocess
import threading
import time
from pathlib import Path
from typing import IO

from beads_board.gateway.bd.abc import BdExecutor
from beads_board.gateway.bd.types import BdOutput
from beads_board.non_ideal_state import (
    CommandFailed,
    CommandTimedOut,
    ExecError,
    OutputTooLarge,
    SpawnFailed,
)

logger = logging.getLogger(__name__)

# bd list --limit 10000 produces roughly 8-12MB of JSON
MAX_OUTPUT_BYTES = 50 * 1024 * 1024

_READ_CHUNK_BYTES = 64 * 1024
_TERMINATE_GRACE_SECONDS = 5.0


def _pump(name: str, stream: IO[bytes], chunks: "queue.Queue[tuple[str, bytes | None]]") -> None:
    """Forward chunks from a pipe to the queue; None marks end of stream."""
    try:
        while True:
            chunk = stream.read1(_READ_CHUNK_BYTES)  # type: ignore[attr-defined]
            if not chunk:
                break
            chunks.put((name, chunk))
    except (OSError, ValueError):
        # Pipe closed underneath us after the process was terminated
        pass
    finally:
        chunks.put((name, None))


class RealBdExecutor(BdExecutor):
    """Spawns bd directly (never through a shell) with timeout and output limits."""

    def __init__(self, *, bd_path: str, max_output_bytes: int) -> None:
        """Initialize RealBdExecutor.

        Args:
            bd_path: Executable name or path of the bd binary
            max_output_bytes: Ceiling on combined stdout and stderr
        """
        self._bd_path = bd_path
        self._max_output_bytes = max_output_bytes

    def execute(
        self,
        args: list[str],
        *,
        cwd: Path,
        timeout_seconds: float,
    ) -> BdOutput | ExecError:
        cmd = [self._bd_path, *args]
        command = shlex.join(cmd)

        try:
            process = subprocess.Popen(
                cmd,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                shell=False,
            )
        except OSError as e:
            search_path = os.environ.get("PATH", "")
            logger.error("Command error: %s", e)
            logger.error("Command context: %s (cwd: %s)", command, cwd)
            logger.error("PATH: %s", search_path)
            return SpawnFailed(
                command=command,
                cwd=str(cwd),
                search_path=search_path,
                message=(
                    f"Failed to start bd: {e.strerror or e}. "
                    f"Command: {command} (cwd: {cwd}). PATH: {search_path}"
                ),
            )

        return self._collect(process, command, cwd, timeout_seconds)

    def _collect(
        self,
        process: subprocess.Popen[bytes],
        command: str,
        cwd: Path,
        timeout_seconds: float,
    ) -> BdOutput | ExecError:
        assert process.stdout is not None
        assert process.stderr is not None

        chunks: queue.Queue[tuple[str, bytes | None]] = queue.Queue()
        readers = [
            threading.Thread(target=_pump, args=("stdout", process.stdout, chunks), daemon=True),
            threading.Thread(target=_pump, args=("stderr", process.stderr, chunks), daemon=True),
        ]
        for reader in readers:
            reader.start()

        deadline = time.monotonic() + timeout_seconds
        received: dict[str, list[bytes]] = {"stdout": [], "stderr": []}
        total_bytes = 0
        open_streams = len(readers)

        while open_streams > 0:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return self._timed_out(process, readers, command, timeout_seconds)
            try:
                name, chunk = chunks.get(timeout=remaining)
            except queue.Empty:
                continue
            if chunk is None:
                open_streams -= 1
                continue
            # Checked before appending so an oversized chunk is never retained
            if total_bytes + len(chunk) > self._max_output_bytes:
                self._terminate(process, readers)
                logger.error(
                    "Command exceeded buffer limit (%d bytes): %s", self._max_output_bytes, command
                )
                return OutputTooLarge(
                    command=command,
                    limit_bytes=self._max_output_bytes,
                    message=f"Command output exceeded {self._max_output_bytes} bytes limit",
                )
            total_bytes += len(chunk)
            received[name].append(chunk)

        try:
            exit_code = process.wait(timeout=max(0.0, deadline - time.monotonic()))
        except subprocess.TimeoutExpired:
            return self._timed_out(process, readers, command, timeout_seconds)

        for stream in (process.stdout, process.stderr):
            stream.close()

        stdout = b"".join(received["stdout"]).decode("utf-8", errors="replace")
        stderr = b"".join(received["stderr"]).decode("utf-8", errors="replace")

        if exit_code != 0:
            output = stderr or stdout
            logger.warning("Command context: %s (cwd: %s)", command, cwd)
            logger.warning("Command failed (exit %d): %s", exit_code, output)
            return CommandFailed(
                command=command,
                exit_code=exit_code,
                output=output,
                message=f"bd command failed with exit code {exit_code}: {output.strip()}",
            )

        trimmed = stdout.strip()
        if not trimmed:
            return BdOutput(payload=None)
        try:
            return BdOutput(payload=json.loads(trimmed), text=trimmed)
        except json.JSONDecodeError:
            logger.debug("Non-JSON output: %s", trimmed)
            return BdOutput(payload=None, text=trimmed)

    def _timed_out(
        self,
        process: subprocess.Popen[bytes],
        readers: list[threading.Thread],
        command: str,
        timeout_seconds: float,
    ) -> CommandTimedOut:
        self._terminate(process, readers)
        logger.error("Command timed out after %ss: %s", timeout_seconds, command)
        return CommandTimedOut(
            command=command,
            timeout_seconds=timeout_seconds,
            message=f"Command timed out after {timeout_seconds}s: {command}",
        )

    def _terminate(self, process: subprocess.Popen[bytes], readers: list[threading.Thread]) -> None:
        """SIGTERM, then SIGKILL if the process ignores it; always reaps."""
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=_TERMINATE_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        for reader in readers:
            reader.join(timeout=1.0)
        # A reader still blocked here means a grandchild holds the pipe open;
        # leave that stream to the daemon thread rather than racing its read.
        if not any(reader.is_alive() for reader in readers):
            for stream in (process.stdout, process.stderr):
                if stream is not None:
                    stream.close()
