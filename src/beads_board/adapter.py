"""Board backend that talks to the beads daemon through the bd CLI.

Every operation builds argv with bd_commands, runs it through a BdExecutor
and maps the JSON into typed records. Batched `bd show` enrichment is gated
by a CircuitBreaker, and column pagination is served from a
ColumnDataCache that every successful mutation clears.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from beads_board import bd_commands
from beads_board.backend import BoardBackend
from beads_board.circuit_breaker import CircuitBreaker, CircuitDiagnostics
from beads_board.column_cache import ColumnDataCache
from beads_board.dependency_graph import assemble_cards, assemble_detail_card, minimal_card
from beads_board.gateway.bd.abc import DEFAULT_TIMEOUT_SECONDS, BdExecutor
from beads_board.gateway.bd.types import BdOutput
from beads_board.gateway.board_events.abc import BoardEvents
from beads_board.gateway.scheduler.abc import Scheduler
from beads_board.gateway.time.abc import Time
from beads_board.non_ideal_state import (
    BoardError,
    CommandFailed,
    DaemonNotRunning,
    ExecError,
    InvalidInput,
    IssueNotFound,
    MalformedResponse,
    SpawnFailed,
)
from beads_board.parsing import (
    MalformedPayloadError,
    parse_comments,
    parse_created_id,
    parse_daemon_info,
    parse_issue,
    parse_issue_list,
)
from beads_board.table import filter_and_sort
from beads_board.types import (
    BOARD_COLUMNS,
    COLUMN_KEYS,
    ISSUE_STATUSES,
    BoardCard,
    BoardData,
    CardPage,
    Comment,
    CreatedIssue,
    DaemonInfo,
    IssueDetail,
    IssueFields,
    IssueRecord,
    SortSpec,
    TableFilters,
    TablePage,
)
from beads_board.validation import InvalidInputError, validate_issue_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_ISSUES = 1000
DEFAULT_MINIMAL_LIMIT = 5000
RECENT_SELF_SAVE_SECONDS = 5.0

T = TypeVar("T")


def _build(builder: Callable[..., T], *args: object) -> T | InvalidInput:
    try:
        return builder(*args)
    except InvalidInputError as e:
        return InvalidInput(field=e.field, message=e.message)


def _valid_issue_ids(issue_ids: Iterable[str]) -> list[str]:
    valid: list[str] = []
    for issue_id in issue_ids:
        try:
            valid.append(validate_issue_id(issue_id))
        except InvalidInputError as e:
            logger.warning("Skipping issue with invalid id %r: %s", issue_id, e.message)
    return valid


def _command(args: list[str]) -> str:
    return " ".join(["bd", *args])


def _is_not_found(error: BoardError) -> bool:
    return isinstance(error, CommandFailed) and "no issue found" in error.output.lower()


class DaemonBeadsAdapter(BoardBackend):
    """BoardBackend over `bd` with a running daemon.

    Thread-safe: circuit breaker and column cache keep their own locks, and
    the adapter's own mutable fields are guarded by a lock.
    """

    def __init__(
        self,
        *,
        executor: BdExecutor,
        workspace_root: Path,
        time: Time,
        scheduler: Scheduler,
        events: BoardEvents,
        max_issues: int = DEFAULT_MAX_ISSUES,
        command_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Create an adapter bound to one workspace.

        Args:
            executor: Runs bd
            workspace_root: Directory containing .beads/, used as bd's cwd
            time: Clock for the breaker, cache and self-save tracking
            scheduler: Schedules circuit recovery probes
            events: Receives breaker alerts, refresh requests and truncation notices
            max_issues: Upper bound on issues loaded by load_board()
            command_timeout_seconds: Timeout for every bd invocation
        """
        self._executor = executor
        self._time = time
        self._events = events
        self._max_issues = max_issues
        self._timeout_seconds = command_timeout_seconds

        self._lock = threading.Lock()
        self._workspace_root = workspace_root
        self._last_mutation: float | None = None
        self._last_interaction: float | None = None

        self._breaker = CircuitBreaker(
            time=time,
            scheduler=scheduler,
            events=events,
            on_recovery_probe=self._run_recovery_probe,
        )
        self._cache = ColumnDataCache(time=time)

    @property
    def workspace_root(self) -> Path:
        with self._lock:
            return self._workspace_root

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def cache(self) -> ColumnDataCache:
        return self._cache

    # ------------------------------------------------------------------
    # Connection and lifecycle
    # ------------------------------------------------------------------

    def ensure_connected(self) -> DaemonInfo | BoardError:
        args = bd_commands.info()
        result = self._run(args)
        if not isinstance(result, BdOutput):
            return result
        workspace = str(self.workspace_root)
        info = parse_daemon_info(result.payload, workspace)
        if not info.daemon_connected:
            logger.error("Beads daemon is not running for %s", workspace)
            return DaemonNotRunning(
                workspace=workspace,
                message=(
                    "Beads daemon is not running. "
                    "Please start the daemon with: bd daemons start"
                ),
            )
        if info.daemon_status != "healthy":
            logger.warning("Daemon status is %s", info.daemon_status)
        logger.info("Connected to beads daemon in %s", workspace)
        return info

    def is_recent_self_save(self) -> bool:
        now = self._time.monotonic()
        with self._lock:
            touched = [t for t in (self._last_mutation, self._last_interaction) if t is not None]
        return any(now - t < RECENT_SELF_SAVE_SECONDS for t in touched)

    def set_workspace_root(self, workspace_root: Path) -> None:
        with self._lock:
            previous = self._workspace_root
            self._workspace_root = workspace_root
        self._breaker.reset()
        self._cache.invalidate_all()
        logger.info(
            "Workspace changed from %s to %s; circuit and cache reset", previous, workspace_root
        )

    def force_reset_circuit(self) -> None:
        logger.warning("Circuit breaker: Manual reset")
        self._breaker.reset()
        self._events.refresh_requested()

    def circuit_diagnostics(self) -> CircuitDiagnostics:
        return self._breaker.diagnostics()

    def dispose(self) -> None:
        self._breaker.dispose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_board(self) -> BoardData | BoardError:
        self._track_interaction()
        # One extra row tells us whether the board was truncated
        issues = self._list(bd_commands.list_all(self._max_issues + 1))
        if not isinstance(issues, list):
            return issues
        if not issues:
            return BoardData(columns=BOARD_COLUMNS, cards=(), has_more=False)

        has_more = len(issues) > self._max_issues
        if has_more:
            issues = issues[: self._max_issues]
            logger.info(
                "Loaded %d issues (more available). Increase max_issues to show more.",
                self._max_issues,
            )
            self._events.load_truncated(self._max_issues)

        detailed = self._enrich(issues)
        if not isinstance(detailed, list):
            return detailed
        return BoardData(
            columns=BOARD_COLUMNS,
            cards=tuple(assemble_cards(detailed)),
            has_more=has_more,
        )

    def load_board_minimal(
        self, limit: int = DEFAULT_MINIMAL_LIMIT
    ) -> list[BoardCard] | BoardError:
        self._track_interaction()
        if limit < 1:
            return InvalidInput(field="limit", message="limit must be at least 1")
        issues = self._list(bd_commands.list_all(limit))
        if not isinstance(issues, list):
            return issues
        logger.debug("Minimal board load returned %d issues", len(issues))
        return [minimal_card(issue) for issue in issues]

    def get_board_metadata(self) -> BoardData:
        return BoardData(columns=BOARD_COLUMNS, cards=(), has_more=False)

    def get_column_page(self, column_key: str, offset: int, limit: int) -> CardPage | BoardError:
        self._track_interaction()
        if column_key not in COLUMN_KEYS:
            return InvalidInput(field="column", message=f"Unknown column: {column_key}")
        if offset < 0 or limit < 0:
            return InvalidInput(field="offset", message="offset and limit must not be negative")

        def fetch(count: int) -> list[IssueRecord] | BoardError:
            return self._list(bd_commands.list_column(column_key, count))

        rows = self._cache.get_page(column_key, offset, limit, fetch)
        if not isinstance(rows, list):
            return rows
        if not rows:
            return CardPage(column_key=column_key, offset=offset, limit=limit, cards=())

        detailed = self._enrich(rows)
        if not isinstance(detailed, list):
            return detailed
        cards = assemble_cards(detailed, include_incoming=True)
        return CardPage(column_key=column_key, offset=offset, limit=limit, cards=tuple(cards))

    def get_column_count(self, column_key: str) -> int | BoardError:
        self._track_interaction()
        if column_key not in COLUMN_KEYS:
            return InvalidInput(field="column", message=f"Unknown column: {column_key}")

        result = self._run(bd_commands.stats())
        if isinstance(result, BdOutput):
            summary = result.payload.get("summary") if isinstance(result.payload, dict) else None
            count = summary.get(f"{column_key}_issues") if isinstance(summary, dict) else None
            if isinstance(count, int):
                return count
            logger.debug("bd stats returned no count for %s, falling back to list", column_key)
        else:
            logger.debug("bd stats failed (%s), falling back to list", result.message)

        issues = self._list(bd_commands.list_column(column_key, 0))
        if not isinstance(issues, list):
            return issues
        return len(issues)

    def get_issue_detail(self, issue_id: str) -> IssueDetail | BoardError:
        self._track_interaction()
        shown = self._show_one(issue_id)
        if not isinstance(shown, tuple):
            return shown
        issue, raw = shown
        try:
            comments = parse_comments(raw.get("comments"), issue.id)
        except MalformedPayloadError as e:
            return MalformedResponse(command="bd show", message=str(e))
        return IssueDetail(card=assemble_detail_card(issue), comments=comments)

    def get_issue_comments(self, issue_id: str) -> list[Comment] | BoardError:
        self._track_interaction()
        shown = self._show_one(issue_id)
        if not isinstance(shown, tuple):
            return shown
        issue, raw = shown
        try:
            return list(parse_comments(raw.get("comments"), issue.id))
        except MalformedPayloadError as e:
            return MalformedResponse(command="bd show", message=str(e))

    def get_table_data(
        self,
        filters: TableFilters,
        sorting: Sequence[SortSpec],
        offset: int,
        limit: int,
    ) -> TablePage | BoardError:
        if offset < 0 or limit < 0:
            return InvalidInput(field="offset", message="offset and limit must not be negative")
        board = self.load_board()
        if not isinstance(board, BoardData):
            return board
        cards = filter_and_sort(board.cards, filters, sorting)
        logger.debug("Table view: %d of %d cards match", len(cards), len(board.cards))
        return TablePage(cards=tuple(cards[offset : offset + limit]), total_count=len(cards))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_issue(self, fields: IssueFields) -> CreatedIssue | BoardError:
        if fields.status is not None and fields.status not in ISSUE_STATUSES:
            return InvalidInput(field="status", message=f"Invalid status: {fields.status}")
        args = _build(bd_commands.create, fields)
        if isinstance(args, InvalidInput):
            return args

        result = self._run(args)
        if not isinstance(result, BdOutput):
            return result
        self._track_mutation()
        try:
            issue_id = parse_created_id(result.payload)
        except MalformedPayloadError as e:
            return MalformedResponse(command=_command(args), message=str(e))

        # bd create always starts issues as open, without pinned/template
        if fields.status is not None and fields.status != "open":
            error = self.set_status(issue_id, fields.status)
            if error is not None:
                return error
        if fields.pinned or fields.is_template:
            flags = IssueFields(pinned=fields.pinned, is_template=fields.is_template)
            error = self._mutate(issue_id, bd_commands.update, issue_id, flags)
            if error is not None:
                return error

        for child_id in fields.children_ids:
            error = self.add_dependency(child_id, issue_id, "parent-child")
            if error is not None:
                logger.warning("Failed to set parent on child %s: %s", child_id, error.message)

        return CreatedIssue(id=issue_id)

    def update_issue(self, issue_id: str, fields: IssueFields) -> BoardError | None:
        if fields.status is not None and fields.status not in ISSUE_STATUSES:
            return InvalidInput(field="status", message=f"Invalid status: {fields.status}")
        return self._mutate(issue_id, bd_commands.update, issue_id, fields)

    def set_status(self, issue_id: str, status: str) -> BoardError | None:
        if status not in ISSUE_STATUSES:
            return InvalidInput(field="status", message=f"Invalid status: {status}")
        return self._mutate(issue_id, bd_commands.set_status, issue_id, status)

    def add_label(self, issue_id: str, label: str) -> BoardError | None:
        return self._mutate(issue_id, bd_commands.label, "add", issue_id, label)

    def remove_label(self, issue_id: str, label: str) -> BoardError | None:
        return self._mutate(issue_id, bd_commands.label, "remove", issue_id, label)

    def add_dependency(
        self, issue_id: str, depends_on_id: str, dependency_type: str = "blocks"
    ) -> BoardError | None:
        return self._mutate(
            issue_id, bd_commands.add_dependency, issue_id, depends_on_id, dependency_type
        )

    def remove_dependency(self, issue_id: str, depends_on_id: str) -> BoardError | None:
        return self._mutate(issue_id, bd_commands.remove_dependency, issue_id, depends_on_id)

    def add_comment(self, issue_id: str, text: str, author: str) -> BoardError | None:
        if not text.strip():
            return InvalidInput(field="text", message="Comment text must not be empty")
        return self._mutate(issue_id, bd_commands.add_comment, issue_id, text, author)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, args: list[str]) -> BdOutput | ExecError:
        return self._executor.execute(
            args, cwd=self.workspace_root, timeout_seconds=self._timeout_seconds
        )

    def _mutate(
        self, issue_id: str, builder: Callable[..., list[str]], *builder_args: object
    ) -> BoardError | None:
        """Run a write. The cache is cleared only once bd reports success."""
        args = _build(builder, *builder_args)
        if isinstance(args, InvalidInput):
            return args
        result = self._run(args)
        if not isinstance(result, BdOutput):
            if _is_not_found(result):
                return IssueNotFound(issue_id=issue_id, message=result.message)
            return result
        self._track_mutation()
        return None

    def _list(self, args: list[str]) -> list[IssueRecord] | BoardError:
        result = self._run(args)
        if not isinstance(result, BdOutput):
            return result
        try:
            return parse_issue_list(result.payload, command=_command(args))
        except MalformedPayloadError as e:
            return MalformedResponse(command=_command(args), message=str(e))

    def _show(self, issue_ids: list[str]) -> list[IssueRecord] | BoardError:
        args = _build(bd_commands.show, issue_ids)
        if isinstance(args, InvalidInput):
            return args
        return self._list(args)

    def _show_one(self, issue_id: str) -> tuple[IssueRecord, dict] | BoardError:
        """Show a single issue, returning the record and its raw JSON object."""
        args = _build(bd_commands.show, [issue_id])
        if isinstance(args, InvalidInput):
            return args
        result = self._run(args)
        if not isinstance(result, BdOutput):
            if _is_not_found(result):
                return IssueNotFound(issue_id=issue_id, message=f"Issue not found: {issue_id}")
            return result
        payload = result.payload
        if not isinstance(payload, list) or not payload:
            return IssueNotFound(issue_id=issue_id, message=f"Issue not found: {issue_id}")
        raw = payload[0]
        try:
            return parse_issue(raw), raw
        except MalformedPayloadError as e:
            return MalformedResponse(command=_command(args), message=str(e))

    def _enrich(self, issues: list[IssueRecord]) -> list[IssueRecord] | BoardError:
        """Replace list records with `bd show` records, which carry relationships.

        Runs one gated `bd show` per batch. A failed batch is retried one issue
        at a time in parallel; issues that still fail are dropped (usually
        deleted in the meantime), and the batch is scored by how many failed.
        Ids that bd itself returned but that fail validation are skipped before
        any batch is built and are never scored on the breaker.
        """
        issue_ids = _valid_issue_ids(issue.id for issue in issues)
        detailed: list[IssueRecord] = []
        for start in range(0, len(issue_ids), bd_commands.SHOW_BATCH_SIZE):
            batch = issue_ids[start : start + bd_commands.SHOW_BATCH_SIZE]

            rejected = self._breaker.allow_request()
            if rejected is not None:
                logger.warning("Skipping bd show batch: %s", rejected.message)
                return rejected

            result = self._show(batch)
            if isinstance(result, list):
                detailed.extend(result)
                self._breaker.record_success()
                continue
            if isinstance(result, SpawnFailed):
                self._breaker.record_failure()
                return result

            logger.warning(
                "Batch show failed, retrying %d issues in parallel: %s", len(batch), result.message
            )
            failed = 0
            for issue_id, outcome in zip(batch, self._show_individually(batch), strict=True):
                if isinstance(outcome, list) and outcome:
                    detailed.extend(outcome)
                else:
                    failed += 1
                    reason = outcome.message if not isinstance(outcome, list) else "empty result"
                    logger.debug("Skipping missing issue %s: %s", issue_id, reason)
            self._breaker.record_batch_outcome(attempted=len(batch), failed=failed)
        return detailed

    def _show_individually(self, issue_ids: list[str]) -> list[list[IssueRecord] | BoardError]:
        with ThreadPoolExecutor(max_workers=len(issue_ids)) as pool:
            return list(pool.map(lambda issue_id: self._show([issue_id]), issue_ids))

    def _track_interaction(self) -> None:
        with self._lock:
            self._last_interaction = self._time.monotonic()

    def _track_mutation(self) -> None:
        with self._lock:
            self._last_mutation = self._time.monotonic()
        self._cache.invalidate_all()

    def _run_recovery_probe(self) -> None:
        self._events.refresh_requested()
        result = self.load_board()
        if isinstance(result, BoardData):
            logger.info("Automatic recovery probe loaded %d cards", len(result.cards))
        else:
            logger.warning("Automatic recovery probe failed: %s", result.message)
