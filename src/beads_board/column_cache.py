"""Short-lived cache of per-column issue lists for cheap pagination.

One entry per column holds the first N issues of that column in bd order.
Pages inside the entry are sliced in memory; anything outside it triggers a
single larger fetch that replaces the entry. Entries expire after a TTL and
every mutation drops all of them at once.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from beads_board.gateway.time.abc import Time
from beads_board.non_ideal_state import BoardError
from beads_board.types import IssueRecord

logger = logging.getLogger(__name__)

COLUMN_CACHE_TTL_SECONDS = 30.0
COLUMN_CACHE_MAX_SIZE = 1000
COLUMN_PREFETCH_SIZE = 200

ColumnFetcher = Callable[[int], "list[IssueRecord] | BoardError"]


@dataclass(frozen=True)
class ColumnCacheEntry:
    """Ordered column contents as of fetched_at (monotonic seconds).

    complete is True when bd returned fewer rows than were requested, so the
    entry holds the whole column and covers any range.
    """

    column_key: str
    rows: tuple[IssueRecord, ...]
    fetched_at: float
    complete: bool

    def covers(self, end: int) -> bool:
        return self.complete or len(self.rows) >= end


class ColumnDataCache:
    def __init__(
        self,
        *,
        time: Time,
        ttl_seconds: float = COLUMN_CACHE_TTL_SECONDS,
        max_size: int = COLUMN_CACHE_MAX_SIZE,
        prefetch_size: int = COLUMN_PREFETCH_SIZE,
    ) -> None:
        self._time = time
        self._ttl_seconds = ttl_seconds
        self._max_size = max_size
        self._prefetch_size = prefetch_size
        self._lock = threading.Lock()
        self._entries: dict[str, ColumnCacheEntry] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        # Bumped by invalidate_all() so a fetch that started before a
        # mutation never stores its result.
        self._generation = 0

    def fetch_size(self, offset: int, limit: int) -> int:
        """Rows to request from bd on a miss for [offset, offset + limit)."""
        return min(max(offset + limit, self._prefetch_size), self._max_size)

    def lookup(self, column_key: str, offset: int, limit: int) -> list[IssueRecord] | None:
        """Return the page from a live entry, or None on a miss."""
        with self._lock:
            entry = self._live_entry(column_key)
            if entry is None or not entry.covers(offset + limit):
                return None
            return list(entry.rows[offset : offset + limit])

    def get_page(
        self,
        column_key: str,
        offset: int,
        limit: int,
        fetch: ColumnFetcher,
    ) -> list[IssueRecord] | BoardError:
        """Slice a page from the cache, fetching and storing on a miss.

        Concurrent misses for the same column run one fetch; later callers
        wait and are served from the stored entry.

        Args:
            column_key: Board column
            offset: First row of the page
            limit: Page size
            fetch: Called with the row count to request; returns the rows or
                an error. Errors are returned unchanged and nothing is stored.
        """
        page = self.lookup(column_key, offset, limit)
        if page is not None:
            logger.debug("Column cache hit for %s [%d:%d]", column_key, offset, offset + limit)
            return page

        with self._key_lock(column_key):
            page = self.lookup(column_key, offset, limit)
            if page is not None:
                return page

            with self._lock:
                generation = self._generation
            requested = self.fetch_size(offset, limit)
            logger.debug("Column cache miss for %s, fetching %d rows", column_key, requested)
            result = fetch(requested)
            if not isinstance(result, list):
                return result

            entry = ColumnCacheEntry(
                column_key=column_key,
                rows=tuple(result[: self._max_size]),
                fetched_at=self._time.monotonic(),
                complete=len(result) < requested,
            )
            with self._lock:
                if generation == self._generation:
                    self._entries[column_key] = entry
            return list(entry.rows[offset : offset + limit])

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generation += 1
        logger.debug("Column cache invalidated")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live_entry(self, column_key: str) -> ColumnCacheEntry | None:
        entry = self._entries.get(column_key)
        if entry is None:
            return None
        if self._time.monotonic() - entry.fetched_at > self._ttl_seconds:
            del self._entries[column_key]
            return None
        return entry

    def _key_lock(self, column_key: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(column_key, threading.Lock())
