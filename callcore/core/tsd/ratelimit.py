# callcore/core/tsd/ratelimit.py
"""
Rate limiter

Sliding-window call counter keyed by tool name, owned by the applier.

- Window: the last `window_ms` milliseconds (default 1s), exclusive of its start
- Capacity per tool: maxCallsPerSecond + burstAllowance
- Rejected attempts are NOT recorded
- The table is bounded: stale entries are swept at most once per cleanup
  interval, then the oldest entries are evicted while over capacity
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from ..errors import RateLimitError
from ..types import now_ms
from .models import RateLimitPolicy


logger = logging.getLogger(__name__)

MAX_RATE_LIMIT_ENTRIES = 1000
CLEANUP_INTERVAL_MS = 60_000
WINDOW_MS = 1000


@dataclass
class RateLimitState:
    timestamps: Deque[int] = field(default_factory=deque)
    last_cleanup: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def evict_before(self, window_start: int) -> None:
        ts = self.timestamps
        while ts and ts[0] <= window_start:
            ts.popleft()

    @property
    def newest(self) -> Optional[int]:
        return self.timestamps[-1] if self.timestamps else None


class RateLimiter:
    """
    Bounded per-tool sliding-window limiter.

    Locking: each entry carries its own lock for the read-modify-write of
    its window, so unrelated tools never serialize on each other. The table
    lock only guards entry creation and sweeps.
    """

    def __init__(
        self,
        max_entries: int = MAX_RATE_LIMIT_ENTRIES,
        cleanup_interval_ms: int = CLEANUP_INTERVAL_MS,
        window_ms: int = WINDOW_MS,
        clock: Callable[[], int] = now_ms,
        logger: Optional[logging.Logger] = None,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.cleanup_interval_ms = cleanup_interval_ms
        self.window_ms = window_ms
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

        self._entries: Dict[str, RateLimitState] = {}
        self._table_lock = threading.Lock()
        self._last_sweep: Optional[int] = None

    def check(self, tool_name: str, policy: RateLimitPolicy) -> None:
        """
        Admit or reject one call.

        Raises:
            RateLimitError: the in-window count already reached capacity
        """
        now = self._clock()
        self._maybe_sweep(now)
        state = self._get_or_create(tool_name, now)

        with state.lock:
            state.evict_before(now - self.window_ms)
            if len(state.timestamps) >= policy.capacity:
                self._logger.warning(
                    f"Rate limit exceeded: tool={tool_name} "
                    f"count={len(state.timestamps)} max={policy.capacity}"
                )
                raise RateLimitError(tool_name)
            state.timestamps.append(now)
            state.last_cleanup = now

    def _get_or_create(self, tool_name: str, now: int) -> RateLimitState:
        state = self._entries.get(tool_name)
        if state is not None:
            return state
        with self._table_lock:
            state = self._entries.get(tool_name)
            if state is None:
                if len(self._entries) >= self.max_entries:
                    self._evict_oldest(len(self._entries) - self.max_entries + 1)
                state = RateLimitState(last_cleanup=now)
                self._entries[tool_name] = state
            return state

    def _evict_oldest(self, count: int) -> int:
        # Caller holds the table lock
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].last_cleanup)
        for name, _ in oldest[:count]:
            del self._entries[name]
            self._logger.debug(f"Evicted rate limit entry: {name}")
        return min(count, len(oldest))

    def _maybe_sweep(self, now: int) -> None:
        if self._last_sweep is None:
            # First call only starts the interval clock
            self._last_sweep = now
            return
        if now - self._last_sweep <= self.cleanup_interval_ms:
            return
        self.sweep(now)

    def sweep(self, now: Optional[int] = None) -> int:
        """
        Drop idle entries, then enforce the entry cap.

        Returns:
            Number of entries removed
        """
        now = self._clock() if now is None else now
        removed = 0
        with self._table_lock:
            self._last_sweep = now
            stale_before = now - self.cleanup_interval_ms

            for name, state in list(self._entries.items()):
                newest = state.newest
                if newest is None or newest < stale_before:
                    del self._entries[name]
                    removed += 1
                    self._logger.debug(f"Cleaned up stale rate limit entry: {name}")

            overflow = len(self._entries) - self.max_entries
            if overflow > 0:
                self._logger.warning(
                    f"Rate limit table exceeded max size "
                    f"(size={len(self._entries)} max={self.max_entries}), evicting oldest entries"
                )
                removed += self._evict_oldest(overflow)

        return removed

    def snapshot(self, tool_name: str) -> List[int]:
        """In-window timestamps currently recorded for a tool."""
        state = self._entries.get(tool_name)
        if state is None:
            return []
        with state.lock:
            state.evict_before(self._clock() - self.window_ms)
            return list(state.timestamps)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._entries


__all__ = [
    "MAX_RATE_LIMIT_ENTRIES",
    "CLEANUP_INTERVAL_MS",
    "WINDOW_MS",
    "RateLimitState",
    "RateLimiter",
]
