"""Fixed-window, per-identity rate limiting.

Each identity (usually the caller's network address) owns a counter and the
timestamp at which its current window ends.  Every call to
:meth:`RateLimiter.check` counts, including calls that end up rejected; a
burst of rejected calls never pushes the window's reset point further out.

The limiter keeps its state in memory for the lifetime of the process.
Expired entries are swept on access at most once per ``prune_interval_ms``
so the identity map stays bounded by the number of recently active callers.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    """Counter state for one identity."""

    identity: str
    request_count: int
    window_reset_at: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate-limit check.

    Attributes:
        allowed: Whether the request may proceed.
        retry_after_ms: Milliseconds until the window resets (0 when allowed).
    """

    allowed: bool
    retry_after_ms: int = 0


class RateLimiter:
    """Thread-safe fixed-window counter keyed by caller identity.

    Args:
        window_ms: Width of a counting window in milliseconds.
        max_requests: Requests allowed per identity per window.
        prune_interval_ms: Minimum time between sweeps of expired entries.
            ``0`` sweeps on every check.
        clock: Callable returning the current time in milliseconds.
    """

    def __init__(
        self,
        window_ms: int = 60_000,
        max_requests: int = 10,
        prune_interval_ms: int = 60_000,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.prune_interval_ms = prune_interval_ms
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, identity: str) -> RateLimitEntry | None:
        """Return a snapshot of the entry for *identity*, if one is tracked."""
        with self._lock:
            entry = self._entries.get(identity)
            return replace(entry) if entry is not None else None

    def check(self, identity: str) -> RateLimitDecision:
        """Count a request for *identity* and decide whether it is allowed.

        Args:
            identity: Caller identity string.

        Returns:
            A :class:`RateLimitDecision`.
        """
        with self._lock:
            now = self._clock()
            self._maybe_prune(now)

            entry = self._entries.get(identity)
            if entry is None or now >= entry.window_reset_at:
                entry = RateLimitEntry(identity, 1, now + self.window_ms)
                self._entries[identity] = entry
            else:
                entry.request_count += 1

            if entry.request_count > self.max_requests:
                return RateLimitDecision(False, entry.window_reset_at - now)
            return RateLimitDecision(True, 0)

    def prune(self) -> int:
        """Drop every entry whose window has already ended.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            return self._prune(self._clock())

    def _maybe_prune(self, now: int) -> None:
        if now - self._last_prune >= self.prune_interval_ms:
            self._prune(now)

    def _prune(self, now: int) -> int:
        # An expired entry would be reset on its next access, so dropping it
        # never changes a decision.
        stale = [key for key, entry in self._entries.items() if now >= entry.window_reset_at]
        for key in stale:
            del self._entries[key]
        self._last_prune = now
        if stale:
            logger.debug(f"Pruned {len(stale)} expired rate-limit entries")
        return len(stale)
