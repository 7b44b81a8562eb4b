#!/usr/bin/env python3
"""
Process-scoped TTL cache for scanner results.

Entries live in memory only and expire a fixed number of seconds after they
were written. Expired entries are dropped lazily on read and eagerly by an
optional background sweep.
"""

from typing import Dict, Optional, Tuple, Any, Callable
import threading
import time

from shared.logging_utils import get_library_logger

logger = get_library_logger("cache_manager")


class CleanupHandle:
    """Handle for a running cache sweep. Call cancel() to stop it."""

    def __init__(self, thread: threading.Thread, stop_event: threading.Event):
        self._thread = thread
        self._stop_event = stop_event

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def cancel(self, timeout: Optional[float] = None) -> None:
        """Stop the sweep and wait for the worker thread to exit."""
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)


class SharedCacheManager:
    """
    Thread-safe result cache with one TTL for every entry.
    A TTL of zero disables caching: nothing is stored and nothing is returned.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Optional[Callable[[], float]] = None):
        """
        Args:
            ttl_seconds: Lifetime of each entry in seconds (0 disables the cache)
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic
        # key -> (value, expires_at)
        self.cache: Dict[str, Tuple[Any, float]] = {}
        self.lock = threading.RLock()
        self.stats = dict.fromkeys(("hits", "misses", "sets", "evictions"), 0)

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def _evict(self, key: str) -> None:
        del self.cache[key]
        self.stats["evictions"] += 1

    def get(self, key: str) -> Optional[Any]:
        """
        Return the live value stored under key.

        An entry is live while clock() < expires_at; a stale entry is evicted
        here and reported as a miss.
        """
        if not self.enabled:
            return None

        with self.lock:
            entry = self.cache.get(key)
            if entry is not None:
                value, expires_at = entry
                if self.clock() < expires_at:
                    self.stats["hits"] += 1
                    return value
                self._evict(key)
                logger.debug(f"Cache entry expired: {key}")

            self.stats["misses"] += 1
            return None

    def set(self, key: str, value: Any) -> None:
        """Store value under key for ttl_seconds, replacing any previous entry."""
        if not self.enabled:
            return

        with self.lock:
            self.cache[key] = (value, self.clock() + self.ttl_seconds)
            self.stats["sets"] += 1
        logger.debug(f"Cached {key} for {self.ttl_seconds}s")

    def clear(self) -> None:
        with self.lock:
            self.cache.clear()
        logger.info("Cache cleared")

    def get_stats(self) -> Dict[str, Any]:
        """Counters plus current size and hit rate."""
        with self.lock:
            lookups = self.stats["hits"] + self.stats["misses"]
            hit_rate = self.stats["hits"] / lookups * 100 if lookups else 0
            return {
                **self.stats,
                "hit_rate": f"{hit_rate:.1f}%",
                "entries": len(self.cache),
                "ttl_seconds": self.ttl_seconds
            }

    def cleanup_expired(self) -> int:
        """
        Drop every entry whose TTL has elapsed.

        Returns:
            Number of entries removed
        """
        with self.lock:
            now = self.clock()
            stale = [key for key, (_, expires_at) in self.cache.items() if now >= expires_at]
            for key in stale:
                self._evict(key)

        if stale:
            logger.info(f"Swept {len(stale)} expired cache entries")
        return len(stale)

    def start_cleanup(self, interval_seconds: float = 60.0) -> CleanupHandle:
        """
        Start a background sweep that removes expired entries every interval.

        The sweep runs on a daemon thread, independent of get/set traffic.

        Args:
            interval_seconds: Seconds between sweeps

        Returns:
            Handle whose cancel() stops the sweep
        """
        if interval_seconds <= 0:
            raise ValueError("Cleanup interval must be positive")

        stop_event = threading.Event()

        def _sweep() -> None:
            while not stop_event.wait(interval_seconds):
                self.cleanup_expired()

        thread = threading.Thread(target=_sweep, name="cache-cleanup", daemon=True)
        thread.start()
        logger.debug(f"Cache cleanup started (every {interval_seconds}s)")
        return CleanupHandle(thread, stop_event)


# One cache per server process
_shared_cache: Optional[SharedCacheManager] = None


def get_shared_cache(ttl_seconds: int = 300) -> SharedCacheManager:
    """Return the process-wide cache, creating it with ttl_seconds on first call."""
    global _shared_cache
    if _shared_cache is None:
        _shared_cache = SharedCacheManager(ttl_seconds=ttl_seconds)
    return _shared_cache
