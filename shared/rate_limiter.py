"""Sliding-window rate limiter for outbound provider calls.

Callers are queued by delay rather than rejected:
- Admission timestamps are kept for the trailing window
- A saturated window makes the caller sleep until the oldest slot frees up
- The window is re-evaluated after every sleep until the caller is admitted
"""

import asyncio
import threading
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from shared.logging_utils import get_library_logger

logger = get_library_logger(__name__)


class RateLimiter:
    """Bound outbound calls to N per trailing window (default 60s)."""

    WINDOW_SECONDS = 60.0

    def __init__(
        self,
        requests_per_minute: int = 10,
        window_seconds: float = WINDOW_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None
    ):
        self.max_requests = requests_per_minute
        self.window_seconds = window_seconds
        self.clock = clock or time.monotonic
        self.sleep = sleep or asyncio.sleep
        self._requests: List[float] = []
        # Guards trim/check/append; never held across an await
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    def _trim(self, now: float) -> None:
        self._requests = [t for t in self._requests if now - t < self.window_seconds]

    def _try_admit(self) -> float:
        """
        Admit the caller if the window has room.

        Returns:
            0 if admitted, otherwise seconds to wait before re-checking
        """
        with self._lock:
            now = self.clock()
            self._trim(now)

            if len(self._requests) >= self.max_requests:
                wait_time = self.window_seconds - (now - self._requests[0])
                if wait_time > 0:
                    return wait_time

            self._requests.append(now)
            return 0.0

    async def acquire(self) -> None:
        """Wait until a call slot is available, then claim it."""
        if not self.enabled:
            return

        while True:
            wait_time = self._try_admit()
            if wait_time <= 0:
                return
            logger.info(f"Rate limit reached ({self.max_requests}/{self.window_seconds:.0f}s), waiting {wait_time:.2f}s")
            await self.sleep(wait_time)

    def get_quota_status(self) -> Dict[str, Any]:
        """Get current quota status."""
        with self._lock:
            now = self.clock()
            self._trim(now)
            used = len(self._requests)
            resets_in = self.window_seconds - (now - self._requests[0]) if self._requests else 0.0

        return {
            "has_limit": self.enabled,
            "calls_used": used,
            "calls_limit": self.max_requests,
            "window_seconds": self.window_seconds,
            "window_resets_in": round(max(resets_in, 0.0), 2)
        }
