"""Memory challenge store.

In-memory implementation of the challenge store for development, testing and
single-instance deployments. Expiry is checked lazily on every access.
"""

import asyncio
import logging
import math
import time
from typing import Callable, Dict, Optional, Tuple

from ...core.protocols import IncrementResult

logger = logging.getLogger(__name__)


class MemoryChallengeStore:
    """Lock-guarded in-memory key-value store with expiry."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock or time.monotonic

    def _live_entry(self, key: str) -> Optional[Tuple[str, float]]:
        """Return the entry if present and unexpired. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry[1]:
            del self._entries[key]
            return None
        return entry

    def _ttl_remaining(self, expires_at: float) -> int:
        return max(0, math.ceil(expires_at - self._clock()))

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        async with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            if self._live_entry(key) is None:
                return False
            del self._entries[key]
            return True

    async def atomic_increment(
        self,
        key: str,
        ttl_seconds: int,
        ceiling: Optional[int] = None,
    ) -> IncrementResult:
        async with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                current, expires_at = 0, self._clock() + ttl_seconds
            else:
                current, expires_at = int(entry[0]), entry[1]

            if ceiling is not None and current >= ceiling:
                return IncrementResult(
                    value=current,
                    applied=False,
                    ttl_remaining=self._ttl_remaining(expires_at),
                )

            value = current + 1
            self._entries[key] = (str(value), expires_at)
            return IncrementResult(
                value=value,
                applied=True,
                ttl_remaining=self._ttl_remaining(expires_at),
            )

    async def compare_and_swap(
        self,
        key: str,
        expected: Optional[str],
        new_value: Optional[str],
        ttl_seconds: int,
    ) -> bool:
        async with self._lock:
            entry = self._live_entry(key)
            current = entry[0] if entry else None
            if current != expected:
                return False

            if new_value is None:
                self._entries.pop(key, None)
            else:
                self._entries[key] = (new_value, self._clock() + max(1, ttl_seconds))
            return True

    async def cleanup_expired(self) -> int:
        """Remove expired entries eagerly. Returns the number removed."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired entries from memory store")
        return len(expired)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
