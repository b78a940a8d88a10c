"""Challenge store protocol.

The challenge store is the only shared mutable state of the subsystem. It
holds in-flight challenges, issued token copies, rate limit counters and
abuse-detection counters, all with expiry.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class IncrementResult:
    """Result of an atomic counter increment.

    ``applied`` is False when the counter was already at the ceiling and was
    left untouched. ``ttl_remaining`` is the number of seconds before the
    counter expires.
    """

    value: int
    applied: bool
    ttl_remaining: int


@runtime_checkable
class ChallengeStore(Protocol):
    """Protocol for expiring key-value state shared across instances."""

    async def get(self, key: str) -> Optional[str]:
        """Get value by key, None when missing or expired."""
        ...

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        """Set value with expiry in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if the key existed."""
        ...

    async def atomic_increment(
        self,
        key: str,
        ttl_seconds: int,
        ceiling: Optional[int] = None,
    ) -> IncrementResult:
        """Atomically increment a counter.

        The expiry is set when the counter is created and is not extended by
        later increments, which gives fixed-window semantics. When ``ceiling``
        is given and the counter already reached it, the counter is left
        unchanged and ``applied`` is False.
        """
        ...

    async def compare_and_swap(
        self,
        key: str,
        expected: Optional[str],
        new_value: Optional[str],
        ttl_seconds: int,
    ) -> bool:
        """Atomically replace the value if it still equals ``expected``.

        ``expected=None`` requires the key to be absent. ``new_value=None``
        deletes the key. Returns True when the swap happened.
        """
        ...
