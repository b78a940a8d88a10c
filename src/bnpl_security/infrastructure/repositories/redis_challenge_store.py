"""Redis challenge store.

Redis implementation of the challenge store shared by every process instance.
Counter increments and challenge updates run as Lua scripts so they are
atomic on the server.
"""

import logging
from typing import Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from ...core.exceptions import ChallengeStoreUnavailable
from ...core.protocols import IncrementResult

logger = logging.getLogger(__name__)


# KEYS[1] counter key, ARGV[1] ttl seconds, ARGV[2] ceiling (-1 for none)
SATURATING_INCREMENT_SCRIPT = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
local ceiling = tonumber(ARGV[2])
local ttl = tonumber(ARGV[1])
if ceiling >= 0 and current >= ceiling then
    local remaining = redis.call('TTL', KEYS[1])
    if remaining < 0 then remaining = ttl end
    return {current, 0, remaining}
end
local value = redis.call('INCR', KEYS[1])
local remaining = redis.call('TTL', KEYS[1])
if remaining < 0 then
    redis.call('EXPIRE', KEYS[1], ttl)
    remaining = ttl
end
return {value, 1, remaining}
"""

# KEYS[1] key, ARGV[1] expected present flag, ARGV[2] expected value,
# ARGV[3] new value present flag, ARGV[4] new value, ARGV[5] ttl seconds
COMPARE_AND_SWAP_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if ARGV[1] == '1' then
    if current ~= ARGV[2] then return 0 end
else
    if current then return 0 end
end
if ARGV[3] == '1' then
    redis.call('SET', KEYS[1], ARGV[4], 'EX', ARGV[5])
else
    redis.call('DEL', KEYS[1])
end
return 1
"""


class RedisChallengeStore:
    """Challenge store backed by ``redis.asyncio``.

    Every Redis failure is raised as ChallengeStoreUnavailable so callers
    fail closed.
    """

    def __init__(self, redis_client: Redis, key_prefix: str = ""):
        self._redis = redis_client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        max_connections: int = 10,
        socket_timeout: float = 2.0,
        key_prefix: str = "",
    ) -> "RedisChallengeStore":
        """Create a store with its own connection pool."""
        pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            decode_responses=True,
        )
        return cls(Redis(connection_pool=pool), key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._redis.get(self._key(key))
        except RedisError as e:
            raise ChallengeStoreUnavailable(f"Redis get error for key {key}: {e}")

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        try:
            await self._redis.set(self._key(key), value, ex=ttl_seconds)
        except RedisError as e:
            raise ChallengeStoreUnavailable(f"Redis set error for key {key}: {e}")

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._redis.delete(self._key(key)))
        except RedisError as e:
            raise ChallengeStoreUnavailable(f"Redis delete error for key {key}: {e}")

    async def atomic_increment(
        self,
        key: str,
        ttl_seconds: int,
        ceiling: Optional[int] = None,
    ) -> IncrementResult:
        try:
            value, applied, remaining = await self._redis.eval(
                SATURATING_INCREMENT_SCRIPT,
                1,
                self._key(key),
                ttl_seconds,
                -1 if ceiling is None else ceiling,
            )
        except RedisError as e:
            raise ChallengeStoreUnavailable(f"Redis increment error for key {key}: {e}")
        return IncrementResult(
            value=int(value),
            applied=bool(int(applied)),
            ttl_remaining=int(remaining),
        )

    async def compare_and_swap(
        self,
        key: str,
        expected: Optional[str],
        new_value: Optional[str],
        ttl_seconds: int,
    ) -> bool:
        try:
            swapped = await self._redis.eval(
                COMPARE_AND_SWAP_SCRIPT,
                1,
                self._key(key),
                "1" if expected is not None else "0",
                expected or "",
                "1" if new_value is not None else "0",
                new_value or "",
                max(1, ttl_seconds),
            )
        except RedisError as e:
            raise ChallengeStoreUnavailable(f"Redis compare-and-swap error for key {key}: {e}")
        return bool(int(swapped))

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        """Close the client and release its connection pool."""
        await self._redis.aclose(close_connection_pool=True)
