"""Fixed window rate limiter backed by the challenge store.

Counters are keyed by client address, subject and normalized endpoint, and
saturate at the limit: a rejected request never moves the counter.
"""

import logging
import re
import time
from typing import Callable, Optional

from ...config.settings import SecuritySettings
from ...core.protocols import ChallengeStore
from ...core.value_objects import EndpointClass, RateLimitDecision, RateLimitRule

logger = logging.getLogger(__name__)

# Numeric ids, hex tokens and UUIDs
ID_SEGMENT_PATTERN = re.compile(r"/(?:\d+|[0-9a-f-]{8,})(?=/|$)")


def normalize_endpoint(path: str) -> str:
    """Collapse identifier path segments so one route shares one counter."""
    return ID_SEGMENT_PATTERN.sub("/{id}", path.lower())


class FixedWindowRateLimiter:
    """Per endpoint class request budgets over fixed windows."""

    def __init__(
        self,
        store: ChallengeStore,
        settings: SecuritySettings,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._clock = clock
        self._payment_markers = [m.lower() for m in settings.payment_path_markers]
        self._auth_markers = [m.lower() for m in settings.auth_path_markers]
        self._rules = {
            EndpointClass.DEFAULT: RateLimitRule(
                settings.default_rate_limit,
                settings.default_rate_window_seconds,
                EndpointClass.DEFAULT,
            ),
            EndpointClass.PAYMENT: RateLimitRule(
                settings.payment_rate_limit,
                settings.payment_rate_window_seconds,
                EndpointClass.PAYMENT,
            ),
            EndpointClass.AUTH: RateLimitRule(
                settings.auth_rate_limit,
                settings.auth_rate_window_seconds,
                EndpointClass.AUTH,
            ),
        }

    def classify(self, path: str) -> EndpointClass:
        lowered = path.lower()
        if any(marker in lowered for marker in self._payment_markers):
            return EndpointClass.PAYMENT
        if any(marker in lowered for marker in self._auth_markers):
            return EndpointClass.AUTH
        return EndpointClass.DEFAULT

    def rule_for(self, path: str) -> RateLimitRule:
        return self._rules[self.classify(path)]

    @staticmethod
    def build_key(client_ip: str, subject_id: Optional[str], path: str) -> str:
        return f"rate_limit:{client_ip}:{subject_id or 'anonymous'}:{normalize_endpoint(path)}"

    async def check(
        self,
        client_ip: str,
        subject_id: Optional[str],
        path: str,
    ) -> RateLimitDecision:
        """Count the request and decide whether it is within budget.

        Store failures propagate so the caller can fail closed.
        """
        rule = self.rule_for(path)
        key = self.build_key(client_ip, subject_id, path)
        result = await self._store.atomic_increment(
            key, rule.window_seconds, ceiling=rule.max_requests
        )

        ttl_remaining = result.ttl_remaining if result.ttl_remaining > 0 else rule.window_seconds
        decision = RateLimitDecision(
            allowed=result.applied,
            limit=rule.max_requests,
            remaining=max(0, rule.max_requests - result.value),
            retry_after=ttl_remaining,
            reset_at=int(self._clock()) + ttl_remaining,
            key=key,
        )
        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded: key={key}, limit={rule.max_requests}/"
                f"{rule.window_seconds}s"
            )
        return decision
