"""Suspicious activity heuristics.

Each signal is evaluated independently. Two or more signals block the
request, a single signal only flags it. A signal that errors counts as not
fired, so a faulty heuristic never blocks traffic on its own.
"""

import inspect
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple
from urllib.parse import unquote_plus
from uuid import uuid4

from ...config.settings import SecuritySettings
from ...core.protocols import ChallengeStore
from ...utils.datetime import utc_now

logger = logging.getLogger(__name__)

AUTOMATION_USER_AGENTS = (
    "bot", "crawler", "spider", "scraper", "curl", "wget", "python",
    "java", "scanner", "nikto", "sqlmap", "nmap", "masscan",
)

SQL_INJECTION_PATTERNS = (
    "union select", "drop table", "insert into", "delete from", "update set",
    "exec(", "execute(", "sp_", "xp_", "'; --", "' or '1'='1", "' or 1=1",
    "admin'--",
)

SCRIPT_INJECTION_PATTERNS = (
    "<script", "javascript:", "onerror=", "onload=", "onclick=", "alert(",
    "document.cookie", "window.location", "eval(",
)

SENSITIVE_IDENTIFIERS = (
    "personnummer", "fødselsnummer", "ssn", "national_id",
    "bankkontonummer", "account_number", "kredittkort", "credit_card",
)

BLOCK_THRESHOLD = 2


@dataclass(frozen=True)
class HeuristicVerdict:
    """Signals that fired for one request."""

    signals: Tuple[str, ...] = ()

    @property
    def flagged(self) -> bool:
        return len(self.signals) >= 1

    @property
    def blocked(self) -> bool:
        return len(self.signals) >= BLOCK_THRESHOLD


class SuspiciousActivityDetector:
    """Evaluates abuse signals for a request."""

    def __init__(
        self,
        store: ChallengeStore,
        settings: SecuritySettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._threshold = settings.suspicious_request_threshold
        self._window_seconds = settings.suspicious_window_seconds
        self._retention = timedelta(days=settings.suspicious_activity_retention_days)
        self._clock = clock

    @staticmethod
    def is_automation_agent(user_agent: Optional[str]) -> bool:
        lowered = (user_agent or "").lower()
        return any(pattern in lowered for pattern in AUTOMATION_USER_AGENTS)

    @staticmethod
    def has_sql_injection(query: str) -> bool:
        lowered = unquote_plus(query).lower()
        return any(pattern in lowered for pattern in SQL_INJECTION_PATTERNS)

    @staticmethod
    def has_script_injection(query: str) -> bool:
        lowered = unquote_plus(query).lower()
        return any(pattern in lowered for pattern in SCRIPT_INJECTION_PATTERNS)

    @staticmethod
    def has_sensitive_identifier(path: str, query: str) -> bool:
        lowered = f"{unquote_plus(path)}?{unquote_plus(query)}".lower()
        return any(identifier in lowered for identifier in SENSITIVE_IDENTIFIERS)

    async def is_high_frequency(self, client_ip: str) -> bool:
        result = await self._store.atomic_increment(
            f"request_count:{client_ip}", self._window_seconds
        )
        return result.value > self._threshold

    async def evaluate(
        self,
        client_ip: str,
        user_agent: Optional[str],
        path: str,
        query: str,
    ) -> HeuristicVerdict:
        """Evaluate every signal, treating a failing signal as not fired."""

        checks: List[Tuple[str, Callable[[], Any]]] = [
            ("automation_user_agent", lambda: self.is_automation_agent(user_agent)),
            ("high_frequency", lambda: self.is_high_frequency(client_ip)),
            ("sql_injection", lambda: self.has_sql_injection(query)),
            ("script_injection", lambda: self.has_script_injection(query)),
            ("sensitive_identifier", lambda: self.has_sensitive_identifier(path, query)),
        ]

        signals = []
        for name, check in checks:
            try:
                fired = check()
                if inspect.isawaitable(fired):
                    fired = await fired
                if fired:
                    signals.append(name)
            except Exception as e:
                logger.warning(f"Heuristic {name} failed, treating as no signal: {type(e).__name__}: {e}")
        return HeuristicVerdict(signals=tuple(signals))

    async def record(
        self,
        client_ip: str,
        verdict: HeuristicVerdict,
        method: str,
        path: str,
        user_agent: Optional[str],
        correlation_id: Optional[str],
    ) -> None:
        """Keep a record of a flagged request. Best effort."""
        now = self._clock()
        key = (
            f"suspicious_activity:{client_ip}:{now.strftime('%Y%m%d%H%M%S')}:"
            f"{uuid4().hex}"
        )
        record = {
            "client_ip": client_ip,
            "method": method,
            "path": path,
            "user_agent": user_agent,
            "signals": list(verdict.signals),
            "blocked": verdict.blocked,
            "correlation_id": correlation_id,
            "timestamp": now.isoformat(),
        }
        try:
            await self._store.set_with_ttl(
                key, json.dumps(record), int(self._retention.total_seconds())
            )
        except Exception as e:
            logger.warning(f"Failed to record suspicious activity for {client_ip}: {e}")
