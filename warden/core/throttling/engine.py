"""Tiered login throttling (global, per-IP, per-user)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional

from warden.core.clock import Clock, SystemClock
from warden.core.throttling.constants import (
    GLOBAL_KEY,
    SCOPE_GLOBAL,
    SCOPE_IP,
    SCOPE_USER,
    SCOPES,
    ensure_scope,
)
from warden.core.throttling.policy import ScopePolicy, unlimited_policy
from warden.core.throttling.repository import InMemoryThrottleRepository

logger = logging.getLogger(__name__)


@dataclass
class Lockout:
    """A scope that is currently refusing logins."""

    scope: str
    key: str
    retry_after: float
    free_at: datetime
    attempts: int

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds to wait, rounded up so callers never retry early."""
        whole = int(self.retry_after)
        return whole if whole == self.retry_after else whole + 1


class ThrottleEngine:
    def __init__(
        self,
        policies: Mapping[str, ScopePolicy],
        repository=None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.policies: Dict[str, ScopePolicy] = {}
        for scope, policy in policies.items():
            self.policies[ensure_scope(scope)] = policy
        for scope in SCOPES:
            self.policies.setdefault(scope, unlimited_policy())
        self.repository = repository or InMemoryThrottleRepository()
        self.clock = clock or SystemClock()

    def check_scope(self, scope: str, key: str, now: Optional[datetime] = None) -> Optional[Lockout]:
        """Return the active lockout for ``key`` or None when logins are allowed."""
        policy = self.policies[ensure_scope(scope)]
        now = now or self.clock.now()
        if not policy.thresholds:
            return None
        record = self.repository.load(scope, key, since=now - policy.window)
        if not record.count:
            return None
        delay = policy.thresholds.delay_for(record.count)
        if delay <= 0:
            return None
        free_at = record.last_attempt + timedelta(seconds=delay)
        if now >= free_at:
            return None
        return Lockout(
            scope=scope,
            key=key,
            retry_after=(free_at - now).total_seconds(),
            free_at=free_at,
            attempts=record.count,
        )

    def check(
        self,
        ip_address: Optional[str] = None,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Lockout]:
        """Check global, IP and user scopes in that order; the first lockout wins."""
        now = now or self.clock.now()
        for scope, key in self._scope_keys(ip_address, user_id):
            lockout = self.check_scope(scope, key, now=now)
            if lockout:
                logger.warning(
                    "Login throttled: scope=%s attempts=%s retry_after=%.1fs",
                    scope,
                    lockout.attempts,
                    lockout.retry_after,
                )
                return lockout
        return None

    def record_failure(self, scope: str, key: str, timestamp: Optional[datetime] = None) -> None:
        policy = self.policies[ensure_scope(scope)]
        at = timestamp or self.clock.now()
        self.repository.append(scope, key, at=at, prune_before=at - policy.window)
        logger.debug("Recorded failed login: scope=%s", scope)

    def record_login_failure(
        self,
        ip_address: Optional[str] = None,
        user_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> None:
        at = timestamp or self.clock.now()
        for scope, key in self._scope_keys(ip_address, user_id):
            self.record_failure(scope, key, timestamp=at)

    def reset(self, scope: str, key: str) -> int:
        return self.repository.clear(ensure_scope(scope), key)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop attempts that fell out of their scope window."""
        now = now or self.clock.now()
        removed = 0
        for scope, policy in self.policies.items():
            removed += self.repository.purge(scope, before=now - policy.window)
        if removed:
            logger.info("Purged %s stale throttle attempts", removed)
        return removed

    @staticmethod
    def _scope_keys(ip_address: Optional[str], user_id: Optional[str]):
        yield SCOPE_GLOBAL, GLOBAL_KEY
        if ip_address:
            yield SCOPE_IP, ip_address
        if user_id is not None:
            yield SCOPE_USER, str(user_id)


__all__ = ["Lockout", "ThrottleEngine"]
