"""Throttle checkpoint: consult and feed the throttle engine."""

from __future__ import annotations

from typing import Optional

from warden.core.auth.results import LoginAttempt, Rejection, throttled
from warden.core.checkpoints.base import Checkpoint
from warden.core.throttling.engine import ThrottleEngine


class ThrottleCheckpoint(Checkpoint):
    name = "throttle"

    def __init__(self, engine: ThrottleEngine) -> None:
        self.engine = engine

    def login(self, user_id: str, attempt: LoginAttempt) -> Optional[Rejection]:
        lockout = self.engine.check(attempt.ip_address, user_id, now=attempt.at)
        return throttled(lockout, self.name) if lockout else None

    def fail(self, attempt: LoginAttempt) -> Optional[Rejection]:
        # An attempt refused by a standing lockout is not counted again.
        lockout = self.engine.check(attempt.ip_address, attempt.user_id, now=attempt.at)
        if lockout:
            return throttled(lockout, self.name)
        self.engine.record_login_failure(attempt.ip_address, attempt.user_id, timestamp=attempt.at)
        return None


__all__ = ["ThrottleCheckpoint"]
