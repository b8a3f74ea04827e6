"""Typed outcomes of a login attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from warden.core.auth.constants import (
    ATTEMPT_REJECTED,
    ATTEMPT_SESSION_BOUND,
    REASON_INVALID_CREDENTIALS,
    REASON_NOT_ACTIVATED,
    REASON_THROTTLED,
)
from warden.core.auth.session_models import SessionHandle


@dataclass
class LoginAttempt:
    """Everything a checkpoint may look at for one attempt.

    ``at`` is fixed when the attempt starts so every check and record of the
    attempt uses the same instant.
    """

    credentials: Mapping[str, Any]
    at: datetime
    ip_address: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class Rejection:
    reason: str
    checkpoint: Optional[str] = None
    retry_after: Optional[float] = None
    scope: Optional[str] = None
    free_at: Optional[datetime] = None

    @property
    def throttled(self) -> bool:
        return self.reason == REASON_THROTTLED

    def public_dict(self) -> dict:
        """Caller-facing view; only throttling discloses anything beyond the reason."""
        payload: dict = {"reason": self.reason}
        if self.throttled and self.retry_after is not None:
            payload["retry_after"] = self.retry_after
        return payload


def invalid_credentials() -> Rejection:
    return Rejection(reason=REASON_INVALID_CREDENTIALS)


def not_activated(checkpoint: Optional[str] = None) -> Rejection:
    return Rejection(reason=REASON_NOT_ACTIVATED, checkpoint=checkpoint)


def throttled(lockout, checkpoint: Optional[str] = None) -> Rejection:
    return Rejection(
        reason=REASON_THROTTLED,
        checkpoint=checkpoint,
        retry_after=lockout.retry_after,
        scope=lockout.scope,
        free_at=lockout.free_at,
    )


@dataclass
class AuthResult:
    state: str
    user_id: Optional[str] = None
    session: Optional[SessionHandle] = None
    rejection: Optional[Rejection] = None
    history: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @property
    def remember_code(self) -> Optional[str]:
        return self.session.remember_code if self.session else None

    @classmethod
    def bound(cls, user_id: str, session: Optional[SessionHandle], history: list[str]) -> "AuthResult":
        return cls(state=ATTEMPT_SESSION_BOUND, user_id=user_id, session=session, history=history)

    @classmethod
    def rejected(cls, rejection: Rejection, history: list[str], user_id: Optional[str] = None) -> "AuthResult":
        return cls(state=ATTEMPT_REJECTED, user_id=user_id, rejection=rejection, history=history)


__all__ = [
    "LoginAttempt",
    "Rejection",
    "AuthResult",
    "invalid_credentials",
    "not_activated",
    "throttled",
]
