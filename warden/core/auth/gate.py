"""Login orchestration: verify credentials, run checkpoints, bind sessions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from warden.core.auth.constants import (
    ATTEMPT_CHAIN_EVALUATED,
    ATTEMPT_CREDENTIAL_VERIFIED,
    ATTEMPT_START,
)
from warden.core.auth.events import (
    LOGIN_FAILED,
    LOGIN_SUCCEEDED,
    PERSISTENCE_CREATED,
    PERSISTENCE_REVOKED,
    THROTTLED,
    make_event,
)
from warden.core.auth.results import AuthResult, LoginAttempt, Rejection, invalid_credentials
from warden.core.auth.session_models import SessionHandle
from warden.core.checkpoints.chain import CheckpointChain
from warden.core.clock import Clock, SystemClock
from warden.core.throttling.constants import SCOPE_USER
from warden.core.tokens.constants import TOKEN_PERSISTENCE, TOKEN_VALID

logger = logging.getLogger(__name__)


class CredentialGate:
    """Decides whether a credential set may establish a session.

    An attempt moves through ``start -> credential_verified -> chain_evaluated``
    and ends either ``session_bound`` or ``rejected``; the states it passed
    through are kept on ``AuthResult.history``. Every failure is reported to
    the checkpoint chain so throttling sees it, and the caller only ever
    learns the rejection reason (plus ``retry_after`` when throttled).
    """

    def __init__(
        self,
        users,
        sessions,
        chain: CheckpointChain,
        ledger,
        throttle=None,
        events=None,
        clock: Optional[Clock] = None,
        reset_throttle_on_login: bool = True,
    ) -> None:
        self.users = users
        self.sessions = sessions
        self.chain = chain
        self.ledger = ledger
        self.throttle = throttle
        self.events = events
        self.clock = clock or SystemClock()
        self.reset_throttle_on_login = reset_throttle_on_login

    def authenticate(
        self,
        credentials: Mapping[str, Any],
        remember: bool = False,
        ip_address: Optional[str] = None,
        login: bool = True,
    ) -> AuthResult:
        history = [ATTEMPT_START]
        attempt = LoginAttempt(
            credentials=credentials,
            at=self.clock.now(),
            ip_address=ip_address,
        )

        user_id = self.users.verify(credentials)
        if user_id is None:
            # Failed attempts still count against a known account.
            attempt.user_id = self.users.find_by_credentials(credentials)
            rejection = self.chain.notify_failure(attempt) or invalid_credentials()
            return self._reject(rejection, attempt, history)

        attempt.user_id = user_id
        history.append(ATTEMPT_CREDENTIAL_VERIFIED)

        rejection = self.chain.run(user_id, attempt)
        if rejection is not None:
            self.chain.notify_failure(attempt)
            return self._reject(rejection, attempt, history)
        history.append(ATTEMPT_CHAIN_EVALUATED)

        if self.throttle is not None and self.reset_throttle_on_login:
            self.throttle.reset(SCOPE_USER, user_id)

        if not login:
            return AuthResult(state=ATTEMPT_CHAIN_EVALUATED, user_id=user_id, history=history)

        session = self.sessions.bind(user_id)
        if remember:
            token = self.ledger.issue(TOKEN_PERSISTENCE, user_id)
            session.remember_code = token.code
            self._emit(PERSISTENCE_CREATED, user_id, attempt.at, expires_at=_iso(token.expires_at))

        result = AuthResult.bound(user_id, session, history)
        result.history.append(result.state)
        logger.info("Login succeeded for user %s", user_id)
        self._emit(LOGIN_SUCCEEDED, user_id, attempt.at, session_id=session.session_id, ip_address=ip_address)
        return result

    def logout(self, handle: SessionHandle, everywhere: bool = False) -> int:
        """Unbind ``handle`` and revoke its persistence token(s).

        Returns how many persistence tokens were revoked.
        """
        if everywhere:
            revoked = self.ledger.revoke(TOKEN_PERSISTENCE, handle.user_id)
            self.sessions.unbind_all(handle.user_id)
        else:
            revoked = 0
            if handle.remember_code and self.ledger.revoke_code(TOKEN_PERSISTENCE, handle.remember_code):
                revoked = 1
        self.sessions.unbind(handle)
        handle.remember_code = None
        logger.info("Logged out user %s (everywhere=%s, persistences_revoked=%s)", handle.user_id, everywhere, revoked)
        if revoked:
            self._emit(PERSISTENCE_REVOKED, handle.user_id, self.clock.now(), count=revoked, everywhere=everywhere)
        return revoked

    def check(self, handle: SessionHandle) -> Optional[str]:
        """Return the user behind an active session that still passes every checkpoint."""
        user_id = self.sessions.resume(handle)
        if user_id is None:
            return None
        if self.chain.check(user_id) is not None:
            return None
        return user_id

    def resume_remembered(self, user_id, code: str, ip_address: Optional[str] = None) -> AuthResult:
        """Bind a fresh session from a persistence ("remember me") code."""
        history = [ATTEMPT_START]
        attempt = LoginAttempt(credentials={}, at=self.clock.now(), ip_address=ip_address, user_id=str(user_id))

        status = self.ledger.validate(TOKEN_PERSISTENCE, user_id, code, now=attempt.at)
        if status != TOKEN_VALID:
            logger.warning("Remembered login refused for user %s: %s", attempt.user_id, status)
            return self._reject(invalid_credentials(), attempt, history)
        history.append(ATTEMPT_CREDENTIAL_VERIFIED)

        rejection = self.chain.check(attempt.user_id)
        if rejection is not None:
            return self._reject(rejection, attempt, history)
        history.append(ATTEMPT_CHAIN_EVALUATED)

        session = self.sessions.bind(attempt.user_id)
        session.remember_code = code
        result = AuthResult.bound(attempt.user_id, session, history)
        result.history.append(result.state)
        logger.info("Remembered login succeeded for user %s", attempt.user_id)
        self._emit(LOGIN_SUCCEEDED, attempt.user_id, attempt.at, session_id=session.session_id, ip_address=ip_address)
        return result

    def _reject(self, rejection: Rejection, attempt: LoginAttempt, history: list[str]) -> AuthResult:
        result = AuthResult.rejected(rejection, history, user_id=None)
        result.history.append(result.state)
        if rejection.throttled:
            self._emit(
                THROTTLED,
                attempt.user_id,
                attempt.at,
                scope=rejection.scope,
                retry_after=rejection.retry_after,
                ip_address=attempt.ip_address,
            )
        else:
            logger.warning("Login rejected: reason=%s checkpoint=%s", rejection.reason, rejection.checkpoint)
            self._emit(LOGIN_FAILED, attempt.user_id, attempt.at, reason=rejection.reason, ip_address=attempt.ip_address)
        return result

    def _emit(self, event_type: str, user_id: Optional[str], occurred_at: datetime, **payload) -> None:
        if self.events is None:
            return
        self.events.publish(make_event(event_type, user_id, occurred_at, **payload))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


__all__ = ["CredentialGate"]
