"""Issue, validate, complete and revoke expiring security tokens."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from hashlib import sha256
from typing import Mapping, Optional

from warden.core.clock import Clock, SystemClock
from warden.core.tokens.constants import (
    SINGLE_USE_KINDS,
    TOKEN_ALREADY_COMPLETED,
    TOKEN_EXPIRED,
    TOKEN_KINDS,
    TOKEN_MISMATCH,
    TOKEN_NOT_FOUND,
    TOKEN_VALID,
    ensure_kind,
)
from warden.core.tokens.repository import InMemoryTokenRepository, Token

logger = logging.getLogger(__name__)

CODE_BYTES = 32


def hash_code(code: str) -> str:
    return sha256(code.encode("utf-8")).hexdigest()


class TokenLedger:
    """Token lifecycle on top of a token repository.

    ``default_ttls`` maps a kind to its time-to-live in seconds; ``None``
    means the kind never expires unless ``issue`` is given an explicit ttl.
    """

    def __init__(
        self,
        repository=None,
        default_ttls: Optional[Mapping[str, Optional[float]]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.repository = repository or InMemoryTokenRepository()
        self.default_ttls = {kind: None for kind in TOKEN_KINDS}
        for kind, ttl in (default_ttls or {}).items():
            self.default_ttls[ensure_kind(kind)] = ttl
        self.clock = clock or SystemClock()

    def issue(self, kind: str, user_id, ttl: Optional[float] = None) -> Token:
        ensure_kind(kind)
        now = self.clock.now()
        ttl = ttl if ttl is not None else self.default_ttls[kind]
        if ttl is not None and ttl < 0:
            raise ValueError("ttl must not be negative")
        code = secrets.token_urlsafe(CODE_BYTES)
        token = Token(
            kind=kind,
            user_id=str(user_id),
            code_hash=hash_code(code),
            created_at=now,
            expires_at=now + timedelta(seconds=ttl) if ttl is not None else None,
        )
        self.repository.add(token)
        token.code = code
        logger.debug("Issued %s token for user %s", kind, token.user_id)
        return token

    def validate(self, kind: str, user_id, code: str, now: Optional[datetime] = None) -> str:
        ensure_kind(kind)
        if not code:
            return TOKEN_NOT_FOUND
        token = self.repository.find(kind, hash_code(code))
        if token is None or token.completed or token.revoked:
            return TOKEN_NOT_FOUND
        if token.user_id != str(user_id):
            return TOKEN_MISMATCH
        if token.is_expired(now or self.clock.now()):
            return TOKEN_EXPIRED
        return TOKEN_VALID

    def complete(self, kind: str, code: str) -> str:
        """Consume a single-use token.

        Returns ``TOKEN_VALID`` when this call completed the token,
        ``TOKEN_ALREADY_COMPLETED`` when it had been completed before, and
        ``TOKEN_NOT_FOUND`` for unknown or revoked codes.
        """
        ensure_kind(kind)
        if kind not in SINGLE_USE_KINDS:
            raise ValueError(f"{kind} tokens cannot be completed")
        code_hash = hash_code(code)
        if self.repository.mark_completed(kind, code_hash, self.clock.now()):
            return TOKEN_VALID
        token = self.repository.find(kind, code_hash)
        if token is not None and token.completed and not token.revoked:
            return TOKEN_ALREADY_COMPLETED
        return TOKEN_NOT_FOUND

    def completed(self, kind: str, user_id) -> Optional[Token]:
        return self.repository.latest_completed(ensure_kind(kind), str(user_id))

    def revoke(self, kind: str, user_id) -> int:
        return self.repository.revoke_user(str(user_id), [ensure_kind(kind)], self.clock.now())

    def revoke_all(self, user_id) -> int:
        return self.repository.revoke_user(str(user_id), TOKEN_KINDS, self.clock.now())

    def revoke_code(self, kind: str, code: str) -> bool:
        return self.repository.revoke_code(ensure_kind(kind), hash_code(code), self.clock.now())

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        removed = self.repository.purge_expired(now or self.clock.now())
        if removed:
            logger.info("Purged %s expired tokens", removed)
        return removed


__all__ = ["TokenLedger", "hash_code"]
