"""Token storage.

Completion and revocation are conditional writes: a token is only marked
completed while it is neither completed nor revoked, and the caller learns
from the result whether its own write won.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from threading import Lock
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import update

from warden.core.tokens.models import SecurityToken
from warden.extensions import db


@dataclass
class Token:
    kind: str
    user_id: str
    code_hash: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    # Only populated on the instance returned by TokenLedger.issue.
    code: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    @property
    def revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at


def _to_token(row: SecurityToken) -> Token:
    return Token(
        kind=row.kind,
        user_id=row.user_id,
        code_hash=row.code_hash,
        created_at=row.created_at,
        expires_at=row.expires_at,
        completed_at=row.completed_at,
        revoked_at=row.revoked_at,
    )


class SqlTokenRepository:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def add(self, token: Token) -> None:
        self.session.add(
            SecurityToken(
                kind=token.kind,
                user_id=token.user_id,
                code_hash=token.code_hash,
                created_at=token.created_at,
                expires_at=token.expires_at,
            )
        )
        self.session.commit()

    def find(self, kind: str, code_hash: str) -> Optional[Token]:
        row = self.session.query(SecurityToken).filter_by(kind=kind, code_hash=code_hash).first()
        return _to_token(row) if row else None

    def mark_completed(self, kind: str, code_hash: str, at: datetime) -> bool:
        result = self.session.execute(
            update(SecurityToken)
            .where(
                SecurityToken.kind == kind,
                SecurityToken.code_hash == code_hash,
                SecurityToken.completed_at.is_(None),
                SecurityToken.revoked_at.is_(None),
            )
            .values(completed_at=at)
            .execution_options(synchronize_session="fetch")
        )
        self.session.commit()
        return result.rowcount == 1

    def revoke_code(self, kind: str, code_hash: str, at: datetime) -> bool:
        result = self.session.execute(
            update(SecurityToken)
            .where(
                SecurityToken.kind == kind,
                SecurityToken.code_hash == code_hash,
                SecurityToken.revoked_at.is_(None),
            )
            .values(revoked_at=at)
            .execution_options(synchronize_session="fetch")
        )
        self.session.commit()
        return result.rowcount == 1

    def revoke_user(self, user_id: str, kinds: Iterable[str], at: datetime) -> int:
        result = self.session.execute(
            update(SecurityToken)
            .where(
                SecurityToken.user_id == user_id,
                SecurityToken.kind.in_(list(kinds)),
                SecurityToken.revoked_at.is_(None),
            )
            .values(revoked_at=at)
            .execution_options(synchronize_session="fetch")
        )
        self.session.commit()
        return result.rowcount

    def latest_completed(self, kind: str, user_id: str) -> Optional[Token]:
        row = (
            self.session.query(SecurityToken)
            .filter(
                SecurityToken.kind == kind,
                SecurityToken.user_id == user_id,
                SecurityToken.completed_at.isnot(None),
                SecurityToken.revoked_at.is_(None),
            )
            .order_by(SecurityToken.completed_at.desc())
            .first()
        )
        return _to_token(row) if row else None

    def purge_expired(self, now: datetime) -> int:
        removed = (
            self.session.query(SecurityToken)
            .filter(
                SecurityToken.expires_at.isnot(None),
                SecurityToken.expires_at < now,
                SecurityToken.completed_at.is_(None),
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return removed


class InMemoryTokenRepository:
    """Process-local ledger storage; one lock guards every token write."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._tokens: Dict[Tuple[str, str], Token] = {}

    def add(self, token: Token) -> None:
        with self._lock:
            self._tokens[(token.kind, token.code_hash)] = replace(token, code=None)

    def find(self, kind: str, code_hash: str) -> Optional[Token]:
        with self._lock:
            token = self._tokens.get((kind, code_hash))
            return replace(token) if token else None

    def mark_completed(self, kind: str, code_hash: str, at: datetime) -> bool:
        with self._lock:
            token = self._tokens.get((kind, code_hash))
            if token is None or token.completed or token.revoked:
                return False
            token.completed_at = at
            return True

    def revoke_code(self, kind: str, code_hash: str, at: datetime) -> bool:
        with self._lock:
            token = self._tokens.get((kind, code_hash))
            if token is None or token.revoked:
                return False
            token.revoked_at = at
            return True

    def revoke_user(self, user_id: str, kinds: Iterable[str], at: datetime) -> int:
        kinds = set(kinds)
        revoked = 0
        with self._lock:
            for token in self._tokens.values():
                if token.user_id == user_id and token.kind in kinds and not token.revoked:
                    token.revoked_at = at
                    revoked += 1
        return revoked

    def latest_completed(self, kind: str, user_id: str) -> Optional[Token]:
        with self._lock:
            candidates = [
                token
                for token in self._tokens.values()
                if token.kind == kind and token.user_id == user_id and token.completed and not token.revoked
            ]
            if not candidates:
                return None
            return replace(max(candidates, key=lambda token: token.completed_at))

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [
                key
                for key, token in self._tokens.items()
                if token.expires_at is not None and token.expires_at < now and not token.completed
            ]
            for key in stale:
                del self._tokens[key]
        return len(stale)


__all__ = ["Token", "SqlTokenRepository", "InMemoryTokenRepository"]
