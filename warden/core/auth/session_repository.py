"""Default session store on top of the ``auth_session`` table."""

from __future__ import annotations

import secrets
from threading import Lock
from typing import Optional

from warden.core.auth.constants import SESSION_STATE_ACTIVE, SESSION_STATE_INVALIDATED
from warden.core.auth.models import AuthSession
from warden.core.auth.session_models import SessionHandle
from warden.core.clock import utcnow
from warden.extensions import db


class SqlSessionStore:
    """Sessions are rows; unbinding marks them invalidated rather than deleting them."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def bind(self, user_id: str) -> SessionHandle:
        record = AuthSession(
            session_id=secrets.token_urlsafe(32),
            user_id=str(user_id),
            lifecycle_state=SESSION_STATE_ACTIVE,
        )
        self.session.add(record)
        self.session.commit()
        return SessionHandle(
            session_id=record.session_id,
            user_id=record.user_id,
            created_at=record.created_at,
        )

    def unbind(self, handle: SessionHandle) -> None:
        self.session.query(AuthSession).filter(
            AuthSession.session_id == handle.session_id,
            AuthSession.lifecycle_state == SESSION_STATE_ACTIVE,
        ).update(
            {"lifecycle_state": SESSION_STATE_INVALIDATED, "invalidated_at": utcnow()},
            synchronize_session="fetch",
        )
        self.session.commit()
        handle.lifecycle_state = SESSION_STATE_INVALIDATED

    def unbind_all(self, user_id: str) -> int:
        updated = (
            self.session.query(AuthSession)
            .filter(
                AuthSession.user_id == str(user_id),
                AuthSession.lifecycle_state == SESSION_STATE_ACTIVE,
            )
            .update(
                {"lifecycle_state": SESSION_STATE_INVALIDATED, "invalidated_at": utcnow()},
                synchronize_session="fetch",
            )
        )
        self.session.commit()
        return updated

    def resume(self, handle: SessionHandle) -> Optional[str]:
        record = self.session.query(AuthSession).filter_by(session_id=handle.session_id).first()
        if not record or record.lifecycle_state != SESSION_STATE_ACTIVE:
            return None
        if record.user_id != str(handle.user_id):
            return None
        return record.user_id


class InMemorySessionStore:
    """Dictionary-backed sessions for single-process deployments and tests."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: dict[str, str] = {}

    def bind(self, user_id: str) -> SessionHandle:
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[session_id] = str(user_id)
        return SessionHandle(session_id=session_id, user_id=str(user_id), created_at=utcnow())

    def unbind(self, handle: SessionHandle) -> None:
        with self._lock:
            self._sessions.pop(handle.session_id, None)
        handle.lifecycle_state = SESSION_STATE_INVALIDATED

    def unbind_all(self, user_id: str) -> int:
        with self._lock:
            stale = [sid for sid, owner in self._sessions.items() if owner == str(user_id)]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)

    def resume(self, handle: SessionHandle) -> Optional[str]:
        with self._lock:
            owner = self._sessions.get(handle.session_id)
        if owner is None or owner != str(handle.user_id):
            return None
        return owner


__all__ = ["SqlSessionStore", "InMemorySessionStore"]
