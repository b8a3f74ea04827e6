"""Default user store on top of the ``user`` table."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import func

from warden.core.auth.constants import ACTIVATION_ACTIVATED, ACTIVATION_PENDING
from warden.core.auth.models import User
from warden.core.clock import utcnow
from warden.core.tokens.constants import TOKEN_ACTIVATION
from warden.extensions import bcrypt, db

LOGIN_ATTRIBUTES = ("email", "username")

_dummy_hash: Optional[str] = None


def hash_password(plain_password: str) -> str:
    return bcrypt.generate_password_hash(plain_password).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.check_password_hash(hashed_password, plain_password)


def burn_password_check(plain_password: str) -> None:
    """Spend one hash check on a throwaway hash so misses cost as much as hits."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("warden-unknown-user")
    verify_password(plain_password, _dummy_hash)


class SqlUserStore:
    """Looks users up by a login attribute and checks bcrypt hashes.

    Activation state is read from the token ledger: a user is activated once
    an activation token has been completed and not revoked since.
    """

    def __init__(self, ledger, login_attribute: str = "email", session=None):
        if login_attribute not in LOGIN_ATTRIBUTES:
            raise ValueError(f"unsupported login attribute: {login_attribute}")
        self.ledger = ledger
        self.login_attribute = login_attribute
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def register(self, email: str, password: str, username: Optional[str] = None) -> User:
        normalized_email = email.strip().lower()
        existing = self.session.query(User).filter(func.lower(User.email) == normalized_email).first()
        if existing:
            raise ValueError("email_already_exists")
        user = User(
            email=normalized_email,
            username=username,
            password_hash=hash_password(password),
            password_updated_at=utcnow(),
        )
        self.session.add(user)
        self.session.commit()
        return user

    def _lookup(self, credentials: Mapping[str, Any]) -> Optional[User]:
        login = credentials.get(self.login_attribute)
        if not login or not isinstance(login, str):
            return None
        column = getattr(User, self.login_attribute)
        return self.session.query(User).filter(func.lower(column) == login.strip().lower()).first()

    def find_by_credentials(self, credentials: Mapping[str, Any]) -> Optional[str]:
        user = self._lookup(credentials)
        return str(user.id) if user else None

    def verify(self, credentials: Mapping[str, Any]) -> Optional[str]:
        user = self._lookup(credentials)
        password = credentials.get("password")
        if not password:
            return None
        if user is None:
            burn_password_check(password)
            return None
        if not verify_password(password, user.password_hash):
            return None
        return str(user.id)

    def get_activation_state(self, user_id: str) -> str:
        if self.ledger.completed(TOKEN_ACTIVATION, user_id):
            return ACTIVATION_ACTIVATED
        return ACTIVATION_PENDING

    def set_password(self, user_id: str, password: str) -> None:
        user = self.session.get(User, int(user_id))
        if user is None:
            raise ValueError("not_found")
        user.password_hash = hash_password(password)
        user.password_updated_at = utcnow()
        self.session.commit()


__all__ = ["SqlUserStore", "hash_password", "verify_password", "LOGIN_ATTRIBUTES"]
