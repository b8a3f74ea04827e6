"""Interfaces the gate consumes from user and session collaborators."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from warden.core.auth.session_models import SessionHandle


class UserStore(Protocol):
    def find_by_credentials(self, credentials: Mapping[str, Any]) -> Optional[str]:
        """Resolve the user the credentials name, without checking the secret."""

    def verify(self, credentials: Mapping[str, Any]) -> Optional[str]:
        """Return the user id when the credentials are valid, else None."""

    def get_activation_state(self, user_id: str) -> str:
        """ACTIVATION_ACTIVATED or ACTIVATION_PENDING."""

    def set_password(self, user_id: str, password: str) -> None: ...


class SessionStore(Protocol):
    def bind(self, user_id: str) -> SessionHandle: ...

    def unbind(self, handle: SessionHandle) -> None: ...

    def unbind_all(self, user_id: str) -> int: ...

    def resume(self, handle: SessionHandle) -> Optional[str]: ...


__all__ = ["UserStore", "SessionStore"]
