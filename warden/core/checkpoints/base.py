"""Checkpoint base class."""

from __future__ import annotations

from typing import Optional

from warden.core.auth.results import LoginAttempt, Rejection


class Checkpoint:
    """A login gate. Every hook returns None to let the attempt through.

    ``login`` runs after the credentials were verified, ``check`` runs when a
    bound or remembered session is resumed, and ``fail`` runs once for every
    failed attempt, whichever stage rejected it.
    """

    name = "checkpoint"

    def login(self, user_id: str, attempt: LoginAttempt) -> Optional[Rejection]:
        return None

    def check(self, user_id: str) -> Optional[Rejection]:
        return None

    def fail(self, attempt: LoginAttempt) -> Optional[Rejection]:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


__all__ = ["Checkpoint"]
