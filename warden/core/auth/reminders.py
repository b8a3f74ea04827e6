"""Password reset ("reminder") flow."""

from __future__ import annotations

import logging

from warden.core.auth.events import REMINDER_COMPLETED, make_event
from warden.core.tokens.constants import TOKEN_PERSISTENCE, TOKEN_REMINDER, TOKEN_VALID
from warden.core.tokens.ledger import TokenLedger
from warden.core.tokens.repository import Token

logger = logging.getLogger(__name__)


class ReminderService:
    """Issues reset codes and, on completion, replaces the password.

    A completed reset also revokes every persistence token of the user so
    remembered sessions elsewhere stop resuming.
    """

    def __init__(self, ledger: TokenLedger, users, events=None) -> None:
        self.ledger = ledger
        self.users = users
        self.events = events

    def create(self, user_id) -> Token:
        return self.ledger.issue(TOKEN_REMINDER, user_id)

    def complete(self, user_id, code: str, new_password: str) -> str:
        status = self.ledger.validate(TOKEN_REMINDER, user_id, code)
        if status != TOKEN_VALID:
            return status
        status = self.ledger.complete(TOKEN_REMINDER, code)
        if status != TOKEN_VALID:
            return status

        self.users.set_password(str(user_id), new_password)
        revoked = self.ledger.revoke(TOKEN_PERSISTENCE, user_id)
        logger.info("Password reset completed for user %s; revoked %s persistences", user_id, revoked)
        if self.events is not None:
            self.events.publish(
                make_event(REMINDER_COMPLETED, str(user_id), self.ledger.clock.now(), persistences_revoked=revoked)
            )
        return status


__all__ = ["ReminderService"]
