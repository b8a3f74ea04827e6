"""Account activation on top of the token ledger."""

from __future__ import annotations

import logging

from warden.core.auth.events import ACTIVATION_COMPLETED, make_event
from warden.core.tokens.constants import TOKEN_ACTIVATION, TOKEN_VALID
from warden.core.tokens.ledger import TokenLedger
from warden.core.tokens.repository import Token

logger = logging.getLogger(__name__)


class ActivationService:
    def __init__(self, ledger: TokenLedger, events=None) -> None:
        self.ledger = ledger
        self.events = events

    def create(self, user_id) -> Token:
        return self.ledger.issue(TOKEN_ACTIVATION, user_id)

    def complete(self, user_id, code: str) -> str:
        status = self.ledger.validate(TOKEN_ACTIVATION, user_id, code)
        if status != TOKEN_VALID:
            return status
        status = self.ledger.complete(TOKEN_ACTIVATION, code)
        if status == TOKEN_VALID:
            logger.info("Activation completed for user %s", user_id)
            if self.events is not None:
                self.events.publish(make_event(ACTIVATION_COMPLETED, str(user_id), self.ledger.clock.now()))
        return status

    def is_activated(self, user_id) -> bool:
        return self.ledger.completed(TOKEN_ACTIVATION, user_id) is not None

    def remove(self, user_id) -> int:
        """Revoke every activation of the user, completed or pending; the account reverts to pending."""
        return self.ledger.revoke(TOKEN_ACTIVATION, user_id)


__all__ = ["ActivationService"]
