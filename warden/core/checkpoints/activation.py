"""Refuse logins for accounts that have not completed activation."""

from __future__ import annotations

import logging
from typing import Optional

from warden.core.auth.constants import ACTIVATION_ACTIVATED
from warden.core.auth.results import LoginAttempt, Rejection, not_activated
from warden.core.checkpoints.base import Checkpoint

logger = logging.getLogger(__name__)


class ActivationCheckpoint(Checkpoint):
    name = "activation"

    def __init__(self, users) -> None:
        self.users = users

    def login(self, user_id: str, attempt: LoginAttempt) -> Optional[Rejection]:
        return self.check(user_id)

    def check(self, user_id: str) -> Optional[Rejection]:
        if self.users.get_activation_state(user_id) != ACTIVATION_ACTIVATED:
            logger.info("Login refused for user %s: account not activated", user_id)
            return not_activated(self.name)
        return None


__all__ = ["ActivationCheckpoint"]
