"""Wire the gate and its collaborators from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from warden.core.auth.activations import ActivationService
from warden.core.auth.gate import CredentialGate
from warden.core.auth.reminders import ReminderService
from warden.core.auth.session_repository import InMemorySessionStore, SqlSessionStore
from warden.core.auth.user_store import SqlUserStore
from warden.core.checkpoints import ActivationCheckpoint, CheckpointChain, ThrottleCheckpoint
from warden.core.clock import Clock, SystemClock
from warden.core.events import EventBus
from warden.core.settings import WardenSettings
from warden.core.throttling import InMemoryThrottleRepository, SqlThrottleRepository, ThrottleEngine
from warden.core.tokens import InMemoryTokenRepository, SqlTokenRepository, TokenLedger

logger = logging.getLogger(__name__)

STORAGE_SQL = "sql"
STORAGE_MEMORY = "memory"


@dataclass
class Warden:
    """Everything the bootstrapper built, for callers that need more than the gate."""

    gate: CredentialGate
    engine: ThrottleEngine
    ledger: TokenLedger
    chain: CheckpointChain
    activations: ActivationService
    reminders: ReminderService
    events: EventBus
    settings: WardenSettings


class WardenBootstrapper:
    """Builds a configured ``CredentialGate``.

    Configuration is validated once, here; an unknown checkpoint name or a
    malformed throttle table raises ``ConfigurationError`` before any login
    can be attempted. ``users``, ``sessions`` and ``events`` may be injected
    to replace the default SQL-backed collaborators.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        clock: Optional[Clock] = None,
        users=None,
        sessions=None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.settings = WardenSettings.from_config(config)
        self.clock = clock or SystemClock()
        self._users = users
        self._sessions = sessions
        self.events = events if events is not None else EventBus()

    @property
    def in_memory(self) -> bool:
        return self.settings.storage == STORAGE_MEMORY

    def create_throttling(self) -> ThrottleEngine:
        repository = InMemoryThrottleRepository() if self.in_memory else SqlThrottleRepository()
        return ThrottleEngine(self.settings.policies(), repository=repository, clock=self.clock)

    def create_ledger(self) -> TokenLedger:
        repository = InMemoryTokenRepository() if self.in_memory else SqlTokenRepository()
        return TokenLedger(repository, default_ttls=self.settings.ttls(), clock=self.clock)

    def create_users(self, ledger: TokenLedger):
        if self._users is not None:
            return self._users
        return SqlUserStore(ledger, login_attribute=self.settings.login_attribute)

    def create_sessions(self):
        if self._sessions is not None:
            return self._sessions
        return InMemorySessionStore() if self.in_memory else SqlSessionStore()

    def create_checkpoints(self, engine: ThrottleEngine, users) -> CheckpointChain:
        factories = {
            ThrottleCheckpoint.name: lambda: ThrottleCheckpoint(engine),
            ActivationCheckpoint.name: lambda: ActivationCheckpoint(users),
        }
        return CheckpointChain.from_names(self.settings.checkpoints, factories)

    def create(self) -> Warden:
        engine = self.create_throttling()
        ledger = self.create_ledger()
        users = self.create_users(ledger)
        chain = self.create_checkpoints(engine, users)
        gate = CredentialGate(
            users,
            self.create_sessions(),
            chain,
            ledger,
            throttle=engine,
            events=self.events,
            clock=self.clock,
            reset_throttle_on_login=self.settings.reset_throttle_on_login,
        )
        logger.info("Warden ready: storage=%s checkpoints=%s", self.settings.storage, ",".join(chain.names))
        return Warden(
            gate=gate,
            engine=engine,
            ledger=ledger,
            chain=chain,
            activations=ActivationService(ledger, events=self.events),
            reminders=ReminderService(ledger, users, events=self.events),
            events=self.events,
            settings=self.settings,
        )

    def create_gate(self) -> CredentialGate:
        return self.create().gate


__all__ = ["Warden", "WardenBootstrapper", "STORAGE_SQL", "STORAGE_MEMORY"]
