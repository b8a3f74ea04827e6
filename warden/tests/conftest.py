import sys
from datetime import datetime
from pathlib import Path

import pytest
from flask_migrate import upgrade

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from warden import create_app
from warden.bootstrap import WardenBootstrapper
from warden.core.auth.constants import ACTIVATION_ACTIVATED, ACTIVATION_PENDING
from warden.core.clock import FixedClock
from warden.core.events import RecordingEventBus
from warden.extensions import db


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, CLI)")


class StubUserStore:
    """Plain-text credentials keyed by email; activation is a set of user ids."""

    def __init__(self):
        self.ids_by_email = {}
        self.passwords = {}
        self.activated = set()

    def add(self, user_id, email, password, activated=True):
        self.ids_by_email[email] = str(user_id)
        self.passwords[str(user_id)] = password
        if activated:
            self.activated.add(str(user_id))
        return str(user_id)

    def find_by_credentials(self, credentials):
        return self.ids_by_email.get(credentials.get("email"))

    def verify(self, credentials):
        user_id = self.find_by_credentials(credentials)
        if user_id and self.passwords[user_id] == credentials.get("password"):
            return user_id
        return None

    def get_activation_state(self, user_id):
        return ACTIVATION_ACTIVATED if str(user_id) in self.activated else ACTIVATION_PENDING

    def set_password(self, user_id, password):
        self.passwords[str(user_id)] = password


@pytest.fixture()
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture()
def users():
    return StubUserStore()


@pytest.fixture()
def build_warden(clock, users):
    """Factory for an in-memory Warden bundle around the stub user store."""

    def _build(throttle=None, checkpoints=("throttle", "activation"), **extra):
        config = {
            "WARDEN_STORAGE": "memory",
            "WARDEN_THROTTLE": throttle or {},
            "WARDEN_CHECKPOINTS": list(checkpoints),
        }
        config.update(extra)
        return WardenBootstrapper(config, clock=clock, users=users, events=RecordingEventBus()).create()

    return _build


@pytest.fixture()
def app():
    """Per-test app on an in-memory SQLite database migrated to head."""
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    upgrade()
    try:
        yield app
    finally:
        db.session.remove()
        db.engine.dispose()
        ctx.pop()


@pytest.fixture()
def sql_warden(app, clock):
    """SQL-backed bundle sharing the app's configuration and a fixed clock."""
    return WardenBootstrapper(app.config, clock=clock, events=RecordingEventBus()).create()
