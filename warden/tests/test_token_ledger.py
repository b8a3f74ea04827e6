import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

from warden.core.tokens import (
    TOKEN_ACTIVATION,
    TOKEN_ALREADY_COMPLETED,
    TOKEN_EXPIRED,
    TOKEN_MISMATCH,
    TOKEN_NOT_FOUND,
    TOKEN_PERSISTENCE,
    TOKEN_REMINDER,
    TOKEN_VALID,
    InMemoryTokenRepository,
    SqlTokenRepository,
    TokenLedger,
)
from warden.core.tokens.ledger import hash_code
from warden.core.tokens.models import SecurityToken
from warden.extensions import db


@pytest.fixture()
def ledger(clock):
    return TokenLedger(
        InMemoryTokenRepository(),
        default_ttls={TOKEN_ACTIVATION: 259200, TOKEN_REMINDER: 14400},
        clock=clock,
    )


@pytest.mark.unit
def test_issued_token_validates_for_its_owner(ledger):
    token = ledger.issue(TOKEN_ACTIVATION, 5)

    assert token.code
    assert token.user_id == "5"
    assert ledger.validate(TOKEN_ACTIVATION, 5, token.code) == TOKEN_VALID
    assert ledger.validate(TOKEN_ACTIVATION, "6", token.code) == TOKEN_MISMATCH
    assert ledger.validate(TOKEN_REMINDER, 5, token.code) == TOKEN_NOT_FOUND
    assert ledger.validate(TOKEN_ACTIVATION, 5, "not-a-code") == TOKEN_NOT_FOUND


@pytest.mark.unit
def test_default_ttls_apply_per_kind(ledger, clock):
    activation = ledger.issue(TOKEN_ACTIVATION, 1)
    reminder = ledger.issue(TOKEN_REMINDER, 1)
    persistence = ledger.issue(TOKEN_PERSISTENCE, 1)

    assert activation.expires_at == clock.now() + timedelta(days=3)
    assert reminder.expires_at == clock.now() + timedelta(hours=4)
    assert persistence.expires_at is None


@pytest.mark.unit
def test_activation_ttl_boundary(ledger, clock):
    token = ledger.issue(TOKEN_ACTIVATION, 1, ttl=24 * 3600)
    issued_at = clock.now()

    clock.set(issued_at + timedelta(hours=23, minutes=59))
    assert ledger.validate(TOKEN_ACTIVATION, 1, token.code) == TOKEN_VALID

    clock.set(issued_at + timedelta(hours=24))
    assert ledger.validate(TOKEN_ACTIVATION, 1, token.code) == TOKEN_VALID

    clock.set(issued_at + timedelta(hours=24, seconds=1))
    assert ledger.validate(TOKEN_ACTIVATION, 1, token.code) == TOKEN_EXPIRED


@pytest.mark.unit
def test_completed_single_use_token_never_validates_again(ledger):
    token = ledger.issue(TOKEN_REMINDER, 3)

    assert ledger.complete(TOKEN_REMINDER, token.code) == TOKEN_VALID
    assert ledger.validate(TOKEN_REMINDER, 3, token.code) != TOKEN_VALID
    assert ledger.complete(TOKEN_REMINDER, token.code) == TOKEN_ALREADY_COMPLETED
    assert ledger.complete(TOKEN_REMINDER, "unknown") == TOKEN_NOT_FOUND


@pytest.mark.unit
def test_completing_persistence_is_a_programming_error(ledger):
    token = ledger.issue(TOKEN_PERSISTENCE, 3)
    with pytest.raises(ValueError):
        ledger.complete(TOKEN_PERSISTENCE, token.code)


@pytest.mark.unit
def test_unknown_kind_is_rejected(ledger):
    with pytest.raises(ValueError):
        ledger.issue("magic-link", 1)


@pytest.mark.unit
def test_negative_ttl_is_rejected(ledger):
    with pytest.raises(ValueError):
        ledger.issue(TOKEN_PERSISTENCE, 1, ttl=-5)


@pytest.mark.unit
def test_revocation(ledger):
    first = ledger.issue(TOKEN_PERSISTENCE, 9)
    second = ledger.issue(TOKEN_PERSISTENCE, 9)
    reminder = ledger.issue(TOKEN_REMINDER, 9)

    assert ledger.revoke_code(TOKEN_PERSISTENCE, first.code) is True
    assert ledger.revoke_code(TOKEN_PERSISTENCE, first.code) is False
    assert ledger.validate(TOKEN_PERSISTENCE, 9, first.code) == TOKEN_NOT_FOUND
    assert ledger.validate(TOKEN_PERSISTENCE, 9, second.code) == TOKEN_VALID

    assert ledger.revoke_all(9) == 2
    assert ledger.validate(TOKEN_PERSISTENCE, 9, second.code) == TOKEN_NOT_FOUND
    assert ledger.complete(TOKEN_REMINDER, reminder.code) == TOKEN_NOT_FOUND


@pytest.mark.unit
def test_completed_returns_latest_unrevoked(ledger, clock):
    assert ledger.completed(TOKEN_ACTIVATION, 4) is None
    token = ledger.issue(TOKEN_ACTIVATION, 4)
    ledger.complete(TOKEN_ACTIVATION, token.code)

    assert ledger.completed(TOKEN_ACTIVATION, 4).completed_at == clock.now()
    ledger.revoke(TOKEN_ACTIVATION, 4)
    assert ledger.completed(TOKEN_ACTIVATION, 4) is None


@pytest.mark.unit
def test_purge_expired_keeps_completed_and_live_tokens(ledger, clock):
    stale = ledger.issue(TOKEN_REMINDER, 1, ttl=60)
    done = ledger.issue(TOKEN_ACTIVATION, 1, ttl=60)
    ledger.complete(TOKEN_ACTIVATION, done.code)
    live = ledger.issue(TOKEN_PERSISTENCE, 1)

    clock.advance(minutes=5)
    assert ledger.purge_expired() == 1
    assert ledger.validate(TOKEN_REMINDER, 1, stale.code) == TOKEN_NOT_FOUND
    assert ledger.validate(TOKEN_PERSISTENCE, 1, live.code) == TOKEN_VALID
    assert ledger.completed(TOKEN_ACTIVATION, 1) is not None


@pytest.mark.integration
def test_sql_ledger_stores_only_code_digests(app, clock):
    ledger = TokenLedger(SqlTokenRepository(), default_ttls={TOKEN_ACTIVATION: 3600}, clock=clock)
    token = ledger.issue(TOKEN_ACTIVATION, 11)

    row = SecurityToken.query.filter_by(user_id="11").one()
    assert row.code_hash == hash_code(token.code)
    assert token.code not in row.code_hash

    assert ledger.validate(TOKEN_ACTIVATION, 11, token.code) == TOKEN_VALID
    assert ledger.complete(TOKEN_ACTIVATION, token.code) == TOKEN_VALID
    assert ledger.complete(TOKEN_ACTIVATION, token.code) == TOKEN_ALREADY_COMPLETED
    assert ledger.validate(TOKEN_ACTIVATION, 11, token.code) == TOKEN_NOT_FOUND
    assert ledger.completed(TOKEN_ACTIVATION, 11) is not None


@pytest.mark.integration
def test_sql_ledger_expiry_and_revocation(app, clock):
    ledger = TokenLedger(SqlTokenRepository(), clock=clock)
    persistence = ledger.issue(TOKEN_PERSISTENCE, 12, ttl=3600)
    other = ledger.issue(TOKEN_PERSISTENCE, 12)

    clock.advance(hours=1, seconds=1)
    assert ledger.validate(TOKEN_PERSISTENCE, 12, persistence.code) == TOKEN_EXPIRED
    assert ledger.purge_expired() == 1

    assert ledger.revoke(TOKEN_PERSISTENCE, 12) == 1
    assert ledger.validate(TOKEN_PERSISTENCE, 12, other.code) == TOKEN_NOT_FOUND


def _race(workers, attempt):
    barrier = threading.Barrier(workers)
    statuses = []
    errors = []

    def run():
        try:
            barrier.wait()
            statuses.append(attempt())
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=run) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []
    return statuses


@pytest.mark.unit
def test_concurrent_completion_has_a_single_winner(ledger):
    token = ledger.issue(TOKEN_ACTIVATION, 3)

    statuses = _race(16, lambda: ledger.complete(TOKEN_ACTIVATION, token.code))

    assert statuses.count(TOKEN_VALID) == 1
    assert statuses.count(TOKEN_ALREADY_COMPLETED) == 15


@pytest.mark.integration
def test_sql_concurrent_completion_has_a_single_winner(tmp_path, clock):
    engine = create_engine(f"sqlite:///{tmp_path / 'tokens.db'}", connect_args={"timeout": 30})

    @event.listens_for(engine, "connect")
    def _manual_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    db.metadata.create_all(engine)
    with Session(engine) as session:
        token = TokenLedger(SqlTokenRepository(session=session), clock=clock).issue(TOKEN_REMINDER, 4)

    def attempt():
        with Session(engine) as session:
            return TokenLedger(SqlTokenRepository(session=session), clock=clock).complete(TOKEN_REMINDER, token.code)

    try:
        statuses = _race(8, attempt)
    finally:
        engine.dispose()

    assert statuses.count(TOKEN_VALID) == 1
    assert statuses.count(TOKEN_ALREADY_COMPLETED) == 7
