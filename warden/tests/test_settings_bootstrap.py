import pytest
import sqlalchemy as sa

from warden.bootstrap import WardenBootstrapper
from warden.config import DEFAULT_THROTTLE
from warden.core.auth.gate import CredentialGate
from warden.core.errors import ConfigurationError
from warden.core.settings import WardenSettings
from warden.extensions import db


@pytest.mark.unit
def test_defaults_match_the_documented_policy():
    settings = WardenSettings.from_config({"WARDEN_THROTTLE": DEFAULT_THROTTLE})
    policies = settings.policies()

    assert settings.checkpoints == ["throttle", "activation"]
    assert settings.ttls() == {"activation": 259200, "reminder": 14400, "persistence": None}
    assert policies["global"].thresholds.delay_for(35) == 4
    assert policies["ip"].thresholds.pairs() == [(5, 900.0)]
    assert policies["user"].interval == 900


@pytest.mark.unit
def test_string_keys_from_json_are_accepted():
    settings = WardenSettings.from_config(
        {"WARDEN_THROTTLE": {"global": {"interval": 60, "thresholds": {"10": 1, "20": "2"}}}}
    )
    assert settings.policies()["global"].thresholds.pairs() == [(10, 1.0), (20, 2.0)]


@pytest.mark.unit
def test_checkpoint_list_may_be_a_comma_string():
    settings = WardenSettings.from_config({"WARDEN_CHECKPOINTS": "activation, throttle"})
    assert settings.checkpoints == ["activation", "throttle"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "config",
    [
        {"WARDEN_THROTTLE": {"moon": {"interval": 60, "thresholds": 5}}},
        {"WARDEN_THROTTLE": {"user": {"interval": 0, "thresholds": 5}}},
        {"WARDEN_THROTTLE": {"user": {"interval": 60, "thresholds": 0}}},
        {"WARDEN_THROTTLE": {"user": {"interval": 60, "thresholds": {5: -1}}}},
        {"WARDEN_ACTIVATION_TTL": -1},
        {"WARDEN_STORAGE": "redis"},
        {"WARDEN_LOGIN_ATTRIBUTE": "phone"},
    ],
)
def test_invalid_settings_raise_configuration_error(config):
    with pytest.raises(ConfigurationError):
        WardenSettings.from_config(config)


@pytest.mark.unit
def test_non_monotonic_table_fails_when_building_policies():
    settings = WardenSettings.from_config(
        {"WARDEN_THROTTLE": {"global": {"interval": 60, "thresholds": {10: 5, 20: 1}}}}
    )
    with pytest.raises(ConfigurationError):
        settings.policies()


@pytest.mark.unit
def test_unknown_checkpoint_fails_at_bootstrap(users):
    bootstrapper = WardenBootstrapper(
        {"WARDEN_STORAGE": "memory", "WARDEN_CHECKPOINTS": ["throttle", "captcha"]}, users=users
    )
    with pytest.raises(ConfigurationError, match=r"Invalid checkpoint \[captcha\] given\."):
        bootstrapper.create_gate()


@pytest.mark.unit
def test_checkpoint_order_follows_configuration(build_warden):
    warden = build_warden(checkpoints=("activation", "throttle"))
    assert warden.chain.names == ["activation", "throttle"]

    bare = build_warden(checkpoints=())
    assert len(bare.chain) == 0


@pytest.mark.integration
def test_create_app_registers_the_gate(app):
    gate = app.extensions["warden"]

    assert isinstance(gate, CredentialGate)
    assert app.extensions["warden_services"].gate is gate
    assert gate.chain.names == ["throttle", "activation"]
    assert gate.throttle.policies["global"].thresholds.delay_for(60) == 32


@pytest.mark.integration
def test_migrations_build_the_schema(app):
    tables = set(sa.inspect(db.engine).get_table_names())

    assert {"user", "auth_session", "throttle_attempt", "security_token", "alembic_version"} <= tables
    indexes = {ix["name"] for ix in sa.inspect(db.engine).get_indexes("security_token")}
    assert "ix_security_token_kind_expires_at" in indexes
    assert db.session.execute(sa.text("SELECT version_num FROM alembic_version")).scalar() == (
        "20260301_warden_initial"
    )
