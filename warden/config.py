"""Application configuration for Warden."""

from __future__ import annotations

import json
import os
from typing import Dict, Optional, Type

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url

load_dotenv()


def _engine_options_from_uri(uri: str) -> dict:
    url = make_url(uri)
    if url.get_backend_name() == "sqlite":
        return {"pool_pre_ping": True, "connect_args": {"timeout": 30}}
    if url.get_backend_name() in {"postgresql", "postgres"}:
        timeout = int(os.environ.get("DB_CONNECT_TIMEOUT_SECONDS", "10"))
        return {"pool_pre_ping": True, "connect_args": {"connect_timeout": timeout}}
    return {"pool_pre_ping": True}


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


def _env_seconds(name: str, default: Optional[str]) -> Optional[int]:
    raw = os.environ.get(name, default)
    if raw is None or raw.strip().lower() in ("", "none", "never"):
        return None
    return int(raw)


DEFAULT_THROTTLE = {
    "global": {
        "interval": 900,
        "thresholds": {10: 1, 20: 2, 30: 4, 40: 8, 50: 16, 60: 32},
    },
    "ip": {"interval": 900, "thresholds": 5},
    "user": {"interval": 900, "thresholds": 5},
}


def _throttle_from_env() -> dict:
    """WARDEN_THROTTLE_JSON overrides the built-in throttle policy wholesale."""
    raw = os.environ.get("WARDEN_THROTTLE_JSON")
    if not raw:
        return DEFAULT_THROTTLE
    return json.loads(raw)


class BaseConfig:
    """Base configuration loaded for all environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///instance/warden.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)
    BCRYPT_LOG_ROUNDS = int(os.environ.get("BCRYPT_LOG_ROUNDS", "12"))

    WARDEN_STORAGE = os.environ.get("WARDEN_STORAGE", "sql")
    WARDEN_CHECKPOINTS = _env_list("WARDEN_CHECKPOINTS", "throttle,activation")
    WARDEN_THROTTLE = _throttle_from_env()
    WARDEN_ACTIVATION_TTL = _env_seconds("WARDEN_ACTIVATION_TTL", "259200")
    WARDEN_REMINDER_TTL = _env_seconds("WARDEN_REMINDER_TTL", "14400")
    WARDEN_PERSISTENCE_TTL = _env_seconds("WARDEN_PERSISTENCE_TTL", None)
    WARDEN_LOGIN_ATTRIBUTE = os.environ.get("WARDEN_LOGIN_ATTRIBUTE", "email")
    WARDEN_RESET_THROTTLE_ON_LOGIN = _env_flag("WARDEN_RESET_THROTTLE_ON_LOGIN", "true")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)
    # Keep hashing cheap in tests.
    BCRYPT_LOG_ROUNDS = 4


class ProductionConfig(BaseConfig):
    ENV = "production"


config_by_name: Dict[str, Type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    # CI pipelines set APP_ENV=ci; map to testing defaults.
    "ci": TestingConfig,
}
