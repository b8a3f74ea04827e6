"""Validated view of the WARDEN_* configuration keys."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from warden.core.auth.user_store import LOGIN_ATTRIBUTES
from warden.core.errors import ConfigurationError
from warden.core.throttling.constants import SCOPES
from warden.core.throttling.policy import ScopePolicy

_KEY_PREFIX = "WARDEN_"


class ScopePolicySchema(BaseModel):
    interval: float = Field(gt=0)
    # Either a bare attempt count or a mapping of attempt counts to delays.
    thresholds: Union[int, Dict[int, float], None] = None

    @field_validator("thresholds")
    @classmethod
    def validate_thresholds(cls, value):
        if value is None:
            return value
        if isinstance(value, int):
            if value < 1:
                raise ValueError("attempt count must be >= 1")
            return value
        for count, delay in value.items():
            if count < 1:
                raise ValueError("attempt count must be >= 1")
            if delay < 0:
                raise ValueError("delay must not be negative")
        return value

    def to_policy(self) -> ScopePolicy:
        return ScopePolicy.from_config(self.interval, self.thresholds if self.thresholds is not None else {})


class WardenSettings(BaseModel):
    storage: Literal["sql", "memory"] = "sql"
    checkpoints: List[str] = Field(default_factory=lambda: ["throttle", "activation"])
    throttle: Dict[str, ScopePolicySchema] = Field(default_factory=dict)
    activation_ttl: Optional[float] = Field(default=259200, ge=0)
    reminder_ttl: Optional[float] = Field(default=14400, ge=0)
    persistence_ttl: Optional[float] = Field(default=None, ge=0)
    login_attribute: str = "email"
    reset_throttle_on_login: bool = True

    @field_validator("checkpoints", mode="before")
    @classmethod
    def split_checkpoints(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("throttle")
    @classmethod
    def validate_scopes(cls, value: Dict[str, ScopePolicySchema]) -> Dict[str, ScopePolicySchema]:
        unknown = sorted(set(value) - set(SCOPES))
        if unknown:
            raise ValueError(f"unknown throttle scope(s): {', '.join(unknown)}")
        return value

    @field_validator("login_attribute")
    @classmethod
    def validate_login_attribute(cls, value: str) -> str:
        if value not in LOGIN_ATTRIBUTES:
            raise ValueError("invalid login attribute")
        return value

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "WardenSettings":
        """Build settings from a Flask config (or any mapping of WARDEN_* keys)."""
        raw = {
            key[len(_KEY_PREFIX):].lower(): value
            for key, value in config.items()
            if key.startswith(_KEY_PREFIX) and key[len(_KEY_PREFIX):].lower() in cls.model_fields
        }
        try:
            return cls(**raw)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid warden configuration: {exc}") from exc

    def policies(self) -> Dict[str, ScopePolicy]:
        return {scope: schema.to_policy() for scope, schema in self.throttle.items()}

    def ttls(self) -> Dict[str, Optional[float]]:
        return {
            "activation": self.activation_ttl,
            "reminder": self.reminder_ttl,
            "persistence": self.persistence_ttl,
        }


__all__ = ["ScopePolicySchema", "WardenSettings"]
