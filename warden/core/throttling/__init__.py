"""Tiered failed-login throttling."""

from warden.core.throttling.constants import GLOBAL_KEY, SCOPE_GLOBAL, SCOPE_IP, SCOPE_USER, SCOPES
from warden.core.throttling.engine import Lockout, ThrottleEngine
from warden.core.throttling.policy import ScopePolicy, ThresholdTable
from warden.core.throttling.repository import InMemoryThrottleRepository, SqlThrottleRepository, ThrottleRecord

__all__ = [
    "GLOBAL_KEY",
    "SCOPE_GLOBAL",
    "SCOPE_IP",
    "SCOPE_USER",
    "SCOPES",
    "Lockout",
    "ThrottleEngine",
    "ScopePolicy",
    "ThresholdTable",
    "InMemoryThrottleRepository",
    "SqlThrottleRepository",
    "ThrottleRecord",
]
