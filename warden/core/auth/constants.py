"""Authentication outcome and lifecycle constants."""

from __future__ import annotations

# Rejection reasons surfaced to callers
REASON_INVALID_CREDENTIALS = "invalid_credentials"
REASON_NOT_ACTIVATED = "not_activated"
REASON_THROTTLED = "throttled"

# Activation state reported by the user store
ACTIVATION_ACTIVATED = "activated"
ACTIVATION_PENDING = "pending"

# Session lifecycle states
SESSION_STATE_ACTIVE = "active"
SESSION_STATE_INVALIDATED = "invalidated"

# Login attempt states
ATTEMPT_START = "start"
ATTEMPT_CREDENTIAL_VERIFIED = "credential_verified"
ATTEMPT_CHAIN_EVALUATED = "chain_evaluated"
ATTEMPT_SESSION_BOUND = "session_bound"
ATTEMPT_REJECTED = "rejected"

__all__ = [
    "REASON_INVALID_CREDENTIALS",
    "REASON_NOT_ACTIVATED",
    "REASON_THROTTLED",
    "ACTIVATION_ACTIVATED",
    "ACTIVATION_PENDING",
    "SESSION_STATE_ACTIVE",
    "SESSION_STATE_INVALIDATED",
    "ATTEMPT_START",
    "ATTEMPT_CREDENTIAL_VERIFIED",
    "ATTEMPT_CHAIN_EVALUATED",
    "ATTEMPT_SESSION_BOUND",
    "ATTEMPT_REJECTED",
]
