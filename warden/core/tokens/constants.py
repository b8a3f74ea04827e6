"""Token kinds and ledger outcomes."""

from __future__ import annotations

TOKEN_ACTIVATION = "activation"
TOKEN_REMINDER = "reminder"
TOKEN_PERSISTENCE = "persistence"

TOKEN_KINDS = (TOKEN_ACTIVATION, TOKEN_REMINDER, TOKEN_PERSISTENCE)
# Activation and reminder codes are consumed by completion.
SINGLE_USE_KINDS = (TOKEN_ACTIVATION, TOKEN_REMINDER)

# Ledger outcomes; returned to callers, never raised.
TOKEN_VALID = "valid"
TOKEN_NOT_FOUND = "not_found"
TOKEN_EXPIRED = "expired"
TOKEN_MISMATCH = "mismatch"
TOKEN_ALREADY_COMPLETED = "already_completed"


def ensure_kind(kind: str) -> str:
    if kind not in TOKEN_KINDS:
        raise ValueError(f"unknown_token_kind: {kind!r}")
    return kind


__all__ = [
    "TOKEN_ACTIVATION",
    "TOKEN_REMINDER",
    "TOKEN_PERSISTENCE",
    "TOKEN_KINDS",
    "SINGLE_USE_KINDS",
    "TOKEN_VALID",
    "TOKEN_NOT_FOUND",
    "TOKEN_EXPIRED",
    "TOKEN_MISMATCH",
    "TOKEN_ALREADY_COMPLETED",
    "ensure_kind",
]
