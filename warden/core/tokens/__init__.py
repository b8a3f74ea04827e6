"""Activation, reminder and persistence tokens."""

from warden.core.tokens.constants import (
    SINGLE_USE_KINDS,
    TOKEN_ACTIVATION,
    TOKEN_ALREADY_COMPLETED,
    TOKEN_EXPIRED,
    TOKEN_KINDS,
    TOKEN_MISMATCH,
    TOKEN_NOT_FOUND,
    TOKEN_PERSISTENCE,
    TOKEN_REMINDER,
    TOKEN_VALID,
)
from warden.core.tokens.ledger import TokenLedger
from warden.core.tokens.repository import InMemoryTokenRepository, SqlTokenRepository, Token

__all__ = [
    "SINGLE_USE_KINDS",
    "TOKEN_ACTIVATION",
    "TOKEN_ALREADY_COMPLETED",
    "TOKEN_EXPIRED",
    "TOKEN_KINDS",
    "TOKEN_MISMATCH",
    "TOKEN_NOT_FOUND",
    "TOKEN_PERSISTENCE",
    "TOKEN_REMINDER",
    "TOKEN_VALID",
    "TokenLedger",
    "InMemoryTokenRepository",
    "SqlTokenRepository",
    "Token",
]
