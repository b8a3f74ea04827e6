"""Throttle scope constants."""

from __future__ import annotations

SCOPE_GLOBAL = "global"
SCOPE_IP = "ip"
SCOPE_USER = "user"

# Evaluation order for a login attempt.
SCOPES = (SCOPE_GLOBAL, SCOPE_IP, SCOPE_USER)

# Every attempt shares one record in the global scope.
GLOBAL_KEY = "global"


def ensure_scope(scope: str) -> str:
    if scope not in SCOPES:
        raise ValueError(f"unknown_throttle_scope: {scope!r}")
    return scope


__all__ = ["SCOPE_GLOBAL", "SCOPE_IP", "SCOPE_USER", "SCOPES", "GLOBAL_KEY", "ensure_scope"]
