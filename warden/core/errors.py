"""Exception types raised by Warden.

Expected login and token outcomes are returned as values (see
``warden.core.auth.results`` and ``warden.core.tokens.constants``); only
configuration faults are raised by the core itself. Storage errors from the
collaborators propagate unchanged.
"""

from __future__ import annotations


class WardenError(Exception):
    """Base class for Warden errors."""


class ConfigurationError(WardenError):
    """Invalid configuration detected while wiring the gate."""


__all__ = ["WardenError", "ConfigurationError"]
