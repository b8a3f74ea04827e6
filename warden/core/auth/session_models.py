"""Session identity envelopes exchanged with the session store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from warden.core.auth.constants import SESSION_STATE_ACTIVE


@dataclass
class SessionHandle:
    """A bound session as seen by callers; not an ORM object."""

    session_id: str
    user_id: str
    created_at: Optional[datetime] = None
    lifecycle_state: str = SESSION_STATE_ACTIVE
    # Raw persistence code minted alongside the session ("remember me").
    remember_code: Optional[str] = None


__all__ = ["SessionHandle"]
