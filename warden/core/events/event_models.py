"""Lifecycle event envelope."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class EventRecord:
    event_type: str
    user_id: Optional[str]
    occurred_at: datetime
    payload: dict = field(default_factory=dict)
