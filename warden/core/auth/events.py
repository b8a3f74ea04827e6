"""Auth lifecycle event catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from warden.core.events.event_models import EventRecord

LOGIN_SUCCEEDED = "login.succeeded"
LOGIN_FAILED = "login.failed"
THROTTLED = "throttled"
ACTIVATION_COMPLETED = "activation.completed"
REMINDER_COMPLETED = "reminder.completed"
PERSISTENCE_CREATED = "persistence.created"
PERSISTENCE_REVOKED = "persistence.revoked"

EVENT_CATALOG = {
    LOGIN_SUCCEEDED: {
        "version": "v1",
        "payload": {"user_id": "str", "occurred_at": "datetime", "session_id": "str?", "ip_address": "str?"},
    },
    LOGIN_FAILED: {
        "version": "v1",
        "payload": {"user_id": "str?", "occurred_at": "datetime", "reason": "str", "ip_address": "str?"},
    },
    THROTTLED: {
        "version": "v1",
        "payload": {
            "user_id": "str?",
            "occurred_at": "datetime",
            "scope": "str",
            "retry_after": "float",
            "ip_address": "str?",
        },
    },
    ACTIVATION_COMPLETED: {
        "version": "v1",
        "payload": {"user_id": "str", "occurred_at": "datetime"},
    },
    REMINDER_COMPLETED: {
        "version": "v1",
        "payload": {"user_id": "str", "occurred_at": "datetime", "persistences_revoked": "int"},
    },
    PERSISTENCE_CREATED: {
        "version": "v1",
        "payload": {"user_id": "str", "occurred_at": "datetime", "expires_at": "datetime?"},
    },
    PERSISTENCE_REVOKED: {
        "version": "v1",
        "payload": {"user_id": "str", "occurred_at": "datetime", "count": "int", "everywhere": "bool"},
    },
}


def make_event(event_type: str, user_id: Optional[str], occurred_at: datetime, **payload) -> EventRecord:
    if event_type not in EVENT_CATALOG:
        raise ValueError(f"unknown_event: {event_type}")
    body = {"user_id": user_id, "occurred_at": occurred_at.isoformat()}
    body.update(payload)
    return EventRecord(event_type=event_type, user_id=user_id, occurred_at=occurred_at, payload=body)


__all__ = [
    "LOGIN_SUCCEEDED",
    "LOGIN_FAILED",
    "THROTTLED",
    "ACTIVATION_COMPLETED",
    "REMINDER_COMPLETED",
    "PERSISTENCE_CREATED",
    "PERSISTENCE_REVOKED",
    "EVENT_CATALOG",
    "make_event",
]
