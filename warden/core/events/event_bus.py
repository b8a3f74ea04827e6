"""Simple in-process event bus.

Each gate owns its bus; there is no process-wide dispatcher.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from warden.core.events.event_models import EventRecord

EventHandler = Callable[[EventRecord], None]

# Subscribing to this name receives every event.
ALL_EVENTS = "*"


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._subscribers.setdefault(event_type, [])
        handlers.append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: EventRecord) -> None:
        for handler in self._subscribers.get(event.event_type, []) + self._subscribers.get(ALL_EVENTS, []):
            handler(event)


class RecordingEventBus(EventBus):
    """Bus that also keeps every published event, for audits and tests."""

    def __init__(self) -> None:
        super().__init__()
        self.events: List[EventRecord] = []

    def publish(self, event: EventRecord) -> None:
        self.events.append(event)
        super().publish(event)

    def names(self) -> List[str]:
        return [event.event_type for event in self.events]
