from warden.core.events.event_bus import ALL_EVENTS, EventBus, EventHandler, RecordingEventBus
from warden.core.events.event_models import EventRecord

__all__ = ["ALL_EVENTS", "EventBus", "EventHandler", "RecordingEventBus", "EventRecord"]
