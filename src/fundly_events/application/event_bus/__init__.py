"""Application – in-process event bus."""
from fundly_events.application.event_bus.bus import EventBus, EventHandler, Unsubscribe

__all__ = ["EventBus", "EventHandler", "Unsubscribe"]
