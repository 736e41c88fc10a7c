"""
fundly_events – FundlyHub domain-event core.

Import path convention::

    from fundly_events.kernel.events import Event, EventType
    from fundly_events.application.event_bus import EventBus
    from fundly_events.application.saga import SagaOrchestrator
    from fundly_events.bootstrap import build_event_system
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
