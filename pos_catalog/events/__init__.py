from .event_bus import LOADING_STATUS, EventBus, Subscription, event_bus

__all__ = ["LOADING_STATUS", "EventBus", "Subscription", "event_bus"]
