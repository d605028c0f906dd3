"""
In-process publish/subscribe channel for human-readable status messages.

Used only for side-channel reporting (e.g. a loading screen showing
"1.234 produtos carregados..."), never for control flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

LOADING_STATUS = "loading:status"

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class Subscription:
    topic: str
    handler: Handler = field(compare=False)
    id: int = 0


class EventBus:
    """Registry of topic -> ordered list of subscriptions.

    Delivery is synchronous and in registration order. Nothing is buffered:
    a handler registered after a publish never sees that payload. A failing
    handler is logged and skipped.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._ids = count(1)

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        subscription = Subscription(topic=topic, handler=handler, id=next(self._ids))
        self._subscriptions.setdefault(topic, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        current = self._subscriptions.get(subscription.topic)
        if not current:
            return
        remaining = [s for s in current if s.id != subscription.id]
        if remaining:
            self._subscriptions[subscription.topic] = remaining
        else:
            self._subscriptions.pop(subscription.topic, None)

    def publish(self, topic: str, payload: Any) -> None:
        # Snapshot so handlers may (un)subscribe while being called.
        for subscription in list(self._subscriptions.get(topic, ())):
            try:
                subscription.handler(payload)
            except Exception:
                logger.exception("Subscriber %s failed while handling '%s'", subscription.id, topic)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, ()))


# Process-wide default channel; components accept a bus argument so tests can
# inject their own.
event_bus = EventBus()
