"""In-process lifecycle event bus for the modal registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from modal_engine.api.events import Subscription
from modal_engine.runtime.logging import log_event

TEvent = TypeVar("TEvent")
EventHandler = Callable[[Any], None]

_LOG = logging.getLogger("modal_engine.events")


class RuntimeModalEventBus:
    """Simple pub/sub; a failing subscriber never reaches the publisher."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._next_id = 1
        self._subscriptions: dict[int, tuple[type[object], EventHandler]] = {}
        self._logger = logger or _LOG

    def subscribe(
        self,
        event_type: type[TEvent],
        handler: Callable[[TEvent], None],
    ) -> Subscription:
        """Subscribe handler for an event type and its subclasses."""
        sub_id = self._next_id
        self._next_id += 1
        self._subscriptions[sub_id] = (event_type, handler)
        return Subscription(sub_id)

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.id, None)

    def publish(self, event: object) -> int:
        """Publish one event and return number of invoked handlers."""
        invoked = 0
        for subscribed_type, handler in tuple(self._subscriptions.values()):
            if not isinstance(event, subscribed_type):
                continue
            invoked += 1
            try:
                handler(event)
            except Exception as exc:
                log_event(
                    self._logger,
                    logging.ERROR,
                    "lifecycle subscriber failed",
                    category="SYSTEM",
                    source="ModalEventBus",
                    exc_info=(type(exc), exc, exc.__traceback__),
                    event=type(event).__name__,
                    error=str(exc),
                )
        return invoked


ModalEventBus = RuntimeModalEventBus
