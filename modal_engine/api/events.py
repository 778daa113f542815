"""Public registry lifecycle events and event-bus contracts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

TEvent = TypeVar("TEvent")


@dataclass(frozen=True, slots=True)
class Subscription:
    """Opaque subscription token."""

    id: int


@dataclass(frozen=True, slots=True)
class ModalLifecycleEvent:
    """Base for registry lifecycle events; published after the change completes."""

    modal_id: str
    resulting_count: int


@dataclass(frozen=True, slots=True)
class ModalOpened(ModalLifecycleEvent):
    pass


@dataclass(frozen=True, slots=True)
class ModalReplaced(ModalLifecycleEvent):
    pass


@dataclass(frozen=True, slots=True)
class ModalUpdated(ModalLifecycleEvent):
    changed_fields: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ModalClosed(ModalLifecycleEvent):
    pass


@dataclass(frozen=True, slots=True)
class ModalEvicted(ModalLifecycleEvent):
    pass


@dataclass(frozen=True, slots=True)
class RegistryCleared:
    modal_ids: tuple[str, ...]
    resulting_count: int = 0


class ModalEventBus(Protocol):
    """In-process pub/sub for registry lifecycle events."""

    def subscribe(
        self,
        event_type: type[TEvent],
        handler: Callable[[TEvent], None],
    ) -> Subscription:
        """Subscribe handler for event type."""

    def unsubscribe(self, subscription: Subscription) -> None:
        """Unsubscribe token."""

    def publish(self, event: object) -> int:
        """Publish event and return invocation count."""


def create_event_bus() -> ModalEventBus:
    """Create default event bus implementation."""
    from modal_engine.runtime.events import RuntimeModalEventBus

    return RuntimeModalEventBus()
