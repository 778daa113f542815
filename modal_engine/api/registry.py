"""Public modal-registry contracts."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from modal_engine.api.modals import ModalBase

if TYPE_CHECKING:
    from modal_engine.api.actions import CallbackInvoker
    from modal_engine.api.events import ModalEventBus


class ModalRegistry(ABC):
    """Bounded, insertion-ordered collection of active modal instances."""

    @property
    @abstractmethod
    def max_concurrent_modals(self) -> int:
        """Return capacity."""

    @abstractmethod
    def open(self, config: ModalBase) -> None:
        """Open, or replace in place when the id is already active."""

    @abstractmethod
    def update(self, modal_id: str, **changes: object) -> None:
        """Shallow-merge changes into an active modal."""

    @abstractmethod
    def close(self, modal_id: str) -> None:
        """Run ``on_close`` and remove the modal."""

    @abstractmethod
    def close_all(self) -> None:
        """Run every ``on_close`` and empty the registry."""

    @abstractmethod
    def is_open(self, modal_id: str) -> bool:
        """Return membership."""

    @abstractmethod
    def get(self, modal_id: str) -> ModalBase | None:
        """Return active modal config."""

    @abstractmethod
    def modals(self) -> tuple[ModalBase, ...]:
        """Return oldest-first snapshot."""

    @abstractmethod
    def top(self) -> ModalBase | None:
        """Return most recently inserted modal."""

    @abstractmethod
    def __len__(self) -> int: ...


def create_modal_registry(
    *,
    max_concurrent_modals: int = 3,
    logger: logging.Logger | None = None,
    invoker: "CallbackInvoker | None" = None,
    events: "ModalEventBus | None" = None,
) -> ModalRegistry:
    """Create default registry implementation."""
    from modal_engine.runtime.registry import RuntimeModalRegistry

    return RuntimeModalRegistry(
        max_concurrent_modals=max_concurrent_modals,
        logger=logger,
        invoker=invoker,
        events=events,
    )
