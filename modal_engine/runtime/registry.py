"""Bounded modal registry with FIFO eviction."""

from __future__ import annotations

import logging
from dataclasses import fields, replace

from modal_engine.api.actions import CallbackInvoker
from modal_engine.api.events import (
    ModalClosed,
    ModalEventBus,
    ModalEvicted,
    ModalOpened,
    ModalReplaced,
    ModalUpdated,
    RegistryCleared,
)
from modal_engine.api.modals import ModalBase
from modal_engine.api.registry import ModalRegistry
from modal_engine.runtime.errors import CAPACITY_EVICTION, log_not_found
from modal_engine.runtime.logging import log_event

_LOG = logging.getLogger("modal_engine.registry")
_SOURCE = "ModalRegistry"


class RuntimeModalRegistry(ModalRegistry):
    """Ordered modal stack; the sequence is only reachable through the operations below.

    Every operation is a synchronous state transition. ``on_close`` callbacks run
    inside the owning operation, through the invoker, so a failing or slow
    callback can neither abort removal nor leave the sequence half-mutated. An
    instance leaves the sequence before its ``on_close`` runs, so callbacks that
    open or close modals always see the post-removal state.
    """

    def __init__(
        self,
        *,
        max_concurrent_modals: int = 3,
        logger: logging.Logger | None = None,
        invoker: CallbackInvoker | None = None,
        events: ModalEventBus | None = None,
    ) -> None:
        if max_concurrent_modals < 1:
            raise ValueError("max_concurrent_modals must be >= 1")
        if invoker is None:
            from modal_engine.runtime.action_dispatch import RuntimeActionDispatcher

            invoker = RuntimeActionDispatcher(logger=logger)
        self._capacity = int(max_concurrent_modals)
        self._logger = logger or _LOG
        self._invoker = invoker
        self._events = events
        self._modals: list[ModalBase] = []

    @property
    def max_concurrent_modals(self) -> int:
        return self._capacity

    def open(self, config: ModalBase) -> None:
        index = self._index(config.id)
        if index is None and len(self._modals) >= self._capacity:
            self._make_room(incoming=config)
            # An evicted modal's on_close may have opened this id already.
            index = self._index(config.id)
        if index is not None:
            self._modals[index] = config
            self._log(logging.INFO, "modal replaced", config, position=index)
            self._publish(ModalReplaced(modal_id=config.id, resulting_count=len(self._modals)))
            return

        self._modals.append(config)
        self._log(logging.INFO, "modal opened", config, title=config.title)
        self._publish(ModalOpened(modal_id=config.id, resulting_count=len(self._modals)))

    def update(self, modal_id: str, **changes: object) -> None:
        index = self._index(modal_id)
        if index is None:
            log_not_found(self._logger, "update", modal_id, resulting_count=len(self._modals))
            return
        if "id" in changes and changes["id"] != modal_id:
            raise ValueError("update cannot change a modal id")
        current = self._modals[index]
        known = {item.name for item in fields(current)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"unknown {current.modal_type} modal fields: {', '.join(unknown)}")
        updated = replace(current, **changes)
        self._modals[index] = updated
        self._log(logging.DEBUG, "modal updated", updated, changed_fields=sorted(changes))
        self._publish(
            ModalUpdated(
                modal_id=modal_id,
                resulting_count=len(self._modals),
                changed_fields=tuple(sorted(changes)),
            )
        )

    def close(self, modal_id: str) -> None:
        index = self._index(modal_id)
        if index is None:
            log_not_found(
                self._logger,
                "close",
                modal_id,
                resulting_count=len(self._modals),
                level=logging.DEBUG,
            )
            return
        # Removed before on_close runs so re-entrant calls see the final sequence.
        config = self._modals.pop(index)
        self._run_on_close(config)
        self._log(logging.INFO, "modal closed", config)
        self._publish(ModalClosed(modal_id=modal_id, resulting_count=len(self._modals)))

    def close_all(self) -> None:
        snapshot = tuple(self._modals)
        self._modals.clear()
        for config in snapshot:
            self._run_on_close(config)
        log_event(
            self._logger,
            logging.INFO,
            "modals cleared",
            category="UI",
            source=_SOURCE,
            modal_ids=[config.id for config in snapshot],
            modal_types=[config.modal_type for config in snapshot],
            closed_count=len(snapshot),
            resulting_count=len(self._modals),
        )
        self._publish(
            RegistryCleared(
                modal_ids=tuple(config.id for config in snapshot),
                resulting_count=len(self._modals),
            )
        )

    def is_open(self, modal_id: str) -> bool:
        return self._index(modal_id) is not None

    def get(self, modal_id: str) -> ModalBase | None:
        index = self._index(modal_id)
        return None if index is None else self._modals[index]

    def modals(self) -> tuple[ModalBase, ...]:
        return tuple(self._modals)

    def top(self) -> ModalBase | None:
        return self._modals[-1] if self._modals else None

    def __len__(self) -> int:
        return len(self._modals)

    def __contains__(self, modal_id: object) -> bool:
        return isinstance(modal_id, str) and self.is_open(modal_id)

    def _make_room(self, *, incoming: ModalBase) -> None:
        # on_close may open modals of its own, so re-check after every eviction.
        while len(self._modals) >= self._capacity:
            self._evict_oldest(incoming=incoming)

    def _evict_oldest(self, *, incoming: ModalBase) -> None:
        oldest = self._modals.pop(0)
        self._run_on_close(oldest)
        self._log(
            logging.WARNING,
            "modal evicted",
            oldest,
            event_kind=CAPACITY_EVICTION,
            limit=self._capacity,
            replaced_by=incoming.id,
        )
        self._publish(ModalEvicted(modal_id=oldest.id, resulting_count=len(self._modals)))

    def _run_on_close(self, config: ModalBase) -> None:
        if config.on_close is None:
            return
        self._invoker.invoke(config.on_close, modal_id=config.id, callback_id="on_close")

    def _index(self, modal_id: str) -> int | None:
        for index, config in enumerate(self._modals):
            if config.id == modal_id:
                return index
        return None

    def _log(self, level: int, message: str, config: ModalBase, **extra: object) -> None:
        log_event(
            self._logger,
            level,
            message,
            category="UI",
            source=_SOURCE,
            modal_id=config.id,
            type=config.modal_type,
            resulting_count=len(self._modals),
            **extra,
        )

    def _publish(self, event: object) -> None:
        if self._events is not None:
            self._events.publish(event)


ModalRegistry = RuntimeModalRegistry
