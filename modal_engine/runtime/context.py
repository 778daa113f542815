"""Runtime context implementation."""

from __future__ import annotations

import logging

from modal_engine.api.context import ModalRuntime
from modal_engine.api.events import ModalLifecycleEvent, RegistryCleared, Subscription
from modal_engine.api.focus import FocusHost
from modal_engine.api.render import ModalSurface
from modal_engine.runtime.action_dispatch import RuntimeActionDispatcher
from modal_engine.runtime.approval import RuntimeApprovalController
from modal_engine.runtime.config import ModalEngineConfig
from modal_engine.runtime.events import RuntimeModalEventBus
from modal_engine.runtime.focus import RuntimeModalFocusController
from modal_engine.runtime.logging import LogHistoryHandler, log_event
from modal_engine.runtime.registry import RuntimeModalRegistry
from modal_engine.runtime.renderer import RuntimeModalRenderer

_LOG = logging.getLogger("modal_engine.runtime")


class RuntimeModalRuntime(ModalRuntime):
    """Owns one registry and everything wired around it.

    The focus controller is re-synced after every registry lifecycle event so
    the host always sees focus and scroll state for the current stack.
    """

    def __init__(
        self,
        config: ModalEngineConfig | None = None,
        *,
        focus_host: FocusHost | None = None,
        logger: logging.Logger | None = None,
        log_history: LogHistoryHandler | None = None,
    ) -> None:
        self.config = config or ModalEngineConfig()
        self.log_history = log_history
        self._logger = logger or _LOG
        self.events = RuntimeModalEventBus(logger=logger)
        self.dispatcher = RuntimeActionDispatcher(logger=logger)
        self.registry = RuntimeModalRegistry(
            max_concurrent_modals=self.config.max_concurrent_modals,
            logger=logger,
            invoker=self.dispatcher,
            events=self.events,
        )
        self.approvals = RuntimeApprovalController(
            self.registry, invoker=self.dispatcher, logger=logger
        )
        self.renderer = RuntimeModalRenderer(
            self.registry, self.dispatcher, approvals=self.approvals, logger=logger
        )
        self.focus = RuntimeModalFocusController(
            self.registry,
            focus_host,
            focus_on_open=self.config.focus_on_open,
            lock_background_scroll=self.config.lock_background_scroll,
            logger=logger,
        )
        self._subscriptions: tuple[Subscription, ...] = (
            self.events.subscribe(ModalLifecycleEvent, self._on_registry_changed),
            self.events.subscribe(RegistryCleared, self._on_registry_changed),
        )
        self._shut_down = False
        log_event(
            self._logger,
            logging.INFO,
            "modal runtime initialized",
            category="SYSTEM",
            source="ModalRuntime",
            max_concurrent_modals=self.config.max_concurrent_modals,
        )

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def render(self) -> tuple[ModalSurface, ...]:
        return self.renderer.render()

    def handle_key(self, key_name: str) -> bool:
        if self._shut_down:
            return False
        return self.focus.handle_key(key_name)

    def shutdown(self) -> None:
        if self._shut_down:
            return
        self._shut_down = True
        self.registry.close_all()
        for subscription in self._subscriptions:
            self.events.unsubscribe(subscription)
        log_event(
            self._logger,
            logging.INFO,
            "modal runtime shut down",
            category="SYSTEM",
            source="ModalRuntime",
        )

    def _on_registry_changed(self, _event: object) -> None:
        self.focus.sync(self.renderer.render())


ModalRuntime = RuntimeModalRuntime
