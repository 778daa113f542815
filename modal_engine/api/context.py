"""Public runtime context API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from modal_engine.api.actions import ActionDispatcher
from modal_engine.api.events import ModalEventBus
from modal_engine.api.focus import FocusHost, ModalFocusController
from modal_engine.api.registry import ModalRegistry
from modal_engine.api.render import ModalRenderer, ModalSurface

if TYPE_CHECKING:
    from modal_engine.runtime.config import ModalEngineConfig
    from modal_engine.runtime.logging import LogHistoryHandler


class ModalRuntime(ABC):
    """One wired set of engine services with an explicit shutdown."""

    registry: ModalRegistry
    dispatcher: ActionDispatcher
    renderer: ModalRenderer
    focus: ModalFocusController
    events: ModalEventBus
    log_history: "LogHistoryHandler | None"

    @abstractmethod
    def render(self) -> tuple[ModalSurface, ...]:
        """Return one surface per active modal, oldest first."""

    @abstractmethod
    def handle_key(self, key_name: str) -> bool:
        """Route one host key press through the focus contract."""

    @abstractmethod
    def shutdown(self) -> None:
        """Close every modal once; later calls are no-ops."""

    def __enter__(self) -> ModalRuntime:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


def create_modal_runtime(
    config: "ModalEngineConfig | None" = None,
    *,
    focus_host: FocusHost | None = None,
    logger: logging.Logger | None = None,
) -> ModalRuntime:
    """Create default runtime wiring."""
    from modal_engine.runtime.context import RuntimeModalRuntime

    return RuntimeModalRuntime(config, focus_host=focus_host, logger=logger)
