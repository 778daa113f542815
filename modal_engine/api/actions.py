"""Public action and callback-dispatch contracts."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

ActionVariant = Literal["default", "destructive", "outline", "secondary", "ghost", "link"]
DispatchStatus = Literal["completed", "pending", "failed"]

ActionCallback = Callable[[], Awaitable[None] | None]
SuccessHook = Callable[[], None]


@dataclass(frozen=True, slots=True)
class ModalAction:
    """Footer or content action attached to a modal.

    ``disabled`` and ``loading`` belong to the caller; the engine only reflects them.
    """

    id: str
    label: str
    on_click: ActionCallback
    variant: ActionVariant = "default"
    disabled: bool = False
    loading: bool = False


class CallbackInvoker(Protocol):
    """Runs consumer callbacks with failures isolated and logged."""

    def invoke(
        self,
        callback: Callable[..., object],
        *args: object,
        modal_id: str | None,
        callback_id: str,
        on_success: SuccessHook | None = None,
    ) -> DispatchStatus:
        """Invoke callback. Never raises for callback failures."""


class ActionDispatcher(CallbackInvoker, Protocol):
    """Executes modal actions with failure isolation."""

    def dispatch(self, action: ModalAction, *, modal_id: str | None = None) -> None:
        """Fire one action; async work continues in the background."""

    async def dispatch_async(
        self, action: ModalAction, *, modal_id: str | None = None
    ) -> DispatchStatus:
        """Run one action to completion."""

    @property
    def pending_count(self) -> int:
        """Return number of in-flight async callbacks."""

    async def drain(self) -> None:
        """Wait for in-flight async callbacks without cancelling them."""


def create_action_dispatcher(*, logger: logging.Logger | None = None) -> ActionDispatcher:
    """Create default dispatcher implementation."""
    from modal_engine.runtime.action_dispatch import RuntimeActionDispatcher

    return RuntimeActionDispatcher(logger=logger)
