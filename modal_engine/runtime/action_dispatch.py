"""Failure-isolating dispatcher for modal actions and consumer callbacks."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TypeVar

from modal_engine.api.actions import DispatchStatus, ModalAction, SuccessHook
from modal_engine.runtime.errors import log_callback_failure
from modal_engine.runtime.logging import log_event

_LOG = logging.getLogger("modal_engine.dispatch")
_SOURCE = "ActionDispatcher"

T = TypeVar("T")


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class RuntimeActionDispatcher:
    """Invoke sync or async callbacks, log failures, never propagate them.

    Async results are fire-and-dispatch when an event loop is running: the
    caller gets ``"pending"`` back immediately and the outcome is logged when
    the task settles. Nothing is retried, timed out or cancelled here.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _LOG
        self._pending: set[asyncio.Future[object]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def dispatch(self, action: ModalAction, *, modal_id: str | None = None) -> None:
        """Fire one action."""
        log_event(
            self._logger,
            logging.DEBUG,
            "modal action dispatched",
            category="UI",
            source=_SOURCE,
            modal_id=modal_id,
            action_id=action.id,
        )
        self.invoke(action.on_click, modal_id=modal_id, callback_id=action.id)

    async def dispatch_async(
        self, action: ModalAction, *, modal_id: str | None = None
    ) -> DispatchStatus:
        """Run one action to completion on the current loop."""
        try:
            result = action.on_click()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            self._fail(modal_id, action.id, exc)
            return "failed"
        return "completed"

    def invoke(
        self,
        callback: Callable[..., object],
        *args: object,
        modal_id: str | None,
        callback_id: str,
        on_success: SuccessHook | None = None,
    ) -> DispatchStatus:
        try:
            result = callback(*args)
        except Exception as exc:
            self._fail(modal_id, callback_id, exc)
            return "failed"
        if not inspect.isawaitable(result):
            self._succeed(on_success, modal_id, callback_id)
            return "completed"

        loop = _running_loop()
        if loop is None:
            try:
                asyncio.run(_await(result))
            except Exception as exc:
                self._fail(modal_id, callback_id, exc)
                return "failed"
            self._succeed(on_success, modal_id, callback_id)
            return "completed"

        task = asyncio.ensure_future(result, loop=loop)
        self._pending.add(task)
        task.add_done_callback(
            partial(self._settle, modal_id=modal_id, callback_id=callback_id, on_success=on_success)
        )
        return "pending"

    async def drain(self) -> None:
        """Wait for every in-flight callback to settle."""
        while self._pending:
            await asyncio.gather(*tuple(self._pending), return_exceptions=True)
            # Let done-callbacks scheduled by the gather run before re-checking.
            await asyncio.sleep(0)

    def _settle(
        self,
        task: asyncio.Future[object],
        *,
        modal_id: str | None,
        callback_id: str,
        on_success: SuccessHook | None,
    ) -> None:
        self._pending.discard(task)
        if task.cancelled():
            log_event(
                self._logger,
                logging.DEBUG,
                "modal callback cancelled externally",
                category="UI",
                source=_SOURCE,
                modal_id=modal_id,
                action_id=callback_id,
            )
            return
        error = task.exception()
        if error is not None:
            self._fail(modal_id, callback_id, error)
            return
        self._succeed(on_success, modal_id, callback_id)

    def _succeed(self, on_success: SuccessHook | None, modal_id: str | None, callback_id: str) -> None:
        if on_success is None:
            return
        try:
            on_success()
        except Exception as exc:
            self._fail(modal_id, f"{callback_id}:on_success", exc)

    def _fail(self, modal_id: str | None, callback_id: str, error: BaseException) -> None:
        log_callback_failure(
            self._logger,
            modal_id=modal_id,
            callback_id=callback_id,
            cause=error,
            source=_SOURCE,
        )


ActionDispatcher = RuntimeActionDispatcher
